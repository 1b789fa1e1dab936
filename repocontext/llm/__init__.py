"""Text-generation backend adapters."""

from .runner import LLMError, LLMRunner, TextGenerator

__all__ = ["LLMError", "LLMRunner", "TextGenerator"]
