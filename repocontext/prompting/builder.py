"""Builds prompts for file selection, documentation sections and cleanup."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping

from jinja2 import Environment, FileSystemLoader

from ..models import RepoFile
from .constants import SECTIONS

_DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


def format_file_list(contents: Mapping[str, str]) -> str:
    """Return the sorted file paths, one per line."""
    return "\n".join(sorted(contents))


def format_file_contents(contents: Mapping[str, str]) -> str:
    """Return every file body in path order, each under a ``=== path ===`` header."""
    parts: List[str] = []
    for path in sorted(contents):
        parts.append(f"\n=== {path} ===\n")
        parts.append(contents[path])
        parts.append("\n")
    return "".join(parts)


class PromptBuilder:
    """Renders the prompt templates shipped with the package.

    A ``templates_dir`` is searched before the bundled templates, so any of
    ``overview.j2``, ``getting_started.j2``, ``usage.j2``, ``dedupe.j2`` or
    ``select_files.j2`` can be overridden individually.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def build_section_prompt(self, section: str, contents: Mapping[str, str]) -> str:
        if section not in SECTIONS:
            raise ValueError(f"unknown section: {section}")
        template = self._env.get_template(f"{section}.j2")
        return template.render(
            file_list=format_file_list(contents),
            file_contents=format_file_contents(contents),
        )

    def build_selection_prompt(self, files: Mapping[str, RepoFile], budget: int) -> str:
        entries = [files[path] for path in sorted(files)]
        template = self._env.get_template("select_files.j2")
        return template.render(
            budget=budget,
            total_size=sum(entry.size for entry in entries),
            entries=entries,
        )

    def build_dedupe_prompt(self, content: str) -> str:
        template = self._env.get_template("dedupe.j2")
        return template.render(content=content)

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(_DEFAULT_TEMPLATES_DIR))
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = [
    "PromptBuilder",
    "format_file_contents",
    "format_file_list",
]
