"""Documentation generation with a metadata-keyed on-disk cache."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping

from ..llm.runner import ChunkSink, TextGenerator
from ..logging import get_logger
from ..models import GeneratedDocument, RepoFile
from ..prompting.builder import PromptBuilder
from ..prompting.constants import (
    FULL_DOC_FILENAME,
    METADATA_FILENAME,
    SECTION_FILES,
    SECTIONS,
)
from .metadata import Metadata, MetadataError


class DocumentationError(RuntimeError):
    """Raised when the documentation pipeline is used out of order."""


def join_sections(sections: Mapping[str, str]) -> str:
    """Concatenate sections in their fixed order, each followed by a blank line."""
    return "".join(f"{sections[name]}\n\n" for name in SECTIONS)


class DocumentationGenerator:
    """Generates, caches and cleans up the documentation for one snapshot.

    Files written under ``docs_path``:

    * ``01_overview.md``, ``02_getting_started.md``, ``03_usage.md``
    * ``full.md``: the concatenated (and later deduplicated) document
    * ``metadata.json``: commit, model and deduplication state

    The cache is considered valid whenever ``metadata.json`` parses; the
    recorded commit hash is not compared with the working copy.
    """

    def __init__(
        self,
        repo_path: Path | str,
        docs_path: Path | str,
        generator: TextGenerator,
        prompt_builder: PromptBuilder | None = None,
        *,
        on_chunk: ChunkSink | None = None,
    ) -> None:
        self.repo_path = Path(repo_path)
        self.docs_path = Path(docs_path)
        self.generator = generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.on_chunk = on_chunk
        self.contents: Dict[str, str] = {}
        self.metadata: Metadata | None = None
        self.logger = get_logger("docs")
        self.docs_path.mkdir(parents=True, exist_ok=True)

    @property
    def metadata_path(self) -> Path:
        return self.docs_path / METADATA_FILENAME

    @property
    def full_doc_path(self) -> Path:
        return self.docs_path / FULL_DOC_FILENAME

    def load_or_generate(
        self, files: Mapping[str, RepoFile], meta: Metadata
    ) -> GeneratedDocument:
        """Serve cached sections when metadata exists, otherwise generate them."""
        if self.is_cache_valid():
            self.logger.info("Using cached documentation...")
            return self.load_from_cache()

        self.metadata = meta
        document = self.generate(files)
        # deduplicated stays False until cleanup_duplicates() runs
        self.save_metadata()
        return document

    def is_cache_valid(self) -> bool:
        try:
            meta = Metadata.load(self.metadata_path)
        except (OSError, MetadataError):
            return False
        self.metadata = meta
        return True

    def load_from_cache(self) -> GeneratedDocument:
        sections = {name: self._read(SECTION_FILES[name]) for name in SECTIONS}
        if self.metadata is not None:
            self.logger.info(
                "Documentation loaded from cache (model %s, commit %s, generated %s)",
                self.metadata.model_used,
                self.metadata.commit_hash,
                self.metadata.to_dict()["generated_at"],
            )
        return GeneratedDocument(sections=sections, full=join_sections(sections), from_cache=True)

    def generate(self, files: Mapping[str, RepoFile]) -> GeneratedDocument:
        self._load_contents(files)

        sections: Dict[str, str] = {}
        for name in SECTIONS:
            content = self.generate_section(name)
            (self.docs_path / SECTION_FILES[name]).write_text(content, encoding="utf-8")
            sections[name] = content

        full = join_sections(sections)
        self.full_doc_path.write_text(full, encoding="utf-8")
        return GeneratedDocument(sections=sections, full=full, from_cache=False)

    def generate_section(self, section: str) -> str:
        if section not in SECTION_FILES:
            raise DocumentationError(f"unknown section: {section}")
        prompt = self.prompt_builder.build_section_prompt(section, self.contents)
        self.logger.info("Generating %s...", SECTION_FILES[section])
        return self.generator.run(prompt, on_chunk=self.on_chunk)

    def cleanup_duplicates(self) -> bool:
        """Merge the concatenated sections into one document.

        Returns ``False`` without calling the model when the metadata already
        records a completed cleanup.
        """
        if self.metadata is None:
            raise DocumentationError("documentation must be loaded or generated before cleanup")
        if self.metadata.deduplicated:
            self.logger.info("Documentation already deduplicated, skipping cleanup pass...")
            return False

        content = self.full_doc_path.read_text(encoding="utf-8")
        prompt = self.prompt_builder.build_dedupe_prompt(content)

        self.logger.info("Performing final cleanup pass to remove duplicates...")
        cleaned = self.generator.run(prompt, on_chunk=self.on_chunk)
        self.full_doc_path.write_text(cleaned, encoding="utf-8")

        self.metadata.deduplicated = True
        self.save_metadata()
        return True

    def save_metadata(self) -> None:
        if self.metadata is None:
            raise DocumentationError("no metadata to save")
        self.metadata.save(self.metadata_path)

    def read_full_document(self) -> str:
        return self.full_doc_path.read_text(encoding="utf-8")

    def _load_contents(self, files: Mapping[str, RepoFile]) -> None:
        for path, entry in files.items():
            if entry.content is None:
                entry.content = (self.repo_path / path).read_text(
                    encoding="utf-8", errors="replace"
                )
            self.contents[path] = entry.content

    def _read(self, filename: str) -> str:
        return (self.docs_path / filename).read_text(encoding="utf-8")


__all__ = ["DocumentationError", "DocumentationGenerator", "join_sections"]
