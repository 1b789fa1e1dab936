"""Pipeline orchestration: clone, scan, select, generate, deduplicate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from .config import RepoContextConfig
from .docs.generator import DocumentationError, DocumentationGenerator
from .docs.metadata import Metadata
from .git.repository import GitRunner, Repository, parse_repo_path
from .llm.runner import ChunkSink, LLMRunner, TextGenerator
from .logging import get_logger
from .models import GeneratedDocument, SelectionResult
from .prompting.builder import PromptBuilder
from .repo_scanner import RepoScanner
from .selector import FileSelector


@dataclass
class RunOutcome:
    """Result of one documentation run."""

    repository: Repository
    commit_hash: str
    selection: SelectionResult
    document: GeneratedDocument
    metadata: Metadata
    docs_path: Path
    full_document: str

    @property
    def version_label(self) -> str:
        return self.repository.version_label(self.commit_hash)


class Orchestrator:
    """Runs the documentation pipeline for a single repository."""

    def __init__(
        self,
        config: RepoContextConfig,
        *,
        generator: TextGenerator | None = None,
        scanner: RepoScanner | None = None,
        prompt_builder: PromptBuilder | None = None,
        git_runner: GitRunner | None = None,
        on_chunk: ChunkSink | None = None,
    ) -> None:
        self.config = config
        self.generator = generator or self._build_runner(config)
        self.scanner = scanner or RepoScanner()
        self.prompt_builder = prompt_builder or PromptBuilder(config.templates_dir)
        self.git_runner = git_runner
        self.on_chunk = on_chunk
        self.logger = get_logger("orchestrator")

    @property
    def model_name(self) -> str:
        name = getattr(self.generator, "model_name", None)
        return name if isinstance(name, str) else self.config.model

    def run(self, repo_spec: str) -> RunOutcome:
        repository = parse_repo_path(repo_spec, runner=self.git_runner)

        self.logger.info("Cloning/updating repository %s...", repository.slug)
        repo_path = repository.clone(self.config.cache_root, base_url=self.config.git_base_url)
        self.logger.info("Repository available at: %s", repo_path)

        commit_hash = repository.current_commit_hash()
        self.logger.info("Current commit: %s", commit_hash)

        self.logger.info("Scanning repository files...")
        files = self.scanner.scan(repo_path)
        self.logger.info("Found %d files", len(files))

        self.logger.info(
            "Selecting files to include (max size: %d bytes)...", self.config.max_context_size
        )
        selector = FileSelector(self.generator, self.prompt_builder, on_chunk=self.on_chunk)
        selection = selector.select(files, self.config.max_context_size)
        self.logger.info(
            "Selected %d files for analysis (total size: %d bytes)",
            len(selection.paths),
            selection.total_size,
        )
        selected_files = {path: files[path] for path in selection.paths}

        docs_path = repository.docs_path(self.config.cache_root, commit_hash)
        docs = DocumentationGenerator(
            repo_path,
            docs_path,
            self.generator,
            self.prompt_builder,
            on_chunk=self.on_chunk,
        )
        meta = Metadata(
            commit_hash=commit_hash,
            model_used=self.model_name,
            generated_at=datetime.now(UTC),
        )

        self.logger.info("Generating documentation...")
        document = docs.load_or_generate(selected_files, meta)
        docs.cleanup_duplicates()

        if docs.metadata is None:
            raise DocumentationError("documentation finished without metadata")
        return RunOutcome(
            repository=repository,
            commit_hash=commit_hash,
            selection=selection,
            document=document,
            metadata=docs.metadata,
            docs_path=docs_path,
            full_document=docs.read_full_document(),
        )

    @staticmethod
    def _build_runner(config: RepoContextConfig) -> LLMRunner:
        return LLMRunner(
            config.model,
            api_key=config.require_api_key(),
            base_url=config.api_base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )


__all__ = ["Orchestrator", "RunOutcome"]
