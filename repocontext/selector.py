"""Size-budgeted file selection."""

from __future__ import annotations

import re
from typing import List, Mapping, Set

from .llm.runner import ChunkSink, TextGenerator
from .logging import get_logger
from .models import RepoFile, SelectionResult
from .prompting.builder import PromptBuilder

_LIST_MARKER = re.compile(r"^(?:[-*+]\s+|\d+[.)]\s+)")

logger = get_logger("selector")


class SelectionError(RuntimeError):
    """Raised when no files can be selected within the budget."""


def total_size(files: Mapping[str, RepoFile]) -> int:
    return sum(entry.size for entry in files.values())


def _clean_line(line: str) -> str:
    candidate = line.strip()
    if not candidate:
        return ""
    # the model sometimes echoes the "(N bytes)" annotation from the manifest
    index = candidate.find(" (")
    if index != -1:
        candidate = candidate[:index]
    candidate = _LIST_MARKER.sub("", candidate)
    return candidate.strip().strip("`").strip()


def parse_selection(
    response: str, files: Mapping[str, RepoFile], budget: int
) -> SelectionResult:
    """Greedily accept paths from a model response while they fit in ``budget``.

    Paths are taken in response order. Unknown paths and repeats are skipped,
    as is any path that would push the running total over the budget.
    """
    selected: List[str] = []
    seen: Set[str] = set()
    selected_size = 0

    for line in response.splitlines():
        path = _clean_line(line)
        if not path or path in seen:
            continue

        entry = files.get(path)
        if entry is None:
            logger.warning("File not found: %s", path)
            continue

        if selected_size + entry.size > budget:
            logger.info("Skipping %s: would exceed size limit", path)
            continue

        selected.append(path)
        seen.add(path)
        selected_size += entry.size
        logger.debug("Selected: %s (%d bytes)", path, entry.size)

    if not selected:
        raise SelectionError("no files were selected within size constraints")

    logger.info(
        "Total selected size: %d bytes (%.2f%% of limit)",
        selected_size,
        selected_size / budget * 100 if budget else 100.0,
    )
    return SelectionResult(paths=selected, total_size=selected_size)


class FileSelector:
    """Picks the catalog subset that is sent to the documentation prompts."""

    def __init__(
        self,
        generator: TextGenerator,
        prompt_builder: PromptBuilder | None = None,
        *,
        on_chunk: ChunkSink | None = None,
    ) -> None:
        self.generator = generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.on_chunk = on_chunk

    def select(self, files: Mapping[str, RepoFile], budget: int) -> SelectionResult:
        catalog_size = total_size(files)
        if catalog_size <= budget:
            logger.info(
                "Total size (%d bytes) is under limit (%d bytes), including all files",
                catalog_size,
                budget,
            )
            return SelectionResult(paths=sorted(files), total_size=catalog_size)

        logger.info(
            "Total size (%d bytes) exceeds limit (%d bytes), asking the model to select files",
            catalog_size,
            budget,
        )
        prompt = self.prompt_builder.build_selection_prompt(files, budget)
        response = self.generator.run(prompt, on_chunk=self.on_chunk)
        return parse_selection(response, files, budget)


__all__ = ["FileSelector", "SelectionError", "parse_selection", "total_size"]
