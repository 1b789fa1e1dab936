"""Repository scanning and catalog building utilities."""

from __future__ import annotations

import os
import queue
import threading
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

from .binary import is_binary_file
from .logging import get_logger
from .models import RepoFile

_VCS_DIRS = {".git", ".hg", ".svn"}

_IGNORE_FILES = (".gitignore", ".ignore")

_QUEUE_SIZE = 100

_DONE = object()

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .ignore."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool
    base: str = ""

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.base:
            if not rel_path.startswith(f"{self.base}/"):
                return False
            rel_path = rel_path[len(self.base) + 1 :]
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


@dataclass
class _WalkFailure:
    error: BaseException


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_ignore_file(path: Path) -> List[IgnoreRule]:
    if not path.is_file():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _load_ignore_rules(directory: Path, base: str = "") -> List[IgnoreRule]:
    """Read ``.gitignore`` and ``.ignore`` in ``directory``, scoped to ``base``."""
    rules: List[IgnoreRule] = []
    for name in _IGNORE_FILES:
        try:
            parsed = _parse_ignore_file(directory / name)
        except OSError as exc:
            logger.warning("Could not read ignore file %s: %s", directory / name, exc)
            continue
        for rule in parsed:
            rule.base = base
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _walk_error_handler(root: Path):
    def _handle(error: OSError) -> None:
        if error.filename is None or Path(error.filename) == root:
            raise error
        logger.warning("Skipping unreadable directory %s: %s", error.filename, error)

    return _handle


def _iter_files(root: Path) -> Iterator[Path]:
    scoped_rules: Dict[str, List[IgnoreRule]] = {}
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error_handler(root)):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        # parents are visited first, so their rules are already collected
        inherited = scoped_rules.get(rel_dir.rpartition("/")[0], []) if rel_dir else []
        rules = inherited + _load_ignore_rules(current_dir, rel_dir)
        scoped_rules[rel_dir] = rules

        kept_dirs = []
        for name in dirnames:
            if name in _VCS_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in filenames:
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


class RepoScanner:
    """Walks a checked-out repository and catalogs its text files."""

    def __init__(self, queue_size: int = _QUEUE_SIZE) -> None:
        self.queue_size = queue_size
        self.logger = logger

    def scan(self, root: str | Path) -> Dict[str, RepoFile]:
        """Return a catalog of non-binary files keyed by repository-relative path."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        handoff: "queue.Queue[object]" = queue.Queue(maxsize=self.queue_size)

        def _produce() -> None:
            try:
                for path in _iter_files(root_path):
                    handoff.put(path)
            except BaseException as exc:
                handoff.put(_WalkFailure(exc))
            finally:
                handoff.put(_DONE)

        walker = threading.Thread(target=_produce, name="repocontext-walker", daemon=True)
        walker.start()

        files: Dict[str, RepoFile] = {}
        failure: _WalkFailure | None = None
        while True:
            item = handoff.get()
            if item is _DONE:
                break
            if isinstance(item, _WalkFailure):
                failure = item
                continue
            entry = self._inspect(root_path, item)
            if entry is not None:
                files[entry.path] = entry
        walker.join()

        if failure is not None:
            raise failure.error

        self.logger.debug("Catalogued %d text files under %s", len(files), root_path)
        return files

    def _inspect(self, root: Path, path: Path) -> RepoFile | None:
        rel_path = path.relative_to(root).as_posix()
        try:
            stat_result = path.stat()
        except OSError as exc:
            self.logger.warning("Could not stat %s: %s", rel_path, exc)
            return None

        if path.is_dir():
            return None

        try:
            binary = is_binary_file(path)
        except OSError as exc:
            self.logger.warning("Could not check if file is binary %s: %s", rel_path, exc)
            return None

        if binary:
            self.logger.debug("Skipping binary file %s", rel_path)
            return None

        return RepoFile(path=rel_path, size=stat_result.st_size)


__all__ = ["IgnoreRule", "RepoScanner"]
