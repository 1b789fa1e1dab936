"""Fetching GitHub repositories into the local cache."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..config import DEFAULT_GIT_BASE_URL
from ..logging import get_logger

GitRunner = Callable[..., str]

_DEFAULT_CHECKOUT = "default"

logger = get_logger("git")


class GitError(RuntimeError):
    """Raised when a git command fails."""


class GitCloneError(GitError):
    """Raised when a repository cannot be cloned."""


class RepositoryPathError(RuntimeError):
    """Raised for repository specs that are not ``user/repo[@tag]``."""


def _default_runner(
    args: Iterable[str],
    *,
    cwd: Path | None = None,
    capture_output: bool = False,
) -> str:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd) if cwd is not None else None,
        check=True,
        text=True,
        capture_output=capture_output,
    )
    if capture_output:
        return completed.stdout
    return ""


def parse_repo_path(spec: str, *, runner: GitRunner | None = None) -> "Repository":
    """Parse ``user/repo[@tag]`` into a :class:`Repository`."""
    repo_part, _, tag = spec.strip().partition("@")
    parts = repo_part.split("/")
    if len(parts) != 2 or not all(parts):
        raise RepositoryPathError(
            "invalid repository path format. Expected user/repo[@tag]"
        )
    return Repository(user=parts[0], repo=parts[1], tag=tag or None, runner=runner)


@dataclass
class Repository:
    """A GitHub repository and, once cloned, its local working copy."""

    user: str
    repo: str
    tag: Optional[str] = None
    path: Optional[Path] = None
    runner: Optional[GitRunner] = field(default=None, repr=False, compare=False)

    @property
    def slug(self) -> str:
        return f"{self.user}/{self.repo}"

    def url(self, base_url: str = DEFAULT_GIT_BASE_URL) -> str:
        return f"{base_url.rstrip('/')}/{self.user}/{self.repo}.git"

    def root(self, cache_root: Path) -> Path:
        return Path(cache_root).expanduser() / self.user / self.repo

    def checkout_path(self, cache_root: Path) -> Path:
        return self.root(cache_root) / "checkouts" / (self.tag or _DEFAULT_CHECKOUT)

    def docs_path(self, cache_root: Path, commit_hash: str) -> Path:
        return self.root(cache_root) / "versions" / commit_hash / "docs"

    def version_label(self, commit_hash: str) -> str:
        return f"{self.user}/{self.repo}/versions/{commit_hash}"

    def clone(self, cache_root: Path, *, base_url: str = DEFAULT_GIT_BASE_URL) -> Path:
        """Shallow-clone into the cache, reusing an existing working copy."""
        destination = self.checkout_path(cache_root)
        self.path = destination

        if destination.exists():
            logger.info("Repository already exists at %s, using existing clone", destination)
            return destination

        destination.parent.mkdir(parents=True, exist_ok=True)
        args = ["git", "clone", "--depth", "1"]
        if self.tag:
            args.extend(["--branch", self.tag])
        args.extend([self.url(base_url), str(destination)])

        try:
            self._run(args)
        except (OSError, subprocess.CalledProcessError) as exc:
            shutil.rmtree(destination, ignore_errors=True)
            raise GitCloneError(f"could not clone repository {self.slug}: {exc}") from exc

        return destination

    def current_commit_hash(self) -> str:
        working_copy = self._require_path()
        try:
            output = self._run(["git", "rev-parse", "HEAD"], cwd=working_copy, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise GitError(f"failed to get HEAD reference: {exc}") from exc
        commit = output.strip()
        if not commit:
            raise GitError("failed to get HEAD reference: empty output")
        return commit

    def _require_path(self) -> Path:
        if self.path is None:
            raise GitError(f"repository {self.slug} has not been cloned")
        return self.path

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> str:
        runner = self.runner or _default_runner
        return runner(args, cwd=cwd, capture_output=capture_output)


__all__ = [
    "GitCloneError",
    "GitError",
    "Repository",
    "RepositoryPathError",
    "parse_repo_path",
]
