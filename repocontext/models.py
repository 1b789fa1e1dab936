"""Core data models shared across repocontext components."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class RepoFile:
    """A text file discovered in the repository snapshot."""

    path: str
    size: int
    content: Optional[str] = None


@dataclass
class SelectionResult:
    """Ordered selection of catalog paths and their cumulative size."""

    paths: List[str]
    total_size: int


@dataclass
class GeneratedDocument:
    """Documentation sections for one repository snapshot."""

    sections: Dict[str, str] = field(default_factory=dict)
    full: str = ""
    from_cache: bool = False
