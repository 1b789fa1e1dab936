"""Run metadata persisted next to generated documentation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict


class MetadataError(RuntimeError):
    """Raised when a metadata payload cannot be interpreted."""


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: object) -> datetime:
    if not isinstance(value, str):
        raise MetadataError("generated_at must be an RFC 3339 string")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MetadataError(f"invalid generated_at timestamp: {value}") from exc


@dataclass
class Metadata:
    """Describes how and from which commit a docs directory was produced."""

    commit_hash: str
    model_used: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    file_versions: Dict[str, str] = field(default_factory=dict)
    deduplicated: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "commit_hash": self.commit_hash,
            "generated_at": _format_timestamp(self.generated_at),
            "model_used": self.model_used,
            "file_versions": dict(self.file_versions),
            "deduplicated": self.deduplicated,
        }

    @classmethod
    def from_dict(cls, payload: object) -> "Metadata":
        if not isinstance(payload, dict):
            raise MetadataError("metadata must be a JSON object")
        commit_hash = payload.get("commit_hash")
        model_used = payload.get("model_used")
        if not isinstance(commit_hash, str) or not isinstance(model_used, str):
            raise MetadataError("metadata requires commit_hash and model_used strings")
        file_versions = payload.get("file_versions")
        if file_versions is None:
            file_versions = {}
        if not isinstance(file_versions, dict):
            raise MetadataError("file_versions must be an object")
        deduplicated = payload.get("deduplicated", False)
        if not isinstance(deduplicated, bool):
            raise MetadataError("deduplicated must be a boolean")
        return cls(
            commit_hash=commit_hash,
            model_used=model_used,
            generated_at=_parse_timestamp(payload.get("generated_at")),
            file_versions={str(key): str(value) for key, value in file_versions.items()},
            deduplicated=deduplicated,
        )

    @classmethod
    def load(cls, path: Path) -> "Metadata":
        """Read metadata from ``path``; undecodable or malformed JSON surfaces as ``MetadataError``."""
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as exc:
            raise MetadataError(f"metadata in {path} is not valid UTF-8: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise MetadataError(f"invalid metadata JSON in {path}: {exc}") from exc
        return cls.from_dict(payload)

    def save(self, path: Path) -> None:
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")


__all__ = ["Metadata", "MetadataError"]
