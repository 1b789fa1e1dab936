"""Tests for run metadata serialisation."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import pytest

from repocontext.docs.metadata import Metadata, MetadataError


def test_metadata_save_and_load(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    meta = Metadata(
        commit_hash="abc",
        model_used="claude",
        generated_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
    )
    meta.save(path)

    loaded = Metadata.load(path)

    assert loaded == meta
    assert json.loads(path.read_text(encoding="utf-8"))["generated_at"] == "2024-01-02T03:04:05Z"


def test_metadata_keeps_non_utc_offset() -> None:
    stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=2)))
    payload = Metadata(commit_hash="a", model_used="m", generated_at=stamp).to_dict()
    assert payload["generated_at"] == "2024-01-02T03:04:05+02:00"
    assert Metadata.from_dict(payload).generated_at == stamp


def test_metadata_ignores_unknown_keys() -> None:
    meta = Metadata.from_dict(
        {
            "commit_hash": "a",
            "model_used": "m",
            "generated_at": "2024-01-02T03:04:05Z",
            "extra": 1,
        }
    )
    assert meta.deduplicated is False
    assert meta.file_versions == {}


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"model_used": "m", "generated_at": "2024-01-02T03:04:05Z"},
        {"commit_hash": "a", "model_used": "m", "generated_at": "yesterday"},
        {"commit_hash": "a", "model_used": "m"},
        {"commit_hash": "a", "model_used": "m", "generated_at": "2024-01-02T03:04:05Z", "file_versions": []},
        {"commit_hash": "a", "model_used": "m", "generated_at": "2024-01-02T03:04:05Z", "file_versions": "x"},
        {"commit_hash": "a", "model_used": "m", "generated_at": "2024-01-02T03:04:05Z", "deduplicated": "false"},
        {"commit_hash": "a", "model_used": "m", "generated_at": "2024-01-02T03:04:05Z", "deduplicated": 1},
    ],
)
def test_metadata_rejects_invalid_payloads(payload: object) -> None:
    with pytest.raises(MetadataError):
        Metadata.from_dict(payload)


def test_metadata_load_rejects_bad_json(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(MetadataError):
        Metadata.load(path)


def test_metadata_accepts_null_file_versions() -> None:
    meta = Metadata.from_dict(
        {
            "commit_hash": "a",
            "model_used": "m",
            "generated_at": "2024-01-02T03:04:05Z",
            "file_versions": None,
            "deduplicated": True,
        }
    )
    assert meta.file_versions == {}
    assert meta.deduplicated is True


def test_metadata_load_rejects_undecodable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    path.write_bytes(b"\xff\xfe garbage")
    with pytest.raises(MetadataError, match="UTF-8"):
        Metadata.load(path)
