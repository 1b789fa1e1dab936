"""Shared constants for documentation sections and their files."""

from __future__ import annotations

SECTIONS: tuple[str, ...] = (
    "overview",
    "getting_started",
    "usage",
)

SECTION_FILES: dict[str, str] = {
    "overview": "01_overview.md",
    "getting_started": "02_getting_started.md",
    "usage": "03_usage.md",
}

FULL_DOC_FILENAME = "full.md"
METADATA_FILENAME = "metadata.json"


__all__ = [
    "FULL_DOC_FILENAME",
    "METADATA_FILENAME",
    "SECTIONS",
    "SECTION_FILES",
]
