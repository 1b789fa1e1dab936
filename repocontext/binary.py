"""Heuristics for telling binary files apart from text files."""

from __future__ import annotations

import math
from collections import Counter
from pathlib import Path

SAMPLE_SIZE = 512
ENTROPY_THRESHOLD = 7.0
TEXT_RATIO_THRESHOLD = 0.7

# Magic numbers of common binary formats.
BINARY_SIGNATURES: tuple[bytes, ...] = (
    b"\x7fELF",  # ELF
    b"MZ",  # DOS/PE executable
    b"PK\x03\x04",  # ZIP
    b"\x1f\x8b",  # GZIP
    b"\x89PNG",  # PNG
    b"\xff\xd8\xff",  # JPEG
    b"GIF8",  # GIF
    b"BM",  # BMP
    b"%PDF",  # PDF
)


def calculate_entropy(data: bytes) -> float:
    """Return the Shannon entropy of ``data`` in bits per byte."""
    if not data:
        return 0.0
    length = len(data)
    entropy = 0.0
    for count in Counter(data).values():
        probability = count / length
        entropy -= probability * math.log2(probability)
    return entropy


def _is_text_byte(value: int) -> bool:
    # printable ASCII, or tab/LF/VT/FF/CR
    return 32 <= value <= 126 or 9 <= value <= 13


def is_binary(sample: bytes) -> bool:
    """Classify a leading byte sample of a file.

    Checks run in order and stop at the first positive match: known magic
    signature, embedded NUL byte, entropy above ``ENTROPY_THRESHOLD`` and a
    printable-character ratio under ``TEXT_RATIO_THRESHOLD``. An empty
    sample is text.
    """
    if not sample:
        return False

    if sample.startswith(BINARY_SIGNATURES):
        return True

    if b"\x00" in sample:
        return True

    if calculate_entropy(sample) > ENTROPY_THRESHOLD:
        return True

    text_chars = sum(1 for value in sample if _is_text_byte(value))
    return text_chars / len(sample) < TEXT_RATIO_THRESHOLD


def is_binary_file(path: Path | str) -> bool:
    """Read the first ``SAMPLE_SIZE`` bytes of ``path`` and classify them."""
    with Path(path).open("rb") as handle:
        sample = handle.read(SAMPLE_SIZE)
    return is_binary(sample)


__all__ = [
    "BINARY_SIGNATURES",
    "SAMPLE_SIZE",
    "calculate_entropy",
    "is_binary",
    "is_binary_file",
]
