"""Tests for repocontext.selector."""

from __future__ import annotations

from typing import Dict

import pytest

from repocontext.models import RepoFile
from repocontext.selector import FileSelector, SelectionError, parse_selection, total_size
from tests._fixtures.generator import RecordingGenerator


def _catalog(**sizes: int) -> Dict[str, RepoFile]:
    return {
        path.replace("_", "."): RepoFile(path=path.replace("_", "."), size=size)
        for path, size in sizes.items()
    }


def test_under_budget_returns_everything_without_calls() -> None:
    files = _catalog(a_txt=100, c_txt=150)
    generator = RecordingGenerator()

    result = FileSelector(generator).select(files, 250)

    assert sorted(result.paths) == ["a.txt", "c.txt"]
    assert result.total_size == 250
    assert generator.prompts == []


def test_over_budget_skips_candidates_that_do_not_fit() -> None:
    # b.bin never reaches the catalog: the scanner drops binary files
    files = _catalog(a_txt=100, c_txt=150)
    generator = RecordingGenerator(["c.txt\na.txt"])

    result = FileSelector(generator).select(files, 200)

    assert len(generator.prompts) == 1
    assert result.paths == ["c.txt"]
    assert result.total_size == 150


def test_selection_prompt_lists_manifest_and_budget() -> None:
    files = _catalog(a_txt=100, c_txt=150)
    generator = RecordingGenerator(["a.txt"])

    FileSelector(generator).select(files, 200)

    prompt = generator.prompts[0]
    assert "maximum total size of 200 bytes" in prompt
    assert "Total size: 250 bytes" in prompt
    assert "a.txt (100 bytes)\nc.txt (150 bytes)" in prompt


def test_selection_streams_chunks_to_sink() -> None:
    files = _catalog(a_txt=100, c_txt=150)
    generator = RecordingGenerator(["a.txt"], chunks=["a.", "txt"])
    received = []

    FileSelector(generator, on_chunk=received.append).select(files, 200)

    assert received == ["a.", "txt"]


def test_parse_strips_size_annotations_and_blank_lines() -> None:
    files = _catalog(a_txt=100, c_txt=150)

    result = parse_selection("\n  c.txt (150 bytes)  \n\n a.txt\n", files, 300)

    assert result.paths == ["c.txt", "a.txt"]
    assert result.total_size == 250


def test_parse_strips_list_markers_and_backticks() -> None:
    files = {
        "README.md": RepoFile(path="README.md", size=10),
        "src/main.py": RepoFile(path="src/main.py", size=20),
        "go.mod": RepoFile(path="go.mod", size=5),
    }

    result = parse_selection("- README.md\n2. `src/main.py`\n* go.mod", files, 100)

    assert result.paths == ["README.md", "src/main.py", "go.mod"]


def test_parse_ignores_unknown_paths_and_repeats() -> None:
    files = _catalog(a_txt=100, c_txt=150)

    result = parse_selection("missing.txt\na.txt\na.txt\nc.txt", files, 1000)

    assert result.paths == ["a.txt", "c.txt"]
    assert result.total_size == 250


def test_parse_continues_after_oversized_candidate() -> None:
    files = {
        "big.md": RepoFile(path="big.md", size=500),
        "small.md": RepoFile(path="small.md", size=50),
        "tiny.md": RepoFile(path="tiny.md", size=10),
    }

    result = parse_selection("small.md\nbig.md\ntiny.md", files, 100)

    assert result.paths == ["small.md", "tiny.md"]
    assert result.total_size == 60


def test_parse_without_matches_raises() -> None:
    files = _catalog(a_txt=100)

    with pytest.raises(SelectionError, match="no files were selected"):
        parse_selection("nothing useful here\n", files, 1000)


def test_parse_raises_when_nothing_fits() -> None:
    files = _catalog(a_txt=100)

    with pytest.raises(SelectionError):
        parse_selection("a.txt", files, 50)


@pytest.mark.parametrize(
    "response",
    [
        "c.txt\na.txt",
        "a.txt\nc.txt\nd.txt",
        "d.txt\nd.txt\nc.txt (150 bytes)\nghost.txt\na.txt",
        "e.txt\na.txt\nd.txt\nc.txt",
    ],
)
def test_parse_never_exceeds_budget_or_leaves_catalog(response: str) -> None:
    files = _catalog(a_txt=100, c_txt=150, d_txt=40, e_txt=90)
    budget = 200

    result = parse_selection(response, files, budget)

    assert result.total_size <= budget
    assert set(result.paths) <= set(files)
    assert result.total_size == sum(files[path].size for path in result.paths)


def test_total_size_sums_catalog() -> None:
    assert total_size(_catalog(a_txt=1, b_txt=2, c_txt=3)) == 6
    assert total_size({}) == 0
