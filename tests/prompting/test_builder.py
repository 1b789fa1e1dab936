"""Tests for the prompt builder."""

from __future__ import annotations

from pathlib import Path

import pytest

from repocontext.models import RepoFile
from repocontext.prompting.builder import PromptBuilder, format_file_contents, format_file_list


def test_format_file_list_sorts_paths() -> None:
    assert format_file_list({"b.py": "", "a.md": "", "src/c.go": ""}) == "a.md\nb.py\nsrc/c.go"


def test_format_file_contents_uses_delimiters_in_path_order() -> None:
    contents = {"z.txt": "last", "a.txt": "first"}
    assert format_file_contents(contents) == "\n=== a.txt ===\nfirst\n\n=== z.txt ===\nlast\n"


@pytest.mark.parametrize(
    ("section", "marker"),
    [
        ("overview", "Project status"),
        ("getting_started", "Prerequisites and system requirements"),
        ("usage", "Advanced usage examples"),
    ],
)
def test_section_prompts_embed_files(section: str, marker: str) -> None:
    prompt = PromptBuilder().build_section_prompt(section, {"main.py": "print(1)"})

    assert marker in prompt
    assert "Repository files:\nmain.py\n" in prompt
    assert "=== main.py ===\nprint(1)" in prompt


def test_unknown_section_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown section"):
        PromptBuilder().build_section_prompt("license", {})


def test_selection_prompt_lists_files_sorted() -> None:
    files = {
        "src/main.py": RepoFile(path="src/main.py", size=30),
        "README.md": RepoFile(path="README.md", size=12),
    }

    prompt = PromptBuilder().build_selection_prompt(files, 40)

    assert "maximum total size of 40 bytes" in prompt
    assert "Total size: 42 bytes" in prompt
    assert "Files:\nREADME.md (12 bytes)\nsrc/main.py (30 bytes)\n" in prompt
    assert "stays under 40 bytes" in prompt


def test_dedupe_prompt_appends_content() -> None:
    prompt = PromptBuilder().build_dedupe_prompt("# One\n\n# Two")

    assert prompt.startswith("You are cleaning up a combined markdown documentation file.")
    assert prompt.endswith("Content to clean up:\n# One\n\n# Two")


def test_custom_templates_take_precedence(tmp_path: Path) -> None:
    (tmp_path / "usage.j2").write_text("Custom usage for {{ file_list }}", encoding="utf-8")
    builder = PromptBuilder(tmp_path)

    assert builder.build_section_prompt("usage", {"a.py": ""}) == "Custom usage for a.py"
    assert "Project status" in builder.build_section_prompt("overview", {"a.py": ""})
