"""CLI entrypoint for repocontext."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import Orchestrator, RunOutcome


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repocontext",
        description="Clone a GitHub repository and generate documentation for it with Claude.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config.yml (defaults to ~/.repocontext/config.yml).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "repository",
        metavar="user/repo[@tag]",
        help="GitHub repository to document, optionally pinned to a tag or branch.",
    )
    return parser


def _stream_to(stream: TextIO):
    def _sink(chunk: str) -> None:
        stream.write(chunk)
        stream.flush()

    return _sink


def _print_outcome(outcome: RunOutcome) -> None:
    generated_at = outcome.metadata.to_dict()["generated_at"]
    print(f"\nDocumentation generated and saved to: {outcome.docs_path}")
    print(f"Version: {outcome.version_label}")
    print(f"Generated with: {outcome.metadata.model_used}")
    print(f"Generated at: {generated_at}")
    print("\n=== Generated Documentation ===\n")
    print(outcome.full_document)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repocontext."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logger = configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(config_path=args.config)
        config.require_api_key()
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    orchestrator = Orchestrator(config, on_chunk=_stream_to(sys.stdout))
    try:
        outcome = orchestrator.run(args.repository)
    except (RuntimeError, OSError) as exc:
        logger.debug("Run for %s failed", args.repository, exc_info=True)
        parser.exit(1, f"repocontext failed: {exc}\nRun with --verbose for more details.\n")

    _print_outcome(outcome)


if __name__ == "__main__":
    main(sys.argv[1:])
