# main.py
"""CLI entry point for the narrative workshop pipeline."""

from __future__ import annotations

import argparse
import sys

from orchestration.cli_runner import run

from models import EssayType


def main() -> None:
    """Parse command-line arguments and run all three stages."""
    parser = argparse.ArgumentParser(description="Workshop a college essay.")
    parser.add_argument("--essay", required=True, help="Path to the essay text file")
    parser.add_argument("--prompt", required=True, help="Essay prompt text")
    parser.add_argument(
        "--essay-type",
        default=None,
        choices=[t.value for t in EssayType],
        help="Essay type (default: uc_piq)",
    )
    parser.add_argument("--output", default=None, help="Write the result JSON here")
    args = parser.parse_args()
    sys.exit(run(args.essay, args.prompt, args.essay_type, args.output))


if __name__ == "__main__":
    main()
