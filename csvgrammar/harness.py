"""
Row-count harness.

Every regular file in a directory is a test case whose expected row count is
its line count. Each file is parsed and the number of rows compared with that
count. This lives outside the parser: the parser only sees a buffer and a
source label.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional

from .decoding import decode_bytes
from .models import CsvParseError, HarnessCase, HarnessOutcome
from .parser import parse_document
from .rules import DEFAULT_HARNESS_DIR

logger = logging.getLogger(__name__)


def count_lines(path) -> int:
    # A final line without a terminator still counts.
    return len(Path(path).read_bytes().splitlines())


def load_test_cases(directory) -> List[HarnessCase]:
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"test directory not found: {root}")

    cases = []
    for entry in sorted(root.iterdir()):
        if entry.is_file():
            cases.append(HarnessCase(path=str(entry), expected_rows=count_lines(entry)))
    logger.debug("loaded %d test case(s) from %s", len(cases), root)
    return cases


def run_test_case(case: HarnessCase) -> HarnessOutcome:
    """
    Parse one case and compare row counts.

    A syntax error gives a failed outcome carrying the diagnostic. Read and
    decode errors propagate.
    """
    decoded = decode_bytes(Path(case.path).read_bytes())
    try:
        document = parse_document(decoded.text, source=case.path)
    except CsvParseError as exc:
        logger.info("%s: parse failed at %d:%d", case.path, exc.diagnostic.line, exc.diagnostic.column)
        return HarnessOutcome(case=case, diagnostic=exc.diagnostic)

    passed = document.row_count == case.expected_rows
    logger.info(
        "%s: parsed %d row(s), expected %d", case.path, document.row_count, case.expected_rows
    )
    return HarnessOutcome(
        case=case,
        parsed_rows=document.row_count,
        passed=passed,
        rendered=document.to_text(),
    )


def run_directory(directory, fail_fast: bool = False) -> Iterator[HarnessOutcome]:
    for case in load_test_cases(directory):
        outcome = run_test_case(case)
        yield outcome
        if fail_fast and outcome.diagnostic is not None:
            return


def format_outcome(outcome: HarnessOutcome) -> str:
    # Parse diagnostics go to stderr from main, not into this text.
    lines = [f"Testing {outcome.case.path}"]
    if outcome.diagnostic is None:
        lines.append(f"parsed {outcome.parsed_rows} row(s)")
        if outcome.rendered:
            lines.append(outcome.rendered)
    lines.append("TEST PASSED" if outcome.passed else "TEST FAILED")
    return "\n".join(lines) + "\n\n"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Parse every file in a directory and compare row counts with line counts"
    )
    parser.add_argument(
        "directory", nargs="?", default=DEFAULT_HARNESS_DIR,
        help=f"Directory of test files (defaults to {DEFAULT_HARNESS_DIR})",
    )
    parser.add_argument(
        "--fail-fast", action="store_true", help="Stop at the first file that fails to parse"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    all_passed = True
    try:
        for outcome in run_directory(args.directory, fail_fast=args.fail_fast):
            sys.stdout.write(format_outcome(outcome))
            if outcome.diagnostic is not None:
                sys.stderr.write(outcome.diagnostic.render() + "\nfailed to parse csv file\n")
            all_passed = all_passed and outcome.passed
    except (OSError, UnicodeDecodeError) as exc:
        sys.stderr.write(f"failed to read test input: {exc}\n")
        return 2

    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
