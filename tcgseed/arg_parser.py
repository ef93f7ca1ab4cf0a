"""
TCGSEED Arg Parser to determine what actions to take
"""

import argparse
import logging
import pathlib
from typing import List, Optional, Sequence

LOGGER = logging.getLogger(__name__)


def parse_languages(value: str) -> List[str]:
    """Parse language codes from a comma separated list."""
    languages = [code.strip().lower() for code in value.split(",") if code.strip()]
    if not languages:
        raise argparse.ArgumentTypeError("At least one language is required")
    return languages


def positive_int(value: str) -> int:
    """Integer that must be zero or more."""
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} must not be negative")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments from user to determine which stage
    of the pipeline to run and how.
    :param argv: Arguments to parse, sys.argv when omitted
    :return: Namespace of requests
    """
    parser = argparse.ArgumentParser("tcgseed")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    download = subparsers.add_parser(
        "download", help="Download the Scryfall all_cards bulk file."
    )
    download.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Re-download even when the bulk file is already present.",
    )
    download.add_argument(
        "--output",
        type=pathlib.Path,
        metavar="PATH",
        help="Where to save the bulk file (defaults to TCGSEED_BULK_PATH).",
    )

    split = subparsers.add_parser(
        "split", help="Split the bulk file into one file per set and language."
    )
    split.add_argument(
        "--dry-run",
        action="store_true",
        help="Scan and report only, write nothing.",
    )
    split.add_argument(
        "--lang",
        type=parse_languages,
        metavar="LANGS",
        help="Comma separated target languages, in priority order (e.g. en,fr).",
    )
    split.add_argument(
        "--min-cards",
        type=positive_int,
        metavar="N",
        help="Skip set/language combinations with fewer cards than this.",
    )
    split.add_argument(
        "--pretty",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Indent the partition files (default on).",
    )
    split.add_argument(
        "--input",
        type=pathlib.Path,
        metavar="PATH",
        help="Bulk file to split (defaults to TCGSEED_BULK_PATH).",
    )
    split.add_argument(
        "--output",
        type=pathlib.Path,
        metavar="DIR",
        help="Directory for the partition files and index.",
    )

    seed = subparsers.add_parser(
        "seed", help="Seed the card store from the split partition files."
    )
    seed.add_argument(
        "--dry-run",
        action="store_true",
        help="Count what would be processed, write nothing.",
    )
    seed.add_argument(
        "--lang",
        type=parse_languages,
        metavar="LANGS",
        help="Only seed these comma separated languages.",
    )
    seed.add_argument(
        "--set",
        type=lambda s: s.strip().lower(),
        metavar="SET",
        help="Only seed this set code.",
    )
    seed.add_argument(
        "--limit",
        type=positive_int,
        metavar="N",
        help="Maximum records processed per partition; the rest count as skipped.",
    )
    seed.add_argument(
        "--skip-images",
        action="store_true",
        help="Do not download or store card images.",
    )
    seed.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Record failures and keep going instead of aborting.",
    )
    seed.add_argument(
        "--resume",
        action="store_true",
        help="Skip partitions a previous run already completed.",
    )
    seed.add_argument(
        "--list",
        action="store_true",
        help="List the sets in the split index and exit.",
    )
    seed.add_argument(
        "--split-dir",
        type=pathlib.Path,
        metavar="DIR",
        help="Directory holding the partition files and index.",
    )

    return parser.parse_args(argv)
