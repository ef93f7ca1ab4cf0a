"""
Split the bulk card file into one file per (set, language).

Three streaming passes keep memory flat regardless of the bulk size:
- Pass 1: collect metadata only (set names, counts)
- Pass 2: stream cards into per-partition JSON Lines temp files
- Pass 3: convert each temp file into a partition file, then write the index

The passes are not checkpointed; an interrupted split is re-run from scratch.
"""

import dataclasses
import logging
import pathlib
import shutil
from typing import Dict, List, Optional

from .. import constants
from ..errors import MissingPrerequisiteError
from ..models import PartitionKey, PartitionMetadata, SplitIndex
from ..seed_config import SeedConfig
from ..utils import format_bytes, log_section, log_separator
from .materializer import build_index, materialize_partitions, write_index
from .scanner import scan_metadata, select_valid_keys
from .writer import prepare_temp_dir, write_partitions

LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass
class SplitOptions:
    """What a split run should do"""

    bulk_path: pathlib.Path = constants.BULK_DATA_PATH
    output_dir: pathlib.Path = constants.SPLIT_PATH
    target_languages: List[str] = dataclasses.field(
        default_factory=lambda: list(constants.DEFAULT_LANGUAGES)
    )
    min_cards: int = 1
    dry_run: bool = False
    pretty_print: bool = True
    max_open_files: int = constants.MAX_OPEN_FILES
    excluded_set_types: List[str] = dataclasses.field(
        default_factory=lambda: sorted(constants.EXCLUDED_SET_TYPES)
    )

    @classmethod
    def from_config(cls, **overrides: object) -> "SplitOptions":
        """
        Defaults from the [Split] section, with CLI overrides on top.
        Overrides set to None are ignored.
        """
        config = SeedConfig()
        options = cls(
            target_languages=config.languages,
            min_cards=config.min_cards,
            max_open_files=config.max_open_files,
            excluded_set_types=config.excluded_set_types,
        )
        for field_name, value in overrides.items():
            if value is not None:
                setattr(options, field_name, value)
        return options


@dataclasses.dataclass
class SplitResult:
    """Outcome of a split run"""

    metadata: Dict[str, PartitionMetadata]
    valid_keys: Dict[PartitionKey, int]
    skipped_partitions: int
    index: Optional[SplitIndex] = None
    index_path: Optional[pathlib.Path] = None


def split_bulk_data(options: SplitOptions) -> SplitResult:
    """
    Run the three passes
    :param options: Split configuration
    :return: Metadata, selected partitions, and (unless dry run) the index
    """
    log_section("Magic: The Gathering - Bulk Data Splitter")

    if options.dry_run:
        LOGGER.warning("DRY RUN MODE - No files will be written")

    LOGGER.info(f"Target languages: {', '.join(options.target_languages)}")
    if options.min_cards > 1:
        LOGGER.info(f"Minimum cards per set/language: {options.min_cards}")

    if not options.bulk_path.is_file():
        raise MissingPrerequisiteError(
            f"Bulk data file not found: {options.bulk_path}. "
            "Run first: python -m tcgseed download"
        )
    LOGGER.info(f"Source file: {format_bytes(options.bulk_path.stat().st_size)}")

    temp_dir = options.output_dir.joinpath(constants.TEMP_DIR_NAME)
    if not options.dry_run:
        options.output_dir.mkdir(parents=True, exist_ok=True)
        prepare_temp_dir(temp_dir)
        LOGGER.info(f"Output directory: {options.output_dir}")

    log_separator()
    LOGGER.info("Pass 1: Collecting metadata...")
    scan = scan_metadata(
        options.bulk_path, options.target_languages, options.excluded_set_types
    )
    valid_keys, skipped = select_valid_keys(
        scan.metadata, options.target_languages, options.min_cards
    )

    LOGGER.info(f"Set/language combinations to write: {len(valid_keys)}")
    if skipped:
        LOGGER.warning(f"Skipped (< {options.min_cards} cards): {skipped}")

    result = SplitResult(scan.metadata, valid_keys, skipped)
    if options.dry_run:
        show_summary(result, options)
        return result

    log_separator()
    LOGGER.info("Pass 2: Writing cards to temp files...")
    write_partitions(
        options.bulk_path, valid_keys, temp_dir, max_open_files=options.max_open_files
    )

    log_separator()
    LOGGER.info("Pass 3: Converting to JSON format...")
    materialized = materialize_partitions(
        scan.metadata, valid_keys, temp_dir, options.output_dir, options.pretty_print
    )
    shutil.rmtree(temp_dir, ignore_errors=True)

    result.index = build_index(
        scan.metadata, materialized, options.target_languages, str(options.bulk_path)
    )
    result.index_path = write_index(result.index, options.output_dir)
    LOGGER.info(f"Index written: {result.index_path}")

    show_summary(result, options)
    log_separator()
    LOGGER.info("Split complete!")
    LOGGER.info("Next steps:")
    LOGGER.info("  python -m tcgseed seed --list")
    LOGGER.info("  python -m tcgseed seed --set vow --lang en")
    return result


def show_summary(result: SplitResult, options: SplitOptions) -> None:
    """
    Log what the split found: totals, cards per language, per set type,
    and the largest sets
    """
    log_separator()
    log_section("Summary")
    LOGGER.info(f"Sets: {len(result.metadata)}")
    LOGGER.info(f"Files to write: {len(result.valid_keys)}")

    log_separator()
    LOGGER.info("Cards by language:")
    cards_by_language: Dict[str, int] = {}
    for key, count in result.valid_keys.items():
        cards_by_language[key.language] = cards_by_language.get(key.language, 0) + count
    for language in options.target_languages:
        LOGGER.info(
            f"  {language:<5} {cards_by_language.get(language, 0):>10,} cards"
        )

    log_separator()
    LOGGER.info("Cards by set type:")
    by_set_type: Dict[str, int] = {}
    for set_metadata in result.metadata.values():
        by_set_type[set_metadata.set_type] = (
            by_set_type.get(set_metadata.set_type, 0)
            + set_metadata.all_languages_total
        )
    for set_type, count in sorted(by_set_type.items(), key=lambda x: -x[1]):
        LOGGER.info(f"  {set_type:<20} {count:>10,} cards")

    log_separator()
    LOGGER.info("Top 10 largest sets:")
    largest = sorted(
        result.metadata.values(), key=lambda m: m.all_languages_total, reverse=True
    )[:10]
    for set_metadata in largest:
        languages = ", ".join(
            f"{language}:{count}" for language, count in set_metadata.languages.items()
        )
        LOGGER.info(
            f"  {set_metadata.code.upper():<6} "
            f"{set_metadata.all_languages_total:>5} cards ({languages})"
        )

    if options.dry_run:
        log_separator()
        LOGGER.warning("DRY RUN - No files written")
