"""
Pass 1: stream the bulk file once and collect partition metadata.
No card bodies are kept, only counts and set details.
"""

import dataclasses
import gzip
import logging
import pathlib
from typing import IO, Any, Collection, Dict, Iterator, List, Tuple

import ijson

from .. import constants
from ..errors import BulkInputError, MissingPrerequisiteError
from ..models import PartitionKey, PartitionMetadata

LOGGER = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def open_bulk_file(bulk_path: pathlib.Path) -> IO[bytes]:
    """
    Open the bulk file for binary streaming, gunzipping on the fly if needed
    :param bulk_path: Bulk JSON array, optionally gzip compressed
    :return: Binary file object
    """
    if not bulk_path.is_file():
        raise MissingPrerequisiteError(f"Bulk data file not found: {bulk_path}")

    with bulk_path.open("rb") as file:
        magic = file.read(2)

    if magic == GZIP_MAGIC:
        return gzip.open(bulk_path, "rb")
    return bulk_path.open("rb")


def iter_records(bulk_path: pathlib.Path) -> Iterator[Dict[str, Any]]:
    """
    Lazily decode the records of the bulk JSON array, one at a time.
    The sequence is finite and can only be restarted by calling again,
    which reopens the file.
    :param bulk_path: Bulk JSON array
    :return: Iterator of decoded records
    """
    with open_bulk_file(bulk_path) as file:
        try:
            for position, record in enumerate(
                ijson.items(file, "item", use_float=True)
            ):
                if not isinstance(record, dict):
                    raise BulkInputError(
                        f"Record #{position} of {bulk_path.name} is not an object"
                    )
                yield record
        except (ijson.JSONError, EOFError, gzip.BadGzipFile) as error:
            raise BulkInputError(
                f"Malformed bulk data in {bulk_path.name}: {error}"
            ) from error


@dataclasses.dataclass
class ScanResult:
    """Output of the metadata pass"""

    metadata: Dict[str, PartitionMetadata]
    records_scanned: int


def scan_metadata(
    bulk_path: pathlib.Path,
    target_languages: Collection[str],
    excluded_set_types: Collection[str] = frozenset(constants.EXCLUDED_SET_TYPES),
    progress_interval: int = constants.SCAN_PROGRESS_INTERVAL,
) -> ScanResult:
    """
    Build per-group metadata from a single streaming read of the bulk file
    :param bulk_path: Bulk JSON array
    :param target_languages: Languages to keep, in priority order
    :param excluded_set_types: Set types to leave out entirely
    :param progress_interval: Log every N records scanned
    :return: Metadata keyed by set code
    """
    metadata: Dict[str, PartitionMetadata] = {}
    languages = set(target_languages)
    excluded = set(excluded_set_types)
    scanned = 0

    for record in iter_records(bulk_path):
        scanned += 1
        if progress_interval and scanned % progress_interval == 0:
            LOGGER.info(
                f"{scanned / 1_000_000:.1f}M cards scanned, {len(metadata)} sets found..."
            )

        key = PartitionKey.from_record(record)
        if key is None:
            continue
        if record.get("set_type") in excluded:
            continue
        if key.language not in languages:
            continue

        set_metadata = metadata.get(key.set_code)
        if set_metadata is None:
            set_metadata = PartitionMetadata(
                code=key.set_code,
                name=record.get("set_name") or key.set_code.upper(),
                release_date=record.get("released_at") or None,
                set_type=record.get("set_type") or "unknown",
            )
            metadata[key.set_code] = set_metadata
        set_metadata.add_record(key.language)

    for set_metadata in metadata.values():
        set_metadata.resolve_total(target_languages)

    LOGGER.info(
        f"Pass 1 complete: {scanned:,} cards scanned, {len(metadata)} sets found"
    )
    return ScanResult(metadata=metadata, records_scanned=scanned)


def select_valid_keys(
    metadata: Dict[str, PartitionMetadata],
    target_languages: List[str],
    min_cards: int = 1,
) -> Tuple[Dict[PartitionKey, int], int]:
    """
    Decide which (set, language) partitions are worth writing
    :param metadata: Output of the metadata pass
    :param target_languages: Requested languages, in output order
    :param min_cards: Partitions with fewer records are left out
    :return: Valid keys mapped to their expected count, and how many non-empty
             partitions fell under the threshold
    """
    valid_keys: Dict[PartitionKey, int] = {}
    below_threshold = 0

    for set_code, set_metadata in metadata.items():
        for language in target_languages:
            count = set_metadata.languages.get(language, 0)
            if count and count >= min_cards:
                valid_keys[PartitionKey(set_code, language)] = count
            elif count > 0:
                below_threshold += 1

    return valid_keys, below_threshold
