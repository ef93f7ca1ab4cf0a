"""
Pass 2: stream the bulk file again and fan every kept record out into
its partition's line-delimited temp file
"""

import collections
import itertools
import logging
import pathlib
import shutil
from typing import Any, Dict, Iterable, Iterator, List, Mapping

import orjson

from .. import constants
from ..models import PartitionKey
from .handle_pool import FileHandlePool
from .scanner import iter_records

LOGGER = logging.getLogger(__name__)


def prepare_temp_dir(temp_dir: pathlib.Path) -> None:
    """
    Start pass 2 from an empty temp directory.
    Leftovers of an interrupted split would otherwise be appended to.
    :param temp_dir: Directory holding the per-set *.jsonl files
    """
    if temp_dir.exists():
        LOGGER.info(f"Removing stale temp files in {temp_dir}")
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)


def temp_file_path(temp_dir: pathlib.Path, key: PartitionKey) -> pathlib.Path:
    """Where the records of key are staged between pass 2 and pass 3"""
    return temp_dir.joinpath(key.temp_file_name)


def iter_batches(
    records: Iterable[Dict[str, Any]], batch_size: int
) -> Iterator[List[Dict[str, Any]]]:
    """
    Group a record stream into lists of batch_size.
    The source is not advanced again until the caller asks for the next batch.
    """
    iterator = iter(records)
    while True:
        batch = list(itertools.islice(iterator, batch_size))
        if not batch:
            return
        yield batch


def drain_batch(
    batch: List[Dict[str, Any]],
    valid_keys: Mapping[PartitionKey, Any],
    pool: FileHandlePool,
    temp_dir: pathlib.Path,
    written_counts: Dict[PartitionKey, int],
) -> int:
    """
    Write one batch into the partition temp files
    :param batch: Records pulled from the decoder
    :param valid_keys: Partitions that are being written
    :param pool: Handle pool to write through
    :param temp_dir: Temp file directory
    :param written_counts: Updated in place
    :return: Records written from this batch
    """
    # Group by partition so each handle is fetched once per batch
    lines_by_key: Dict[PartitionKey, List[bytes]] = collections.defaultdict(list)
    for record in batch:
        key = PartitionKey.from_record(record)
        if key is None or key not in valid_keys:
            continue
        lines_by_key[key].append(orjson.dumps(record) + b"\n")

    written = 0
    for key, lines in lines_by_key.items():
        handle = pool.get(key, temp_file_path(temp_dir, key))
        handle.writelines(lines)
        written_counts[key] = written_counts.get(key, 0) + len(lines)
        written += len(lines)
    return written


def write_partitions(
    bulk_path: pathlib.Path,
    valid_keys: Mapping[PartitionKey, Any],
    temp_dir: pathlib.Path,
    max_open_files: int = constants.MAX_OPEN_FILES,
    batch_size: int = constants.WRITE_BATCH_SIZE,
    progress_interval: int = constants.SCAN_PROGRESS_INTERVAL,
) -> Dict[PartitionKey, int]:
    """
    Append every record of a valid partition, as one JSON line, to that
    partition's temp file. Record order inside a partition follows the bulk file.
    :param bulk_path: Bulk JSON array
    :param valid_keys: Partitions selected after pass 1
    :param temp_dir: Directory for the *.jsonl files, must exist
    :param max_open_files: File handle pool capacity
    :param batch_size: Records read before draining into files
    :param progress_interval: Log every N records read
    :return: Lines written per partition
    """
    written_counts: Dict[PartitionKey, int] = {key: 0 for key in valid_keys}
    records_read = 0
    records_written = 0
    next_progress = progress_interval

    with FileHandlePool(max_open_files) as pool:
        for batch in iter_batches(iter_records(bulk_path), batch_size):
            records_read += len(batch)
            records_written += drain_batch(
                batch, valid_keys, pool, temp_dir, written_counts
            )

            if progress_interval and records_read >= next_progress:
                next_progress += progress_interval
                LOGGER.info(
                    f"{records_read / 1_000_000:.1f}M cards processed, "
                    f"{records_written:,} written, {len(pool)} files open..."
                )

        LOGGER.debug(
            f"File handles opened {pool.opened_total} times, evicted {pool.evicted_total}"
        )

    LOGGER.info(f"Pass 2 complete: {records_written:,} cards written to temp files")
    return written_counts
