"""
Pass 3: turn the line-delimited temp files into partition files and
write the index describing them
"""

import dataclasses
import datetime
import logging
import pathlib
from typing import Any, Dict, Iterator, List, Mapping

import orjson

from .. import constants
from ..models import (
    IndexLanguageEntry,
    IndexSetEntry,
    PartitionFile,
    PartitionKey,
    PartitionMetadata,
    SplitIndex,
)
from ..utils import write_json_atomic
from .writer import temp_file_path

LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MaterializedPartition:
    """A partition file that exists on disk"""

    key: PartitionKey
    card_count: int
    file_path: str


def iter_jsonl(file_path: pathlib.Path) -> Iterator[Dict[str, Any]]:
    """
    Read a JSON Lines file one record at a time
    :param file_path: *.jsonl file
    :return: Iterator of decoded lines, blank lines ignored
    """
    with file_path.open("rb") as file:
        for line in file:
            if line.strip():
                yield orjson.loads(line)


def materialize_partition(
    key: PartitionKey,
    set_metadata: PartitionMetadata,
    temp_path: pathlib.Path,
    output_dir: pathlib.Path,
    pretty_print: bool = True,
) -> MaterializedPartition:
    """
    Convert one temp file into its final partition file, then delete the temp file
    :param key: Partition being written
    :param set_metadata: Group details from pass 1
    :param temp_path: Staged records
    :param output_dir: Split root directory
    :param pretty_print: Indent the partition file
    :return: Description of the written file
    """
    cards = list(iter_jsonl(temp_path))

    partition_file = PartitionFile(
        set_code=set_metadata.code,
        set_name=set_metadata.name,
        release_date=set_metadata.release_date,
        set_type=set_metadata.set_type,
        language=key.language,
        card_count=len(cards),
        cards=cards,
    )
    write_json_atomic(
        output_dir.joinpath(key.relative_path), partition_file.to_json(), pretty_print
    )
    temp_path.unlink()

    return MaterializedPartition(key, len(cards), key.relative_path)


def materialize_partitions(
    metadata: Mapping[str, PartitionMetadata],
    valid_keys: Mapping[PartitionKey, int],
    temp_dir: pathlib.Path,
    output_dir: pathlib.Path,
    pretty_print: bool = True,
) -> List[MaterializedPartition]:
    """
    Materialize every valid partition, one at a time
    :param metadata: Group details from pass 1
    :param valid_keys: Partitions with their pass 1 counts
    :param temp_dir: Directory of *.jsonl files from pass 2
    :param output_dir: Split root directory
    :param pretty_print: Indent the partition files
    :return: Partitions that were actually written
    """
    materialized: List[MaterializedPartition] = []

    for key, expected_count in valid_keys.items():
        temp_path = temp_file_path(temp_dir, key)
        if not temp_path.is_file():
            LOGGER.warning(f"Temp file missing for {key.file_key}, leaving it out")
            continue

        partition = materialize_partition(
            key, metadata[key.set_code], temp_path, output_dir, pretty_print
        )
        if partition.card_count != expected_count:
            LOGGER.warning(
                f"{key.file_key}: scanned {expected_count} cards "
                f"but wrote {partition.card_count}"
            )
        materialized.append(partition)

        if len(materialized) % 50 == 0:
            LOGGER.info(f"{len(materialized)} JSON files created...")

    LOGGER.info(f"Pass 3 complete: {len(materialized)} partition files written")
    return materialized


def build_index(
    metadata: Mapping[str, PartitionMetadata],
    materialized: List[MaterializedPartition],
    target_languages: List[str],
    source_file: str,
) -> SplitIndex:
    """
    Describe every materialized partition.
    Only partitions that exist on disk are listed.
    :param metadata: Group details from pass 1
    :param materialized: Partitions written by pass 3
    :param target_languages: Requested languages, in output order
    :param source_file: Bulk file the split was made from
    :return: The index
    """
    by_set: Dict[str, Dict[str, MaterializedPartition]] = {}
    for partition in materialized:
        by_set.setdefault(partition.key.set_code, {})[partition.key.language] = partition

    sets: Dict[str, IndexSetEntry] = {}
    total_cards = 0
    for set_code, set_metadata in metadata.items():
        partitions = by_set.get(set_code)
        if not partitions:
            continue

        languages = {
            language: IndexLanguageEntry(
                card_count=partitions[language].card_count,
                file_path=partitions[language].file_path,
            )
            for language in target_languages
            if language in partitions
        }
        set_total = sum(entry.card_count for entry in languages.values())
        sets[set_code] = IndexSetEntry(
            name=set_metadata.name,
            release_date=set_metadata.release_date,
            set_type=set_metadata.set_type,
            languages=languages,
            total_cards=set_total,
        )
        total_cards += set_total

    return SplitIndex(
        generated_at=datetime.datetime.now(datetime.timezone.utc)
        .isoformat()
        .replace("+00:00", "Z"),
        source_file=source_file,
        target_languages=list(target_languages),
        total_sets=len(sets),
        total_files=sum(len(entry.languages) for entry in sets.values()),
        total_cards=total_cards,
        sets=sets,
    )


def write_index(index: SplitIndex, output_dir: pathlib.Path) -> pathlib.Path:
    """
    Persist the index next to the partition files
    :return: Path of the index file
    """
    index_path = output_dir.joinpath(constants.INDEX_FILE_NAME)
    write_json_atomic(index_path, index.to_json())
    return index_path


def load_index(output_dir: pathlib.Path) -> SplitIndex:
    """
    Read the index of a previous split
    :param output_dir: Split root directory
    :return: Parsed index
    """
    index_path = output_dir.joinpath(constants.INDEX_FILE_NAME)
    return SplitIndex.model_validate(orjson.loads(index_path.read_bytes()))
