"""
Tests for the three pass bulk splitter

Tests cover:
- split_bulk_data() end to end: partition files and index
- Minimum card threshold and language filters
- Byte-identical temp files regardless of handle pool capacity
- Re-splitting the same input
- Missing temp files and stale temp directories
- Dry runs writing nothing
"""

import pathlib
from typing import Any, Dict, List

import orjson
import pytest

from tcgseed import constants
from tcgseed.errors import MissingPrerequisiteError
from tcgseed.models import PartitionKey
from tcgseed.split import (
    SplitOptions,
    load_index,
    materialize_partitions,
    scan_metadata,
    select_valid_keys,
    split_bulk_data,
    write_partitions,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path.joinpath("magic-sets")


@pytest.fixture
def many_set_records(make_card) -> List[Dict[str, Any]]:
    """Records of five sets in two languages, interleaved"""
    records = []
    for number in range(1, 7):
        for set_code in ["vow", "mid", "neo", "snc", "dmu"]:
            records.append(make_card(set=set_code, collector_number=str(number)))
            if number % 2:
                records.append(
                    make_card(set=set_code, collector_number=str(number), lang="ja")
                )
    return records


def split(bulk_path: pathlib.Path, output_dir: pathlib.Path, **kwargs: Any):
    return split_bulk_data(
        SplitOptions(bulk_path=bulk_path, output_dir=output_dir, **kwargs)
    )


# ============================================================================
# SPLIT OUTPUT
# ============================================================================


def test_split_writes_partitions_and_index(write_bulk, sample_records, output_dir):
    result = split(
        write_bulk(sample_records), output_dir, target_languages=["en", "fr"]
    )

    index = load_index(output_dir)
    assert result.index == index
    assert result.index_path == output_dir.joinpath(constants.INDEX_FILE_NAME)

    vow = index.sets["vow"]
    assert {lang: entry.card_count for lang, entry in vow.languages.items()} == {
        "en": 3,
        "fr": 2,
    }
    assert vow.languages["fr"].file_path == "vow/fr.json"
    assert vow.total_cards == 5
    assert index.total_cards == 5
    assert index.total_files == 2
    assert index.total_sets == 1
    assert index.target_languages == ["en", "fr"]
    assert "tvow" not in index.sets


def test_split_min_cards_omits_small_partitions(
    write_bulk, sample_records, output_dir
):
    split(
        write_bulk(sample_records),
        output_dir,
        target_languages=["en", "fr"],
        min_cards=3,
    )

    index = load_index(output_dir)
    assert list(index.sets["vow"].languages) == ["en"]
    assert index.sets["vow"].languages["en"].card_count == 3
    assert not output_dir.joinpath("vow", "fr.json").exists()


def test_partition_file_contents(write_bulk, sample_records, output_dir):
    split(write_bulk(sample_records), output_dir, target_languages=["en", "fr"])

    partition = orjson.loads(output_dir.joinpath("vow", "en.json").read_bytes())
    assert partition["setCode"] == "vow"
    assert partition["setName"] == "Innistrad: Crimson Vow"
    assert partition["releaseDate"] == "2021-11-19"
    assert partition["setType"] == "expansion"
    assert partition["language"] == "en"
    assert partition["cardCount"] == 3
    # Order within a partition follows the bulk file
    assert [card["collector_number"] for card in partition["cards"]] == [
        "1",
        "2",
        "3",
    ]
    assert partition["cards"][0] == sample_records[0]


def test_split_removes_temp_dir(write_bulk, sample_records, output_dir):
    split(write_bulk(sample_records), output_dir, target_languages=["en", "fr"])

    assert not output_dir.joinpath(constants.TEMP_DIR_NAME).exists()


def test_split_minified_output(write_bulk, sample_records, output_dir):
    split(
        write_bulk(sample_records),
        output_dir,
        target_languages=["en"],
        pretty_print=False,
    )

    assert b"\n" not in output_dir.joinpath("vow", "en.json").read_bytes()


def test_split_counts_match_scan_for_any_threshold(
    write_bulk, many_set_records, tmp_path
):
    bulk_path = write_bulk(many_set_records)
    metadata = scan_metadata(bulk_path, ["en", "ja"]).metadata

    for min_cards in [1, 3, 4, 7]:
        output_dir = tmp_path.joinpath(f"split-{min_cards}")
        split(
            bulk_path,
            output_dir,
            target_languages=["en", "ja"],
            min_cards=min_cards,
            max_open_files=3,
        )
        index = load_index(output_dir)

        for key, set_entry in index.iter_partitions():
            written = orjson.loads(
                output_dir.joinpath(key.relative_path).read_bytes()
            )
            assert written["cardCount"] == len(written["cards"])
            assert (
                set_entry.languages[key.language].card_count
                == metadata[key.set_code].languages[key.language]
            )


def test_resplit_is_idempotent(write_bulk, many_set_records, output_dir):
    bulk_path = write_bulk(many_set_records)

    first = split(bulk_path, output_dir, target_languages=["en", "ja"])
    second = split(bulk_path, output_dir, target_languages=["en", "ja"])

    assert first.index is not None and second.index is not None
    assert first.index.total_cards == second.index.total_cards
    assert first.index.total_files == second.index.total_files
    assert {
        key: entry.languages[key.language].card_count
        for key, entry in first.index.iter_partitions()
    } == {
        key: entry.languages[key.language].card_count
        for key, entry in second.index.iter_partitions()
    }


def test_stale_temp_files_are_cleared(write_bulk, sample_records, output_dir):
    stale = output_dir.joinpath(constants.TEMP_DIR_NAME, "vow", "en.jsonl")
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b'{"id": "stale", "set": "vow", "lang": "en"}\n')

    split(write_bulk(sample_records), output_dir, target_languages=["en"])

    assert load_index(output_dir).sets["vow"].languages["en"].card_count == 3


def test_dry_run_writes_nothing(write_bulk, sample_records, output_dir):
    result = split(
        write_bulk(sample_records),
        output_dir,
        target_languages=["en", "fr"],
        dry_run=True,
    )

    assert result.index is None
    assert result.valid_keys == {
        PartitionKey("vow", "en"): 3,
        PartitionKey("vow", "fr"): 2,
    }
    assert not output_dir.exists()


def test_missing_bulk_file(tmp_path, output_dir):
    with pytest.raises(MissingPrerequisiteError):
        split(tmp_path.joinpath("missing.json"), output_dir)


# ============================================================================
# PASS 2 / PASS 3
# ============================================================================


def test_temp_files_identical_for_any_pool_capacity(
    write_bulk, many_set_records, tmp_path
):
    bulk_path = write_bulk(many_set_records)
    metadata = scan_metadata(bulk_path, ["en", "ja"]).metadata
    valid_keys, _ = select_valid_keys(metadata, ["en", "ja"])

    outputs = {}
    for capacity in [1, 10_000]:
        temp_dir = tmp_path.joinpath(f"temp-{capacity}")
        temp_dir.mkdir()
        counts = write_partitions(
            bulk_path, valid_keys, temp_dir, max_open_files=capacity, batch_size=3
        )
        assert counts == valid_keys
        outputs[capacity] = {
            str(path.relative_to(temp_dir)): path.read_bytes()
            for path in sorted(temp_dir.rglob("*.jsonl"))
        }

    assert outputs[1] == outputs[10_000]
    assert len(outputs[1]) == len(valid_keys)


def test_missing_temp_file_is_left_out(write_bulk, sample_records, tmp_path):
    bulk_path = write_bulk(sample_records)
    metadata = scan_metadata(bulk_path, ["en", "fr"]).metadata
    valid_keys, _ = select_valid_keys(metadata, ["en", "fr"])
    temp_dir = tmp_path.joinpath("temp")
    temp_dir.mkdir()
    write_partitions(bulk_path, valid_keys, temp_dir)
    temp_dir.joinpath("vow", "fr.jsonl").unlink()

    materialized = materialize_partitions(
        metadata, valid_keys, temp_dir, tmp_path.joinpath("out")
    )

    assert [partition.key for partition in materialized] == [
        PartitionKey("vow", "en")
    ]
    assert not tmp_path.joinpath("out", "vow", "fr.json").exists()
    assert not temp_dir.joinpath("vow", "en.jsonl").exists()
