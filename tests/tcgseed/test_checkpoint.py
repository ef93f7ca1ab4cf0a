"""
Tests for the checkpoint store and error log

Tests cover:
- Fresh, resumed, completed, and failed checkpoints
- Corrupt checkpoint files
- Atomic writes and disabled (dry run) stores
- Append-only error log entries
"""

import pathlib

import orjson
import pytest

from tcgseed.models import CheckpointStatus, ErrorType
from tcgseed.seed import CheckpointStore, ErrorLog


@pytest.fixture
def checkpoint_path(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path.joinpath("logs", "progress.json")


def write_checkpoint(checkpoint_path: pathlib.Path, **fields) -> None:
    contents = {
        "startedAt": "2024-01-01T00:00:00Z",
        "lastUpdated": "2024-01-01T00:10:00Z",
        "status": "in_progress",
        "processedFiles": ["vow/en"],
        "currentFile": "vow/fr",
        "currentFileRecords": 50,
        "totalSuccess": 3,
        "totalErrors": 0,
        "totalSkipped": 1,
    }
    contents.update(fields)
    checkpoint_path.parent.mkdir(parents=True, exist_ok=True)
    checkpoint_path.write_bytes(orjson.dumps(contents))


def test_without_resume_starts_fresh(checkpoint_path):
    write_checkpoint(checkpoint_path)

    state = CheckpointStore(checkpoint_path).load()

    assert state.processed_files == []
    assert state.total_success == 0
    assert state.status == CheckpointStatus.IN_PROGRESS


def test_resume_loads_previous_state(checkpoint_path):
    write_checkpoint(checkpoint_path)

    state = CheckpointStore(checkpoint_path, resume=True).load()

    assert state.is_processed("vow/en")
    assert not state.is_processed("vow/fr")
    assert state.current_file == "vow/fr"
    assert state.total_success == 3
    assert state.total_skipped == 1


def test_resume_without_checkpoint_starts_fresh(checkpoint_path):
    state = CheckpointStore(checkpoint_path, resume=True).load()

    assert state.processed_files == []


def test_resume_after_completed_run_starts_fresh(checkpoint_path):
    write_checkpoint(checkpoint_path, status="completed")

    state = CheckpointStore(checkpoint_path, resume=True).load()

    assert state.processed_files == []


def test_resume_after_failed_run_continues(checkpoint_path):
    write_checkpoint(checkpoint_path, status="failed")

    state = CheckpointStore(checkpoint_path, resume=True).load()

    assert state.processed_files == ["vow/en"]
    assert state.status == CheckpointStatus.IN_PROGRESS


def test_corrupt_checkpoint_starts_fresh(checkpoint_path, caplog):
    checkpoint_path.parent.mkdir(parents=True)
    checkpoint_path.write_text("{not json", encoding="utf-8")

    state = CheckpointStore(checkpoint_path, resume=True).load()

    assert state.processed_files == []
    assert "Failed to load checkpoint" in caplog.text


def test_save_round_trips(checkpoint_path):
    store = CheckpointStore(checkpoint_path, resume=True)
    state = store.fresh_state()
    state.mark_processed("vow/en", success=3, errors=1, skipped=2)

    store.save(state)

    on_disk = orjson.loads(checkpoint_path.read_bytes())
    assert on_disk["processedFiles"] == ["vow/en"]
    assert on_disk["totalErrors"] == 1
    assert on_disk["currentFile"] is None
    assert store.load() == state
    assert not list(checkpoint_path.parent.glob("*.tmp"))


def test_disabled_store_writes_nothing(checkpoint_path):
    store = CheckpointStore(checkpoint_path, enabled=False)

    store.save(store.fresh_state())

    assert not checkpoint_path.exists()


def test_mark_processed_accumulates():
    state = CheckpointStore.fresh_state()
    state.current_file = "vow/en"
    state.current_file_records = 50

    state.mark_processed("vow/en", 3, 0, 1)
    state.mark_processed("vow/fr", 2, 1, 0)

    assert state.processed_files == ["vow/en", "vow/fr"]
    assert (state.total_success, state.total_errors, state.total_skipped) == (5, 1, 1)
    assert state.current_file is None
    assert state.current_file_records == 0


def test_error_log_appends(tmp_path):
    error_log = ErrorLog(tmp_path.joinpath("errors.json"))

    error_log.record(ErrorType.DATABASE, "vow", "boom", card_number="1", language="en")
    error_log.record(ErrorType.API, "vow", "partition failed")

    entries = error_log.read()
    assert [entry["type"] for entry in entries] == ["database", "api"]
    assert entries[0]["setCode"] == "vow"
    assert entries[0]["cardNumber"] == "1"
    assert "cardNumber" not in entries[1]
    assert error_log.appended == 2


def test_error_log_keeps_previous_entries(tmp_path):
    path = tmp_path.joinpath("errors.json")
    ErrorLog(path).record(ErrorType.IMAGE, "vow", "first run")

    ErrorLog(path).record(ErrorType.IMAGE, "vow", "second run")

    assert [entry["message"] for entry in ErrorLog(path).read()] == [
        "first run",
        "second run",
    ]


def test_disabled_error_log_writes_nothing(tmp_path):
    path = tmp_path.joinpath("errors.json")
    error_log = ErrorLog(path, enabled=False)

    error_log.record(ErrorType.API, "vow", "dry")

    assert not path.exists()
    assert error_log.appended == 1
