"""Checkpoint and error log entries for the seeding run."""

import enum
from typing import List, Optional

from .base import SeedModel


class CheckpointStatus(str, enum.Enum):
    """Lifecycle of one ingestion run"""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class CheckpointState(SeedModel):
    """
    Durable progress of an ingestion run.
    Totals only include partitions listed in processed_files.
    """

    started_at: str
    last_updated: str
    status: CheckpointStatus = CheckpointStatus.IN_PROGRESS
    processed_files: List[str] = []
    current_file: Optional[str] = None
    current_file_records: int = 0
    total_success: int = 0
    total_errors: int = 0
    total_skipped: int = 0

    def is_processed(self, file_key: str) -> bool:
        """Has this "set/lang" partition already completed"""
        return file_key in self.processed_files

    def mark_processed(
        self, file_key: str, success: int, errors: int, skipped: int
    ) -> None:
        """
        Fold a completed partition into the run totals
        :param file_key: "set/lang" identifier
        :param success: Records written
        :param errors: Records that failed
        :param skipped: Records left out
        """
        if file_key not in self.processed_files:
            self.processed_files = [*self.processed_files, file_key]
        self.total_success += success
        self.total_errors += errors
        self.total_skipped += skipped
        self.current_file = None
        self.current_file_records = 0


class ErrorType(str, enum.Enum):
    """Failure category of an error log entry"""

    VALIDATION = "validation"
    IMAGE = "image"
    DATABASE = "database"
    API = "api"


class ErrorRecord(SeedModel):
    """One append-only error log entry"""

    timestamp: str
    type: ErrorType
    set_code: str
    card_number: Optional[str] = None
    language: Optional[str] = None
    scryfall_id: Optional[str] = None
    message: str
