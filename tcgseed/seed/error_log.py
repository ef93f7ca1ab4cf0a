"""
Append-only JSON error log
"""

import logging
import pathlib
from typing import List, Optional

import orjson

from ..models import ErrorRecord, ErrorType
from ..utils import utc_timestamp, write_json_atomic

LOGGER = logging.getLogger(__name__)


class ErrorLog:
    """
    JSON array of ErrorRecord entries. Entries are only ever appended;
    nothing is rewritten, merged, or deduplicated.
    """

    error_log_path: pathlib.Path
    enabled: bool
    appended: int

    def __init__(self, error_log_path: pathlib.Path, enabled: bool = True) -> None:
        self.error_log_path = error_log_path
        self.enabled = enabled
        self.appended = 0

    def read(self) -> List[dict]:
        """
        Current entries on disk
        :return: Raw entries, empty if the file is missing or unreadable
        """
        if not self.error_log_path.is_file():
            return []
        try:
            entries = orjson.loads(self.error_log_path.read_bytes())
        except orjson.JSONDecodeError:
            LOGGER.warning(f"Unreadable error log {self.error_log_path}, starting over")
            return []
        return entries if isinstance(entries, list) else []

    def append(self, record: ErrorRecord) -> None:
        """
        Add one entry to the end of the log
        :param record: Entry to add
        """
        self.appended += 1
        if not self.enabled:
            return
        entries = self.read()
        entries.append(record.to_json(exclude_none=True))
        write_json_atomic(self.error_log_path, entries)

    def record(
        self,
        error_type: ErrorType,
        set_code: str,
        message: str,
        card_number: Optional[str] = None,
        language: Optional[str] = None,
        scryfall_id: Optional[str] = None,
    ) -> ErrorRecord:
        """
        Build and append an entry stamped with the current time
        :return: The appended entry
        """
        entry = ErrorRecord(
            timestamp=utc_timestamp(),
            type=error_type,
            set_code=set_code,
            card_number=card_number,
            language=language,
            scryfall_id=scryfall_id,
            message=message,
        )
        self.append(entry)
        return entry
