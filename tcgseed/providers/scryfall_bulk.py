"""
Scryfall bulk data downloader
"""

import contextlib
import logging
import pathlib
import time
from typing import Any, Dict, Optional

import requests
import requests_cache

from .. import constants
from ..errors import BulkInputError, RemoteError
from ..retryable_session import retryable_session
from ..utils import format_bytes, log_section

LOGGER = logging.getLogger(__name__)


class ScryfallBulkProvider:
    """
    Fetches the all_cards bulk file from the Scryfall bulk-data API.

    The file is streamed to disk in chunks; a partial file is removed if the
    download fails so later stages never see a truncated array.
    """

    bulk_data_url: str = constants.SCRYFALL_BULK_DATA_URL
    bulk_type: str = constants.SCRYFALL_BULK_TYPE
    chunk_size: int = 1024 * 1024
    progress_interval: float = 5.0

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        bulk_type: Optional[str] = None,
    ) -> None:
        self.session = session or retryable_session(cache_name="scryfall_bulk")
        if bulk_type:
            self.bulk_type = bulk_type

    def get_bulk_info(self) -> Dict[str, Any]:
        """
        Look up the bulk entry (download URI, size, update time)
        :return: Bulk-data entry of the configured type
        """
        response = self.session.get(self.bulk_data_url)
        if not response.ok:
            raise RemoteError(
                f"Bulk-data listing failed: {response.status_code}",
                response.status_code,
            )

        for entry in response.json().get("data", []):
            if entry.get("type") == self.bulk_type:
                return dict(entry)

        raise RemoteError(f"Bulk type '{self.bulk_type}' not found")

    def download(self, destination: pathlib.Path, force: bool = False) -> pathlib.Path:
        """
        Download the bulk file, unless it is already present
        :param destination: Where to save it
        :param force: Download even when the file exists
        :return: Path to the bulk file
        """
        log_section("Scryfall Bulk Data Download")

        if destination.is_file() and not force:
            size = destination.stat().st_size
            LOGGER.info(f"Bulk file already exists: {destination} ({format_bytes(size)})")
            LOGGER.info("Use --force to re-download")
            return destination

        info = self.get_bulk_info()
        LOGGER.info(f"Updated: {info.get('updated_at')}")
        if info.get("size"):
            LOGGER.info(f"Size: {format_bytes(info['size'])}")

        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._stream_to_file(info["download_uri"], destination)
            self.verify(destination)
        except Exception:
            if destination.exists():
                destination.unlink()
                LOGGER.info("Removed partial download")
            raise

        LOGGER.info(f"Saved to {destination}")
        return destination

    def _stream_to_file(self, url: str, destination: pathlib.Path) -> None:
        LOGGER.info(f"Downloading {url}")
        # Responses this large must never land in the HTTP cache
        no_cache = (
            self.session.cache_disabled()
            if isinstance(self.session, requests_cache.CachedSession)
            else contextlib.nullcontext()
        )
        with no_cache, self.session.get(url, stream=True) as response:
            if not response.ok:
                raise RemoteError(
                    f"Download failed: {response.status_code}", response.status_code
                )
            total = int(response.headers.get("Content-Length") or 0)

            downloaded = 0
            started = last_report = time.monotonic()
            with destination.open("wb") as file:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    file.write(chunk)
                    downloaded += len(chunk)

                    now = time.monotonic()
                    if now - last_report >= self.progress_interval:
                        last_report = now
                        self._log_progress(downloaded, total, now - started)

        elapsed = max(time.monotonic() - started, 0.001)
        LOGGER.info(
            f"Downloaded {format_bytes(downloaded)} in {elapsed:.1f}s "
            f"({format_bytes(downloaded / elapsed)}/s)"
        )

    @staticmethod
    def _log_progress(downloaded: int, total: int, elapsed: float) -> None:
        speed = downloaded / elapsed if elapsed else 0.0
        if total:
            LOGGER.info(
                f"  {downloaded / total * 100:.1f}% "
                f"({format_bytes(downloaded)} / {format_bytes(total)}) "
                f"{format_bytes(speed)}/s"
            )
        else:
            LOGGER.info(f"  {format_bytes(downloaded)} {format_bytes(speed)}/s")

    @staticmethod
    def verify(destination: pathlib.Path) -> None:
        """
        Cheap sanity check that the file holds a JSON array
        :param destination: Downloaded file
        """
        with destination.open("rb") as file:
            head = file.read(64).lstrip()
        if not head.startswith(b"["):
            raise BulkInputError(f"{destination} does not contain a JSON array")
