"""
Bounded pool of append-mode file handles
"""

import collections
import logging
import pathlib
from typing import IO, Dict, Hashable

from .. import constants

LOGGER = logging.getLogger(__name__)


class FileHandlePool:
    """
    Keeps at most `capacity` files open for appending.

    Handles are tracked in the order they were opened. Opening a new one
    while the pool is full first closes the `evict_batch` oldest handles.
    Files are always (re)opened in append mode, so an evicted file picks
    up exactly where it left off the next time it is needed.
    """

    capacity: int
    evict_batch: int
    opened_total: int
    evicted_total: int

    def __init__(
        self,
        capacity: int = constants.MAX_OPEN_FILES,
        evict_batch: int = constants.EVICT_BATCH_SIZE,
    ) -> None:
        if capacity < 1:
            raise ValueError("FileHandlePool needs room for at least one handle")
        self.capacity = capacity
        self.evict_batch = max(1, min(evict_batch, capacity))
        self._handles: "collections.OrderedDict[Hashable, IO[bytes]]" = (
            collections.OrderedDict()
        )
        self.opened_total = 0
        self.evicted_total = 0

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._handles

    def __enter__(self) -> "FileHandlePool":
        return self

    def __exit__(self, *args: object) -> None:
        self.close_all()

    def get(self, key: Hashable, file_path: pathlib.Path) -> IO[bytes]:
        """
        Handle for key, opening (or reopening) file_path in append mode
        :param key: Identity of the file in the pool
        :param file_path: Where the file lives
        :return: Writable binary handle
        """
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        if len(self._handles) >= self.capacity:
            self._evict()

        file_path.parent.mkdir(parents=True, exist_ok=True)
        handle = file_path.open("ab")
        self._handles[key] = handle
        self.opened_total += 1
        return handle

    def _evict(self) -> None:
        """Close the oldest batch of handles"""
        for _ in range(min(self.evict_batch, len(self._handles))):
            _, handle = self._handles.popitem(last=False)
            handle.close()
            self.evicted_total += 1
        LOGGER.debug(f"Evicted file handles, {len(self._handles)} still open")

    def close_all(self) -> None:
        """Flush and close every handle still open"""
        while self._handles:
            _, handle = self._handles.popitem(last=False)
            handle.close()

    def open_handles(self) -> Dict[Hashable, IO[bytes]]:
        """Snapshot of the currently open handles, oldest first"""
        return dict(self._handles)
