"""
API for how sinks need to interact with the seeder
"""

import abc
import logging
from typing import Any

from ..models import SeriesInfo, SinkRow

LOGGER = logging.getLogger(__name__)


class AbstractCardSink(abc.ABC):
    """
    Abstract class to indicate what every card sink should provide.
    All writes must be idempotent: repeating one leaves a single row.
    """

    async def __aenter__(self) -> "AbstractCardSink":
        await self.open()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def open(self) -> None:
        """
        Acquire connections, create schema, etc.
        """

    async def close(self) -> None:
        """
        Release whatever open() acquired
        """

    @abc.abstractmethod
    async def resolve_game(self, slug: str) -> str:
        """
        Find the TCG the cards belong to
        :param slug: TCG slug, e.g. "mtg"
        :return: Sink id of the TCG
        :raises GameNotFoundError: The TCG is unknown to the sink
        """

    @abc.abstractmethod
    async def ensure_series(self, game_id: str, series: SeriesInfo) -> str:
        """
        Create the series row if absent, update it if present
        :param game_id: Owning TCG
        :param series: Series details
        :return: Sink id of the series
        """

    @abc.abstractmethod
    async def upsert_card(self, row: SinkRow) -> None:
        """
        Insert the card, or update it if (series_id, number, language) exists
        :param row: Card to write
        :raises SinkError: The write failed
        """
