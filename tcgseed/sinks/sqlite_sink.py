"""SQLite card sink, a local stand-in for the hosted store."""

import asyncio
import json
import logging
import pathlib
import sqlite3
import uuid
from typing import Any, Dict, Optional

from ..errors import GameNotFoundError, SinkError
from ..models import SeriesInfo, SinkRow
from .abstract_sink import AbstractCardSink

LOGGER = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS tcg_games (
    id TEXT PRIMARY KEY,
    slug TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS series (
    id TEXT PRIMARY KEY,
    tcg_game_id TEXT NOT NULL REFERENCES tcg_games(id),
    code TEXT NOT NULL,
    name TEXT NOT NULL,
    release_date TEXT,
    max_set_base INTEGER,
    master_set INTEGER,
    UNIQUE (tcg_game_id, code)
);
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    series_id TEXT NOT NULL REFERENCES series(id),
    number TEXT NOT NULL,
    language TEXT NOT NULL,
    name TEXT NOT NULL,
    rarity TEXT,
    image_url TEXT,
    attributes TEXT,
    UNIQUE (series_id, number, language)
);
"""

UPSERT_CARD = """
INSERT INTO cards (id, series_id, number, language, name, rarity, image_url, attributes)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (series_id, number, language) DO UPDATE SET
    name = excluded.name,
    rarity = excluded.rarity,
    image_url = excluded.image_url,
    attributes = excluded.attributes
"""


class SqliteCardSink(AbstractCardSink):
    """
    Writes cards into a SQLite database.

    Calls run on a worker thread so the event loop keeps moving; only one
    call is ever in flight because the seeder is sequential.
    """

    database_path: pathlib.Path
    create_missing_game: bool

    def __init__(
        self, database_path: pathlib.Path, create_missing_game: bool = True
    ) -> None:
        """
        :param database_path: SQLite file, ":memory:" for a throwaway database
        :param create_missing_game: Register unknown TCG slugs instead of failing
        """
        self.database_path = database_path
        self.create_missing_game = create_missing_game
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Open connection, error if open() was not awaited"""
        if self._connection is None:
            raise RuntimeError("Sink not opened. Use async context manager.")
        return self._connection

    async def open(self) -> None:
        if str(self.database_path) != ":memory:":
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(
            str(self.database_path), check_same_thread=False
        )
        self._connection.executescript(SCHEMA)
        self._connection.commit()

    async def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    async def resolve_game(self, slug: str) -> str:
        return await asyncio.to_thread(self._resolve_game, slug)

    def _resolve_game(self, slug: str) -> str:
        row = self.connection.execute(
            "SELECT id FROM tcg_games WHERE slug = ?", (slug,)
        ).fetchone()
        if row:
            return str(row[0])
        if not self.create_missing_game:
            raise GameNotFoundError(f"TCG '{slug}' not found in database")

        game_id = str(uuid.uuid4())
        with self.connection:
            self.connection.execute(
                "INSERT INTO tcg_games (id, slug, name) VALUES (?, ?, ?)",
                (game_id, slug, slug.upper()),
            )
        LOGGER.info(f"Registered TCG '{slug}' in {self.database_path}")
        return game_id

    async def ensure_series(self, game_id: str, series: SeriesInfo) -> str:
        return await asyncio.to_thread(self._ensure_series, game_id, series)

    def _ensure_series(self, game_id: str, series: SeriesInfo) -> str:
        try:
            with self.connection:
                row = self.connection.execute(
                    "SELECT id FROM series WHERE tcg_game_id = ? AND code = ?",
                    (game_id, series.code),
                ).fetchone()
                if row:
                    self.connection.execute(
                        "UPDATE series SET name = ?, release_date = ?, "
                        "max_set_base = ?, master_set = ? WHERE id = ?",
                        (
                            series.name,
                            series.release_date,
                            series.card_count,
                            series.card_count,
                            row[0],
                        ),
                    )
                    return str(row[0])

                series_id = str(uuid.uuid4())
                self.connection.execute(
                    "INSERT INTO series (id, tcg_game_id, code, name, release_date, "
                    "max_set_base, master_set) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        series_id,
                        game_id,
                        series.code,
                        series.name,
                        series.release_date,
                        series.card_count,
                        series.card_count,
                    ),
                )
                return series_id
        except sqlite3.Error as error:
            raise SinkError(f"Failed to write series {series.code}: {error}") from error

    async def upsert_card(self, row: SinkRow) -> None:
        await asyncio.to_thread(self._upsert_card, row)

    def _upsert_card(self, row: SinkRow) -> None:
        try:
            with self.connection:
                self.connection.execute(
                    UPSERT_CARD,
                    (
                        str(uuid.uuid4()),
                        row.series_id,
                        row.number,
                        row.language,
                        row.name,
                        row.rarity,
                        row.image_url,
                        json.dumps(row.attributes, sort_keys=True),
                    ),
                )
        except sqlite3.Error as error:
            raise SinkError(
                f"Database upsert failed for {row.number} [{row.language}]: {error}"
            ) from error

    def count_cards(self) -> int:
        """Number of card rows"""
        return int(self.connection.execute("SELECT COUNT(*) FROM cards").fetchone()[0])

    def get_card(
        self, series_id: str, number: str, language: str
    ) -> Optional[Dict[str, Any]]:
        """
        Look a card row up by its idempotency key
        :return: Column name to value, attributes decoded
        """
        cursor = self.connection.execute(
            "SELECT * FROM cards WHERE series_id = ? AND number = ? AND language = ?",
            (series_id, number, language),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        card = dict(zip([column[0] for column in cursor.description], row))
        card["attributes"] = json.loads(card["attributes"] or "{}")
        return card
