"""Tests for the SQLite card sink."""

import asyncio
import pathlib

import pytest

from tcgseed.errors import GameNotFoundError
from tcgseed.models import SeriesInfo, SinkRow
from tcgseed.sinks import SqliteCardSink

VOW = SeriesInfo(
    code="vow", name="Innistrad: Crimson Vow", release_date="2021-11-19", card_count=3
)


def make_row(series_id: str, **overrides) -> SinkRow:
    fields = {
        "series_id": series_id,
        "number": "1",
        "language": "en",
        "name": "Card",
        "rarity": "common",
        "image_url": None,
        "attributes": {"layout": "normal"},
    }
    fields.update(overrides)
    return SinkRow(**fields)


def test_upsert_same_key_keeps_one_row(tmp_path: pathlib.Path):
    async def scenario():
        async with SqliteCardSink(tmp_path.joinpath("cards.sqlite")) as sink:
            game_id = await sink.resolve_game("mtg")
            series_id = await sink.ensure_series(game_id, VOW)

            await sink.upsert_card(make_row(series_id, attributes={"v": 1}))
            await sink.upsert_card(
                make_row(series_id, name="Renamed", attributes={"v": 2})
            )

            return sink.count_cards(), sink.get_card(series_id, "1", "en")

    count, card = asyncio.run(scenario())

    assert count == 1
    assert card["name"] == "Renamed"
    assert card["attributes"] == {"v": 2}


def test_rows_differing_in_language_are_distinct():
    async def scenario():
        async with SqliteCardSink(pathlib.Path(":memory:")) as sink:
            game_id = await sink.resolve_game("mtg")
            series_id = await sink.ensure_series(game_id, VOW)
            await sink.upsert_card(make_row(series_id, language="en"))
            await sink.upsert_card(make_row(series_id, language="fr"))
            return sink.count_cards()

    assert asyncio.run(scenario()) == 2


def test_ensure_series_is_idempotent():
    async def scenario():
        async with SqliteCardSink(pathlib.Path(":memory:")) as sink:
            game_id = await sink.resolve_game("mtg")
            first = await sink.ensure_series(game_id, VOW)
            second = await sink.ensure_series(
                game_id,
                SeriesInfo(code="vow", name="Renamed", release_date=None, card_count=9),
            )
            row = sink.connection.execute(
                "SELECT name, max_set_base FROM series WHERE id = ?", (first,)
            ).fetchone()
            return first, second, row

    first, second, row = asyncio.run(scenario())

    assert first == second
    assert row == ("Renamed", 9)


def test_resolve_game_is_stable():
    async def scenario():
        async with SqliteCardSink(pathlib.Path(":memory:")) as sink:
            return await sink.resolve_game("mtg"), await sink.resolve_game("mtg")

    first, second = asyncio.run(scenario())
    assert first == second


def test_unknown_game_without_auto_register():
    async def scenario():
        async with SqliteCardSink(
            pathlib.Path(":memory:"), create_missing_game=False
        ) as sink:
            await sink.resolve_game("mtg")

    with pytest.raises(GameNotFoundError):
        asyncio.run(scenario())


def test_unopened_sink():
    with pytest.raises(RuntimeError):
        SqliteCardSink(pathlib.Path(":memory:")).count_cards()
