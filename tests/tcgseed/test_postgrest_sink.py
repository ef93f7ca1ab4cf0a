"""Tests for the PostgREST card sink against an in-process aiohttp server."""

import asyncio
from typing import Any, Dict, List

import pytest
from aiohttp import web
import aiohttp.test_utils

from tcgseed.errors import GameNotFoundError, SinkError
from tcgseed.models import SeriesInfo, SinkRow
from tcgseed.retry_controller import RetryController
from tcgseed.sinks import PostgrestCardSink


class FakePostgrest:
    """Just enough of PostgREST for the sink"""

    def __init__(self, rate_limit_first_card: bool = False) -> None:
        self.series: Dict[str, Dict[str, Any]] = {}
        self.cards: Dict[tuple, Dict[str, Any]] = {}
        self.headers: List[Dict[str, str]] = []
        self.rate_limit_first_card = rate_limit_first_card
        self.reject_cards = False
        self.cards_missing = False

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/rest/v1/tcg_games", self.get_games)
        app.router.add_get("/rest/v1/series", self.get_series)
        app.router.add_post("/rest/v1/series", self.post_series)
        app.router.add_patch("/rest/v1/series", self.patch_series)
        app.router.add_post("/rest/v1/cards", self.post_card)
        return app

    async def get_games(self, request: web.Request) -> web.Response:
        self.headers.append(dict(request.headers))
        if request.query.get("slug") == "eq.mtg":
            return web.json_response([{"id": "game-1"}])
        return web.json_response([])

    async def get_series(self, request: web.Request) -> web.Response:
        code = request.query["code"].removeprefix("eq.")
        if code in self.series:
            return web.json_response([{"id": self.series[code]["id"]}])
        return web.json_response([])

    async def post_series(self, request: web.Request) -> web.Response:
        body = await request.json()
        row = {**body, "id": f"series-{body['code']}"}
        self.series[body["code"]] = row
        return web.json_response([row], status=201)

    async def patch_series(self, request: web.Request) -> web.Response:
        series_id = request.query["id"].removeprefix("eq.")
        body = await request.json()
        for row in self.series.values():
            if row["id"] == series_id:
                row.update(body)
        return web.Response(status=204)

    async def post_card(self, request: web.Request) -> web.Response:
        if self.rate_limit_first_card:
            self.rate_limit_first_card = False
            return web.Response(status=429)
        if self.cards_missing:
            return web.Response(status=404)
        if self.reject_cards:
            return web.Response(status=400, text="bad row")
        assert request.query["on_conflict"] == "series_id,number,language"
        body = await request.json()
        self.cards[(body["series_id"], body["number"], body["language"])] = body
        return web.Response(status=201)


async def no_sleep(delay: float) -> None:
    return None


def run_against(fake: FakePostgrest, scenario) -> Any:
    async def _run() -> Any:
        server = aiohttp.test_utils.TestServer(fake.app())
        await server.start_server()
        try:
            sink = PostgrestCardSink(
                str(server.make_url("/")),
                "service-key",
                RetryController(max_retries=2, sleep=no_sleep),
            )
            async with sink:
                return await scenario(sink)
        finally:
            await server.close()

    return asyncio.run(_run())


VOW = SeriesInfo(code="vow", name="Crimson Vow", release_date="2021-11-19", card_count=3)


def make_row(series_id: str, **overrides: Any) -> SinkRow:
    fields: Dict[str, Any] = {
        "series_id": series_id,
        "number": "1",
        "language": "en",
        "name": "Card",
        "rarity": "common",
        "image_url": None,
        "attributes": {"v": 1},
    }
    fields.update(overrides)
    return SinkRow(**fields)


def test_seed_flow():
    fake = FakePostgrest()

    async def scenario(sink: PostgrestCardSink):
        game_id = await sink.resolve_game("mtg")
        series_id = await sink.ensure_series(game_id, VOW)
        again = await sink.ensure_series(
            game_id,
            SeriesInfo(code="vow", name="Renamed", release_date=None, card_count=4),
        )
        await sink.upsert_card(make_row(series_id))
        await sink.upsert_card(make_row(series_id, attributes={"v": 2}))
        return game_id, series_id, again

    game_id, series_id, again = run_against(fake, scenario)

    assert game_id == "game-1"
    assert series_id == again == "series-vow"
    assert fake.series["vow"]["name"] == "Renamed"
    assert fake.series["vow"]["max_set_base"] == 4
    assert list(fake.cards.values()) == [make_row("series-vow", attributes={"v": 2}).to_dict()]
    assert fake.headers[0]["apikey"] == "service-key"
    assert fake.headers[0]["Authorization"] == "Bearer service-key"


def test_unknown_game():
    async def scenario(sink: PostgrestCardSink):
        await sink.resolve_game("pokemon")

    with pytest.raises(GameNotFoundError):
        run_against(FakePostgrest(), scenario)


def test_rate_limited_upsert_is_retried():
    fake = FakePostgrest(rate_limit_first_card=True)

    async def scenario(sink: PostgrestCardSink):
        await sink.upsert_card(make_row("series-vow"))

    run_against(fake, scenario)

    assert len(fake.cards) == 1


def test_rejected_upsert_raises_sink_error():
    fake = FakePostgrest()
    fake.reject_cards = True

    async def scenario(sink: PostgrestCardSink):
        await sink.upsert_card(make_row("series-vow"))

    with pytest.raises(SinkError):
        run_against(fake, scenario)


def test_upsert_against_missing_endpoint_raises_sink_error():
    fake = FakePostgrest()
    fake.cards_missing = True

    async def scenario(sink: PostgrestCardSink):
        await sink.upsert_card(make_row("series-vow"))

    with pytest.raises(SinkError):
        run_against(fake, scenario)

    assert not fake.cards
