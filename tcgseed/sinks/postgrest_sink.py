"""PostgREST card sink for the hosted relational store."""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..errors import (
    GameNotFoundError,
    NotFoundError,
    RateLimitedError,
    RemoteError,
    SinkError,
)
from ..models import SeriesInfo, SinkRow
from ..retry_controller import RetryController
from .abstract_sink import AbstractCardSink

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class PostgrestCardSink(AbstractCardSink):
    """
    Writes cards through a PostgREST endpoint (`<url>/rest/v1`).

    Handles:
    - Service key authentication
    - Retries through the shared RetryController
    - Card upserts keyed on (series_id, number, language)
    """

    def __init__(self, url: str, service_key: str, retry: RetryController) -> None:
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.service_key = service_key
        self.retry = retry
        self._session: Optional[aiohttp.ClientSession] = None

    async def open(self) -> None:
        self._session = aiohttp.ClientSession(
            headers={
                "apikey": self.service_key,
                "Authorization": f"Bearer {self.service_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
        )

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def _send(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        One HTTP exchange, with error statuses turned into exceptions.
        A success without a body yields an empty dict, so None only ever
        means the retry controller saw a 404.
        """
        if self._session is None:
            raise RuntimeError("Sink not opened. Use async context manager.")

        headers = {"Prefer": prefer} if prefer else {}
        async with self._session.request(
            method,
            f"{self.base_url}/{table}",
            params=params,
            json=payload,
            headers=headers,
        ) as resp:
            if resp.status == 404:
                raise NotFoundError(f"{method} {table}: not found")
            if resp.status == 429:
                raise RateLimitedError(f"{method} {table}: rate limited")
            if resp.status >= 400:
                body = await resp.text()
                raise RemoteError(f"{method} {table} -> {resp.status}: {body}", resp.status)
            if resp.status == 204 or resp.content_length == 0:
                return {}
            data = await resp.json()
            return {} if data is None else data

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        return await self.retry.call(
            lambda: self._send(method, table, params, payload, prefer),
            f"{method} {table}",
        )

    async def resolve_game(self, slug: str) -> str:
        rows: Optional[List[Dict[str, Any]]] = await self._request(
            "GET", "tcg_games", params={"slug": f"eq.{slug}", "select": "id"}
        )
        if not rows:
            raise GameNotFoundError(f"TCG '{slug}' not found in database")
        return str(rows[0]["id"])

    async def ensure_series(self, game_id: str, series: SeriesInfo) -> str:
        fields = {
            "name": series.name,
            "release_date": series.release_date,
            "max_set_base": series.card_count,
            "master_set": series.card_count,
        }
        try:
            existing: Optional[List[Dict[str, Any]]] = await self._request(
                "GET",
                "series",
                params={
                    "tcg_game_id": f"eq.{game_id}",
                    "code": f"eq.{series.code}",
                    "select": "id",
                },
            )
            if existing:
                series_id = str(existing[0]["id"])
                await self._request(
                    "PATCH", "series", params={"id": f"eq.{series_id}"}, payload=fields
                )
                return series_id

            created: Optional[List[Dict[str, Any]]] = await self._request(
                "POST",
                "series",
                payload={"tcg_game_id": game_id, "code": series.code, **fields},
                prefer="return=representation",
            )
        except (RemoteError, aiohttp.ClientError) as error:
            raise SinkError(f"Failed to write series {series.code}: {error}") from error

        if not created:
            raise SinkError(f"Failed to create series {series.code}")
        return str(created[0]["id"])

    async def upsert_card(self, row: SinkRow) -> None:
        try:
            result = await self._request(
                "POST",
                "cards",
                params={"on_conflict": "series_id,number,language"},
                payload=row.to_dict(),
                prefer="resolution=merge-duplicates,return=minimal",
            )
        except (RemoteError, aiohttp.ClientError) as error:
            raise SinkError(
                f"Database upsert failed for {row.number} [{row.language}]: {error}"
            ) from error

        if result is None:
            raise SinkError(
                f"Database upsert failed for {row.number} [{row.language}]: "
                "cards endpoint not found"
            )
