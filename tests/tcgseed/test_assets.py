"""Tests for card image storage."""

import asyncio
import pathlib
from typing import List, Optional

from tcgseed.errors import RateLimitedError
from tcgseed.retry_controller import RetryController
from tcgseed.seed import AssetPipeline, LocalAssetStore


class FakeSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_pipeline(tmp_path: pathlib.Path, delay: float = 0.0):
    sleep = FakeSleep()
    pipeline = AssetPipeline(
        LocalAssetStore(tmp_path.joinpath("images")),
        RetryController(max_retries=1, sleep=sleep),
        delay=delay,
        sleep=sleep,
    )
    return pipeline, sleep


def test_local_store_writes_file(tmp_path):
    store = LocalAssetStore(tmp_path)

    url = store.store(b"data", "vow/en/1.webp", "image/webp")

    assert tmp_path.joinpath("vow", "en", "1.webp").read_bytes() == b"data"
    assert url.startswith("file://")
    assert url.endswith("vow/en/1.webp")


def test_process_stores_download(tmp_path, monkeypatch):
    pipeline, sleep = make_pipeline(tmp_path, delay=0.05)

    async def fetch(url: str) -> Optional[bytes]:
        return b"image"

    monkeypatch.setattr(pipeline, "fetch", fetch)

    url = asyncio.run(pipeline.process("https://img/1.jpg", "vow/en/1.webp"))

    assert url is not None
    assert tmp_path.joinpath("images", "vow", "en", "1.webp").read_bytes() == b"image"
    assert sleep.delays == [0.05]


def test_process_missing_image(tmp_path, monkeypatch):
    pipeline, _ = make_pipeline(tmp_path)

    async def fetch(url: str) -> Optional[bytes]:
        return None

    monkeypatch.setattr(pipeline, "fetch", fetch)

    assert asyncio.run(pipeline.process("https://img/1.jpg", "vow/en/1.webp")) is None


def test_process_swallows_fetch_failures(tmp_path, monkeypatch, caplog):
    pipeline, _ = make_pipeline(tmp_path)

    async def fetch(url: str) -> Optional[bytes]:
        raise RateLimitedError()

    monkeypatch.setattr(pipeline, "fetch", fetch)

    assert asyncio.run(pipeline.process("https://img/1.jpg", "vow/en/1.webp")) is None
    assert "Image skipped" in caplog.text
