"""Pytest configuration and fixtures for TCGSEED tests."""

import gzip
import json
import pathlib
from typing import Any, Callable, Dict, Generator, List

import pytest

from tcgseed.seed_config import SeedConfig


@pytest.fixture(autouse=True)
def reset_seed_config() -> Generator[None, None, None]:
    """Reset the SeedConfig singleton between tests."""
    SeedConfig._instance = None
    yield
    SeedConfig._instance = None


@pytest.fixture
def make_card() -> Callable[..., Dict[str, Any]]:
    """
    Factory for Scryfall bulk records.

    Every record gets the fields the parser requires; keyword arguments
    override or extend them.
    """
    counter = {"value": 0}

    def _make_card(**overrides: Any) -> Dict[str, Any]:
        counter["value"] += 1
        card: Dict[str, Any] = {
            "id": f"00000000-0000-0000-0000-{counter['value']:012d}",
            "name": f"Card {counter['value']}",
            "collector_number": str(counter["value"]),
            "set": "vow",
            "set_name": "Innistrad: Crimson Vow",
            "set_type": "expansion",
            "released_at": "2021-11-19",
            "lang": "en",
            "rarity": "common",
            "layout": "normal",
            "image_uris": {
                "normal": f"https://cards.scryfall.io/normal/{counter['value']}.jpg",
                "large": f"https://cards.scryfall.io/large/{counter['value']}.jpg",
            },
        }
        card.update(overrides)
        return card

    return _make_card


@pytest.fixture
def write_bulk(tmp_path: pathlib.Path) -> Callable[..., pathlib.Path]:
    """
    Write records out as a bulk JSON array, the way Scryfall ships it
    (one record per line, optionally gzip compressed).
    """

    def _write_bulk(
        records: List[Any], name: str = "bulk.json", compress: bool = False
    ) -> pathlib.Path:
        body = "[\n" + ",\n".join(json.dumps(record) for record in records) + "\n]"
        bulk_path = tmp_path.joinpath(name)
        if compress:
            bulk_path.write_bytes(gzip.compress(body.encode("utf-8")))
        else:
            bulk_path.write_text(body, encoding="utf-8")
        return bulk_path

    return _write_bulk


@pytest.fixture
def sample_records(make_card: Callable[..., Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Set "vow" with 3 English and 2 French cards, interleaved, plus records
    the splitter must leave out (token set, untargeted language)
    """
    return [
        make_card(collector_number="1"),
        make_card(collector_number="1", lang="fr"),
        make_card(collector_number="2"),
        make_card(
            set="tvow", set_name="Crimson Vow Tokens", set_type="token", layout="token"
        ),
        make_card(collector_number="2", lang="fr"),
        make_card(collector_number="1", lang="de"),
        make_card(collector_number="3"),
    ]
