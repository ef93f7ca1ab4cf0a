"""
TCGSEED Constants that cannot be changed and are hardcoded intentionally
"""

import datetime
import os
import pathlib
from typing import Dict, Set, Tuple

TOP_LEVEL_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
RESOURCE_PATH: pathlib.Path = TOP_LEVEL_DIR.joinpath("tcgseed").joinpath("resources")
CONFIG_PATH: pathlib.Path = RESOURCE_PATH.joinpath("tcgseed.properties")
DATA_PATH: pathlib.Path = (
    pathlib.Path(os.environ.get("TCGSEED_DATA_PATH", TOP_LEVEL_DIR.joinpath("data")))
    .expanduser()
    .resolve()
)
BULK_DATA_PATH: pathlib.Path = (
    pathlib.Path(
        os.environ.get(
            "TCGSEED_BULK_PATH", DATA_PATH.joinpath("scryfall-all-cards.json")
        )
    )
    .expanduser()
    .resolve()
)
SPLIT_PATH: pathlib.Path = DATA_PATH.joinpath("magic-sets")
INDEX_FILE_NAME: str = "index.json"
TEMP_DIR_NAME: str = "_temp"

LOG_PATH: pathlib.Path = DATA_PATH.joinpath("logs")
CHECKPOINT_PATH: pathlib.Path = LOG_PATH.joinpath("magic-seed-split-progress.json")
ERROR_LOG_PATH: pathlib.Path = LOG_PATH.joinpath("magic-seed-split-errors.json")

CACHE_PATH: pathlib.Path = TOP_LEVEL_DIR.joinpath(".tcgseed_cache")

TCGSEED_BUILD_DATE: str = datetime.datetime.today().strftime("%Y-%m-%d")

SCRYFALL_BULK_DATA_URL: str = "https://api.scryfall.com/bulk-data"
SCRYFALL_BULK_TYPE: str = "all_cards"

DEFAULT_LANGUAGES: Tuple[str, ...] = ("en", "fr", "ja", "zhs")

# Progress log cadence while streaming the bulk file
SCAN_PROGRESS_INTERVAL: int = 500_000

# Records pulled from the decoder before draining into partition files
WRITE_BATCH_SIZE: int = 1_000

MAX_OPEN_FILES: int = 200
EVICT_BATCH_SIZE: int = 50

EXCLUDED_SET_TYPES: Set[str] = {"token", "memorabilia"}
EXCLUDED_LAYOUTS: Set[str] = {"token", "double_faced_token", "emblem", "art_series"}
MULTI_FACE_LAYOUTS: Set[str] = {
    "transform",
    "modal_dfc",
    "reversible_card",
    "art_series",
}
REQUIRED_CARD_FIELDS: Tuple[str, ...] = (
    "id",
    "name",
    "collector_number",
    "set",
    "lang",
    "rarity",
)
RARITY_MAP: Dict[str, str] = {
    "common": "common",
    "uncommon": "uncommon",
    "rare": "rare",
    "mythic": "mythic",
    "special": "special",
    "bonus": "bonus",
}
