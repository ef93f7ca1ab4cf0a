"""
TCGSEED simple utilities
"""

import logging
import os
import pathlib
import time
from typing import Any

import orjson

from . import constants

LOGGER = logging.getLogger(__name__)


def init_logger() -> None:
    """
    Initialize the main system logger
    """
    constants.LOG_PATH.mkdir(parents=True, exist_ok=True)

    start_time = time.strftime("%Y-%m-%d_%H.%M.%S")

    logging.basicConfig(
        level=(
            logging.DEBUG
            if os.environ.get("TCGSEED_DEBUG", "").lower() in ["true", "1"]
            else logging.INFO
        ),
        format="[%(levelname)s] %(asctime)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(
                str(constants.LOG_PATH.joinpath(f"tcgseed_{start_time}.log"))
            ),
        ],
    )
    logging.getLogger("urllib3").setLevel(logging.ERROR)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def log_section(title: str) -> None:
    """
    Log a banner to separate the phases of a run
    :param title: Banner text
    """
    LOGGER.info("=" * 80)
    LOGGER.info(title)
    LOGGER.info("=" * 80)


def log_separator() -> None:
    """
    Log a thin separator line
    """
    LOGGER.info("-" * 60)


def format_bytes(size: float) -> str:
    """
    Render a byte count for humans
    :param size: Number of bytes
    :return: Size such as "2.31 GB"
    """
    for unit in ["B", "KB", "MB"]:
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} GB"


def utc_timestamp() -> str:
    """
    ISO-8601 timestamp in UTC, as stored in checkpoint and error files
    """
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def write_json_atomic(
    file_path: pathlib.Path, contents: Any, pretty_print: bool = True
) -> None:
    """
    Dump contents to a file without ever leaving a half-written file behind.
    The data is written next to the destination and renamed over it.
    :param file_path: Destination
    :param contents: JSON serializable content
    :param pretty_print: Indent the output
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = file_path.with_name(f".{file_path.name}.tmp")

    option = orjson.OPT_INDENT_2 if pretty_print else 0
    with temp_path.open("wb") as file:
        file.write(orjson.dumps(contents, option=option))
        file.flush()
        os.fsync(file.fileno())

    os.replace(temp_path, file_path)
