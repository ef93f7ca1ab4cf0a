"""
Sink Dispatcher
"""

import pathlib

from .. import constants
from ..retry_controller import RetryController
from ..seed_config import SeedConfig
from .abstract_sink import AbstractCardSink
from .postgrest_sink import PostgrestCardSink
from .sqlite_sink import SqliteCardSink


def sink_from_config(retry: RetryController) -> AbstractCardSink:
    """
    Build the sink named by the [Sink] section
    :param retry: Retry policy for remote sinks
    :return: Unopened sink
    """
    config = SeedConfig()
    backend = config.get("Sink", "backend", "sqlite").lower()
    if backend == "postgrest":
        return PostgrestCardSink(
            config.get("Sink", "url"),
            config.get_secret("Sink", "service_key", "TCGSEED_SINK_KEY"),
            retry,
        )

    sqlite_path = config.get("Sink", "sqlite_path")
    return SqliteCardSink(
        pathlib.Path(sqlite_path).expanduser()
        if sqlite_path
        else constants.DATA_PATH.joinpath("cards.sqlite")
    )


__all__ = [
    "AbstractCardSink",
    "PostgrestCardSink",
    "SqliteCardSink",
    "sink_from_config",
]
