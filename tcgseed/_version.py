"""Dynamic version read from tcgseed.properties."""

import configparser
import pathlib

_config = configparser.ConfigParser()
_config.read(pathlib.Path(__file__).parent / "resources" / "tcgseed.properties")
__version__ = _config.get("TCGSEED", "version", fallback="1.0.0+fallback")
