"""
TCGSEED Configuration Service
"""

import configparser
import logging
import os
import pathlib
from typing import List, Optional

from singleton_decorator import singleton

from . import constants


@singleton
class SeedConfig:
    """
    Configuration Class that loads in the appropriate configuration file
    and provides the contents for the running program
    """

    logger: logging.Logger
    config_parser: configparser.ConfigParser
    version: str
    use_cache: bool
    languages: List[str]
    min_cards: int
    max_open_files: int
    excluded_set_types: List[str]

    def __init__(self, config_path: Optional[pathlib.Path] = None):
        self.logger = logging.getLogger(__name__)
        self.config_parser = configparser.ConfigParser()
        self.config_parser.read(str(config_path or constants.CONFIG_PATH))

        self.version = self.get("TCGSEED", "version", fallback="1.0.0+fallback")
        self.use_cache = self.get_boolean("TCGSEED", "use_cache", False)
        self.languages = self.get_list(
            "Split", "languages", list(constants.DEFAULT_LANGUAGES)
        )
        self.min_cards = self.get_int("Split", "min_cards", 1)
        self.max_open_files = self.get_int(
            "Split", "max_open_files", constants.MAX_OPEN_FILES
        )
        self.excluded_set_types = self.get_list(
            "Split", "excluded_set_types", sorted(constants.EXCLUDED_SET_TYPES)
        )

    def get(self, section: str, option: str, fallback: str = "") -> str:
        """
        Get a specific value from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default value to use if key not found in section
        :returns Configuration value to use
        """
        if self.has_option(section, option):
            return self.config_parser.get(section, option, fallback=fallback)
        return fallback

    def get_boolean(self, section: str, option: str, fallback: bool = False) -> bool:
        """
        Get a specific value from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default value to use if key not found in section
        :returns Configuration value to use (as a Boolean)
        """
        if self.has_option(section, option):
            return self.config_parser.getboolean(section, option, fallback=fallback)
        return fallback

    def get_int(self, section: str, option: str, fallback: int = 0) -> int:
        """
        Get a specific value from configuration as an integer
        """
        if self.has_option(section, option):
            return self.config_parser.getint(section, option, fallback=fallback)
        return fallback

    def get_float(self, section: str, option: str, fallback: float = 0.0) -> float:
        """
        Get a specific value from configuration as a float
        """
        if self.has_option(section, option):
            return self.config_parser.getfloat(section, option, fallback=fallback)
        return fallback

    def get_list(
        self, section: str, option: str, fallback: Optional[List[str]] = None
    ) -> List[str]:
        """
        Get a comma separated value from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default list to use if key not found in section
        :returns Stripped, non-empty entries
        """
        if not self.has_option(section, option):
            return list(fallback or [])
        return [
            value.strip()
            for value in self.config_parser.get(section, option).split(",")
            if value.strip()
        ]

    def get_secret(self, section: str, option: str, env_var: str) -> str:
        """
        Get a credential, preferring the environment over the properties file
        :param section: Section header
        :param option: Key in section
        :param env_var: Environment variable that overrides the file
        :returns Credential, or empty string if unset
        """
        return os.environ.get(env_var) or self.get(section, option)

    def has_option(self, section: str, option: str) -> bool:
        """
        Check if Configuration has a specific option in a specific section
        and has a defined value (ala not VAR=)
        :param section: Section header to find
        :param option: Option to find in section
        :return Does option exist in section
        """
        return (
            self.config_parser.has_option(section, option)
            and len(str(self.config_parser.get(section, option))) > 0
        )
