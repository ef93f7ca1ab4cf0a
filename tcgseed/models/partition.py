"""Partition level models: keys, pass 1 metadata, and materialized files."""

import dataclasses
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from .base import SeedModel


class PartitionKey(NamedTuple):
    """(group, language) pair identifying one output partition"""

    set_code: str
    language: str

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional["PartitionKey"]:
        """
        Derive the partition a record belongs to
        :param record: Decoded bulk record
        :return: Key, or None if the record has no set code
        """
        set_code = record.get("set")
        if not isinstance(set_code, str) or not set_code:
            return None
        return cls(set_code.lower(), str(record.get("lang", "")))

    @property
    def file_key(self) -> str:
        """Identifier used by the checkpoint, "set/lang" """
        return f"{self.set_code}/{self.language}"

    @property
    def relative_path(self) -> str:
        """Location of the partition file inside the split directory"""
        return f"{self.set_code}/{self.language}.json"

    @property
    def temp_file_name(self) -> str:
        """Name of the line-delimited file used between pass 2 and 3"""
        return f"{self.set_code}/{self.language}.jsonl"


def base_language(
    languages_present: Iterable[str], target_languages: Iterable[str]
) -> Optional[str]:
    """
    The language used to size a group: the first requested language
    the group actually has records for
    :param languages_present: Languages with at least one record
    :param target_languages: Requested languages, in priority order
    :return: Base language, or None if the group has none of them
    """
    present = set(languages_present)
    for language in target_languages:
        if language in present:
            return language
    return None


@dataclasses.dataclass
class PartitionMetadata:
    """
    Lightweight per-group metadata gathered during the first pass.
    Holds counts only, never card bodies.
    """

    code: str
    name: str
    release_date: Optional[str]
    set_type: str
    languages: Dict[str, int] = dataclasses.field(default_factory=dict)
    total_cards: int = 0

    def add_record(self, language: str) -> None:
        """Count one more record for the given language"""
        self.languages[language] = self.languages.get(language, 0) + 1

    def resolve_total(self, target_languages: Iterable[str]) -> int:
        """
        Settle total_cards on the base language count
        :param target_languages: Requested languages, in priority order
        :return: The resolved total
        """
        language = base_language(self.languages, target_languages)
        self.total_cards = self.languages.get(language, 0) if language else 0
        return self.total_cards

    @property
    def all_languages_total(self) -> int:
        """Record count across every language of the group"""
        return sum(self.languages.values())


class PartitionFile(SeedModel):
    """
    Self-describing partition written once by the materializer
    """

    set_code: str
    set_name: str
    release_date: Optional[str] = None
    set_type: str
    language: str
    card_count: int
    cards: List[Dict[str, Any]]
