"""Split index, the contract between the splitter and the seeder."""

from typing import Dict, Iterator, List, Optional, Tuple

from .base import SeedModel
from .partition import PartitionKey, base_language


class IndexLanguageEntry(SeedModel):
    """One materialized partition file"""

    card_count: int
    file_path: str


class IndexSetEntry(SeedModel):
    """All partition files of one group"""

    name: str
    release_date: Optional[str] = None
    set_type: str
    languages: Dict[str, IndexLanguageEntry]
    total_cards: int


class SplitIndex(SeedModel):
    """
    Catalog of every partition file produced by a split run
    """

    generated_at: str
    source_file: str
    target_languages: List[str]
    total_sets: int
    total_files: int
    total_cards: int
    sets: Dict[str, IndexSetEntry]

    def iter_partitions(self) -> Iterator[Tuple[PartitionKey, IndexSetEntry]]:
        """
        Walk every partition in index order
        :return: Iterator of (key, owning set entry)
        """
        for set_code, set_entry in self.sets.items():
            for language in set_entry.languages:
                yield PartitionKey(set_code, language), set_entry

    def base_card_count(self, set_code: str) -> int:
        """
        Size of a group, counted in its base language
        :param set_code: Group key
        :return: Base language card count, 0 if the group is unknown
        """
        set_entry = self.sets.get(set_code)
        if not set_entry:
            return 0
        language = base_language(set_entry.languages, self.target_languages)
        if language is None:
            language = next(iter(set_entry.languages), None)
        if language is None:
            return 0
        return set_entry.languages[language].card_count
