"""In-memory card shapes handed from the parser to the sink."""

import dataclasses
from typing import Any, Dict, Optional


@dataclasses.dataclass(frozen=True)
class ParsedCard:
    """
    A bulk record reduced to what the sink stores, for one face
    """

    name: str
    number: str
    language: str
    rarity: str
    image_url: Optional[str]
    attributes: Dict[str, Any]
    set_code: str
    set_name: str


@dataclasses.dataclass(frozen=True)
class SinkRow:
    """
    Persisted form of a card. (series_id, number, language) is unique.
    """

    series_id: str
    number: str
    language: str
    name: str
    rarity: str
    image_url: Optional[str]
    attributes: Dict[str, Any]

    @classmethod
    def from_parsed(
        cls, series_id: str, card: ParsedCard, image_url: Optional[str]
    ) -> "SinkRow":
        """
        Build the row for a parsed card
        :param series_id: Sink id of the owning series
        :param card: Parsed card face
        :param image_url: Stored image URL, if any
        """
        return cls(
            series_id=series_id,
            number=card.number,
            language=card.language,
            name=card.name,
            rarity=card.rarity,
            image_url=image_url,
            attributes=card.attributes,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Column name to value"""
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class SeriesInfo:
    """Group row the cards hang off"""

    code: str
    name: str
    release_date: Optional[str]
    card_count: int
