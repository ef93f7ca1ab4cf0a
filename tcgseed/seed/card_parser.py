"""
Scryfall card parser
Converts bulk records into the shape the sink stores
"""

from typing import Any, Dict, Optional

from .. import constants
from ..models import ParsedCard


def is_valid_card(card: Dict[str, Any]) -> bool:
    """
    Check a bulk record has every required field as a string
    :param card: Bulk record
    :return: Can the record be stored
    """
    return all(
        isinstance(card.get(field_name), str)
        for field_name in constants.REQUIRED_CARD_FIELDS
    )


def get_face(card: Dict[str, Any], face_index: int) -> Optional[Dict[str, Any]]:
    """
    Face of a multi-face card, or None for single face cards
    """
    faces = card.get("card_faces") or []
    if len(faces) > face_index:
        face: Dict[str, Any] = faces[face_index]
        return face
    return None


def get_card_name(card: Dict[str, Any], face_index: int = 0) -> str:
    """
    Card name, preferring the printed (translated) name
    :param card: Bulk record
    :param face_index: Which face of a multi-face card
    :return: Display name
    """
    face = get_face(card, face_index)
    if face:
        return str(face.get("printed_name") or face.get("name"))
    return str(card.get("printed_name") or card.get("name"))


def get_card_image_url(card: Dict[str, Any], face_index: int = 0) -> Optional[str]:
    """
    Image to download for a card face; large preferred, normal otherwise.
    Faces with their own images win over the card level images.
    """
    face = get_face(card, face_index)
    image_uris = (face or {}).get("image_uris") or card.get("image_uris")
    if not image_uris:
        return None
    return image_uris.get("large") or image_uris.get("normal") or None


def normalize_card_number(
    collector_number: str, face_index: int = 0, layout: str = "normal"
) -> str:
    """
    Number to store a card face under.
    Back faces of multi-face layouts are stored as their own row.
    """
    if layout in constants.MULTI_FACE_LAYOUTS and face_index > 0:
        return f"{collector_number}-back"
    return collector_number


def normalize_rarity(rarity: str) -> str:
    """Map Scryfall rarity to our rarity names"""
    return constants.RARITY_MAP.get(rarity.lower(), rarity.lower())


def build_card_attributes(
    card: Dict[str, Any], face_index: int = 0
) -> Dict[str, Any]:
    """
    Free-form attributes stored alongside a card.
    Unset values are left out.
    :param card: Bulk record
    :param face_index: Which face of a multi-face card
    :return: Attribute map
    """
    finishes = card.get("finishes") or []
    attributes: Dict[str, Any] = {
        "scryfall_id": card.get("id"),
        "layout": card.get("layout"),
        "set_type": card.get("set_type"),
        "foil": card["foil"] if "foil" in card else "foil" in finishes,
        "nonfoil": card["nonfoil"] if "nonfoil" in card else "nonfoil" in finishes,
        "promo": card.get("promo"),
        "reprint": card.get("reprint"),
        "digital": card.get("digital"),
    }

    faces = card.get("card_faces") or []
    if len(faces) > 1:
        face = faces[face_index]
        attributes.update(
            {
                "mana_cost": face.get("mana_cost"),
                "type_line": face.get("printed_type_line") or face.get("type_line"),
                "oracle_text": face.get("printed_text") or face.get("oracle_text"),
                "power": face.get("power"),
                "toughness": face.get("toughness"),
                "loyalty": face.get("loyalty"),
                "colors": face.get("colors"),
                "artist": face.get("artist"),
                "face_index": face_index,
                "total_faces": len(faces),
            }
        )
    else:
        attributes.update(
            {
                "mana_cost": card.get("mana_cost"),
                "cmc": card.get("cmc"),
                "type_line": card.get("printed_type_line") or card.get("type_line"),
                "oracle_text": card.get("printed_text") or card.get("oracle_text"),
                "power": card.get("power"),
                "toughness": card.get("toughness"),
                "loyalty": card.get("loyalty"),
                "colors": card.get("colors"),
                "color_identity": card.get("color_identity"),
                "keywords": card.get("keywords"),
                "artist": card.get("artist"),
            }
        )

    if card.get("legalities"):
        attributes["legalities"] = card["legalities"]

    return {key: value for key, value in attributes.items() if value is not None}


def parse_card(card: Dict[str, Any], face_index: int = 0) -> Optional[ParsedCard]:
    """
    Parse a bulk record into our storage format
    :param card: Bulk record, already validated
    :param face_index: Which face of a multi-face card
    :return: Parsed card, or None for layouts we do not store (tokens, emblems...)
    """
    layout = card.get("layout", "normal")
    if layout in constants.EXCLUDED_LAYOUTS:
        return None

    return ParsedCard(
        name=get_card_name(card, face_index),
        number=normalize_card_number(card["collector_number"], face_index, layout),
        language=card["lang"],
        rarity=normalize_rarity(card["rarity"]),
        image_url=get_card_image_url(card, face_index),
        attributes=build_card_attributes(card, face_index),
        set_code=card["set"].lower(),
        set_name=card.get("set_name", ""),
    )


def should_split_card(card: Dict[str, Any]) -> bool:
    """
    Should the back face be stored as a separate row
    (multi-face layout where every face carries its own image)
    """
    faces = card.get("card_faces") or []
    return (
        card.get("layout") in constants.MULTI_FACE_LAYOUTS
        and len(faces) > 1
        and all(face.get("image_uris") for face in faces)
    )


def card_image_path(set_code: str, language: str, card_number: str) -> str:
    """
    Object storage path of a card image
    :return: "<set>/<lang>/<number>.webp"
    """
    return f"{set_code.lower()}/{language}/{card_number}.webp"
