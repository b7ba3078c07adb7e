"""
Visual-identity anchors.

Short, stable descriptors for characters, locations and the overall style,
repeated verbatim in every prompt of a scene so generated frames keep the
same identity from shot to shot.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from shotplan.core.constants import ART_STYLE_PRESETS, NEGATIVE_STYLE
from shotplan.core.logging_config import get_logger

logger = get_logger("planning.anchors")

DEFAULT_ART_STYLE = "cinematic"
DEFAULT_CHARACTER_ANCHOR = "A character with distinct visual presence."
DEFAULT_LOCATION_ANCHOR = "A distinct location with specific visual characteristics."

_SENTENCE_END = re.compile(r"[.!?]")


def first_sentence(text: Optional[str]) -> str:
    """Text up to the first sentence terminator, stripped."""
    if not text:
        return ""
    return _SENTENCE_END.split(text, maxsplit=1)[0].strip()


def tag_name(name: str) -> str:
    """Prefix a reference name with @ unless it already has one."""
    return name if name.startswith("@") else f"@{name}"


@dataclass
class CharacterAnchor:
    name: str
    anchor: str
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "anchor": self.anchor, "image_url": self.image_url}


@dataclass
class LocationAnchor:
    name: str
    anchor: str
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "anchor": self.anchor, "image_url": self.image_url}


@dataclass
class StyleAnchor:
    anchor: str
    art_style: str = DEFAULT_ART_STYLE
    negative_style: str = NEGATIVE_STYLE
    art_style_image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anchor": self.anchor,
            "art_style": self.art_style,
            "negative_style": self.negative_style,
            "art_style_image_url": self.art_style_image_url,
        }


@dataclass
class AnchorSet:
    """Everything the prompt generator needs to keep identity stable."""
    characters: List[CharacterAnchor] = field(default_factory=list)
    locations: List[LocationAnchor] = field(default_factory=list)
    style: Optional[StyleAnchor] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "characters": [c.to_dict() for c in self.characters],
            "locations": [loc.to_dict() for loc in self.locations],
            "style": self.style.to_dict() if self.style else None,
        }


def build_character_anchors(characters: Sequence[Dict[str, Any]]) -> List[CharacterAnchor]:
    """
    Build one anchor per character from its appearance and personality.

    Each character dict needs a "name"; "appearance", "personality" and
    "image_url" are optional. Only the first sentence of each text is used.
    """
    anchors = []
    for character in characters:
        name = tag_name(character["name"])
        parts = [
            first_sentence(character.get("appearance")),
            first_sentence(character.get("personality")),
        ]
        parts = [p for p in parts if p]
        anchor = ". ".join(parts) + "." if parts else DEFAULT_CHARACTER_ANCHOR

        logger.debug(f"Character anchor for {name}: {anchor[:60]}")
        anchors.append(CharacterAnchor(name, anchor, character.get("image_url") or ""))
    return anchors


def build_location_anchors(locations: Sequence[Dict[str, Any]]) -> List[LocationAnchor]:
    """Build one anchor per location from its description (or details)."""
    anchors = []
    for location in locations:
        name = tag_name(location["name"])
        sentence = first_sentence(location.get("description") or location.get("details"))
        anchor = f"{sentence}." if sentence else DEFAULT_LOCATION_ANCHOR

        logger.debug(f"Location anchor for {name}: {anchor[:60]}")
        anchors.append(LocationAnchor(name, anchor, location.get("image_url") or ""))
    return anchors


def build_style_anchor(
    art_style: Optional[str] = None,
    world_description: Optional[str] = None,
    art_style_image_url: Optional[str] = None
) -> StyleAnchor:
    """
    Build the scene-wide style anchor.

    Known art styles expand to their preset description; anything else is
    used as written.
    """
    art_style = art_style or DEFAULT_ART_STYLE
    base = ART_STYLE_PRESETS.get(art_style.lower(), art_style)
    world_context = first_sentence(world_description)
    anchor = f"{base}. {world_context}." if world_context else f"{base}."

    return StyleAnchor(
        anchor=anchor,
        art_style=art_style,
        negative_style=NEGATIVE_STYLE,
        art_style_image_url=art_style_image_url,
    )
