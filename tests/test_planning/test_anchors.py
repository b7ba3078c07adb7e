"""
Tests for Anchors Module

Tests for shotplan/planning/anchors.py
"""

from shotplan.core.constants import ART_STYLE_PRESETS, NEGATIVE_STYLE
from shotplan.planning.anchors import (
    DEFAULT_CHARACTER_ANCHOR,
    DEFAULT_LOCATION_ANCHOR,
    AnchorSet,
    build_character_anchors,
    build_location_anchors,
    build_style_anchor,
    first_sentence,
    tag_name,
)


class TestHelpers:
    """Tests for text helpers."""

    def test_first_sentence(self):
        assert first_sentence("Tall and lean. Walks with a limp.") == "Tall and lean"
        assert first_sentence("Why now? Because.") == "Why now"
        assert first_sentence("No terminator") == "No terminator"
        assert first_sentence(None) == ""

    def test_tag_name(self):
        assert tag_name("Mira") == "@Mira"
        assert tag_name("@Mira") == "@Mira"


class TestCharacterAnchors:
    """Tests for build_character_anchors()."""

    def test_appearance_and_personality(self):
        anchors = build_character_anchors([{
            "name": "Mira",
            "appearance": "Short black hair, red scarf. Always barefoot.",
            "personality": "Quick to laugh. Slow to trust.",
            "image_url": "https://img.test/mira.png",
        }])

        assert anchors[0].name == "@Mira"
        assert anchors[0].anchor == "Short black hair, red scarf. Quick to laugh."
        assert anchors[0].image_url == "https://img.test/mira.png"

    def test_default_anchor(self):
        anchors = build_character_anchors([{"name": "Extra"}])

        assert anchors[0].anchor == DEFAULT_CHARACTER_ANCHOR
        assert anchors[0].image_url == ""


class TestLocationAnchors:
    """Tests for build_location_anchors()."""

    def test_description(self):
        anchors = build_location_anchors([
            {"name": "Market", "description": "A crowded spice market. Awnings everywhere."}
        ])

        assert anchors[0].name == "@Market"
        assert anchors[0].anchor == "A crowded spice market."

    def test_details_fallback(self):
        anchors = build_location_anchors([{"name": "Gate", "details": "Weathered stone arch"}])

        assert anchors[0].anchor == "Weathered stone arch."

    def test_default_anchor(self):
        assert build_location_anchors([{"name": "Void"}])[0].anchor == DEFAULT_LOCATION_ANCHOR


class TestStyleAnchor:
    """Tests for build_style_anchor()."""

    def test_preset_with_world(self):
        style = build_style_anchor("Anime", "A drowned city. Boats everywhere.")

        assert style.anchor == f"{ART_STYLE_PRESETS['anime']}. A drowned city."
        assert style.art_style == "Anime"
        assert style.negative_style == NEGATIVE_STYLE

    def test_default_style(self):
        style = build_style_anchor()

        assert style.anchor == f"{ART_STYLE_PRESETS['cinematic']}."
        assert style.art_style == "cinematic"

    def test_custom_style_used_verbatim(self):
        style = build_style_anchor("ink wash on rice paper", art_style_image_url="https://img.test/s.png")

        assert style.anchor == "ink wash on rice paper."
        assert style.art_style_image_url == "https://img.test/s.png"

    def test_anchor_set_to_dict(self):
        anchor_set = AnchorSet(
            characters=build_character_anchors([{"name": "Mira"}]),
            style=build_style_anchor(),
        )
        data = anchor_set.to_dict()

        assert data["characters"][0]["name"] == "@Mira"
        assert data["locations"] == []
        assert data["style"]["art_style"] == "cinematic"
