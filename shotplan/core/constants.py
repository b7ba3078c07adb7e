"""
Shotplan Constants

Enums and default policy values shared across the planning engine.
"""

from enum import Enum
from typing import Tuple


# =============================================================================
# FRAME TOPOLOGY
# =============================================================================

class FrameTopology(Enum):
    """How a shot is driven: one image animated in place, or a start/end pair."""
    SINGLE = "single"
    START_END = "start-end"

    @classmethod
    def from_label(cls, label: str) -> 'FrameTopology':
        """
        Resolve a topology from any label the generators use.

        Accepts the canonical values plus the wire labels "1F", "2F"
        and "image-ref".
        """
        normalized = str(label).strip()
        aliases = {
            "single": cls.SINGLE,
            "1F": cls.SINGLE,
            "image-ref": cls.SINGLE,
            "start-end": cls.START_END,
            "2F": cls.START_END,
        }
        if normalized in aliases:
            return aliases[normalized]
        if normalized.lower() in aliases:
            return aliases[normalized.lower()]
        raise ValueError(f"Unknown frame topology: {label!r}")

    @property
    def wire_label(self) -> str:
        if self is FrameTopology.SINGLE:
            return "1F"
        if self is FrameTopology.START_END:
            return "2F"
        raise ValueError(f"Unhandled frame topology: {self}")

    @property
    def has_closing_frame(self) -> bool:
        """Whether the shot has a distinct closing state a successor can inherit."""
        if self is FrameTopology.SINGLE:
            return False
        if self is FrameTopology.START_END:
            return True
        raise ValueError(f"Unhandled frame topology: {self}")


class ReferenceMode(Enum):
    """Frame-topology policy handed to the shot-proposal generator."""
    SINGLE_FRAME = "1F"   # Every shot single, no continuity
    START_END = "2F"      # Every shot start-end
    AI = "AI"             # Generator decides per shot


class ContinuityRole(Enum):
    """A shot's place in the scene's continuity structure."""
    STANDALONE = "standalone"
    GROUP_OPENER = "group_opener"
    LINKED = "linked"


class FrameSlot(Enum):
    """Image slots a shot can need."""
    IMAGE = "image"
    START = "start"
    END = "end"


# =============================================================================
# POLICY DEFAULTS
# =============================================================================

DEFAULT_ALLOWED_DURATIONS: Tuple[int, ...] = (2, 4, 5, 6, 8, 10, 12)
DEFAULT_DURATION_TOLERANCE = 0.10

DEFAULT_TRANSITION_TYPE = "flow"

DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_MAX_CONCURRENT_SHOTS = 4

# Shared negative style appended to every style anchor
NEGATIVE_STYLE = (
    "blurry, distorted, low quality, bad anatomy, deformed, disfigured, mutation, "
    "extra limbs, missing limbs, floating limbs, disconnected limbs, malformed hands, "
    "long neck, cross-eyed, watermark, signature, text, logo"
)

ART_STYLE_PRESETS = {
    "cinematic": "Cinematic quality with professional video production aesthetic, shallow depth of field, film-like color grading",
    "anime": "Anime art style with vibrant colors, expressive character designs, stylized features",
    "realistic": "Photorealistic quality with natural lighting, authentic textures, lifelike details",
    "cartoon": "Cartoon art style with bold outlines, vibrant colors, simplified shapes",
    "painterly": "Painterly aesthetic with artistic brushstrokes, rich textures, expressive colors",
    "minimalist": "Minimalist design with clean lines, simple compositions, restrained color palette",
}
