"""
Shotplan Video Capability Profiles

Describes what each downstream video model accepts: its supported
durations and resolutions, which frame slots it takes, how frames are laid
out and labeled in the request, and whether explicit dimensions are sent.

Built-in profiles cover the supported video models; custom profiles can be
registered from configuration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from shotplan.core.exceptions import InvalidConfigError, MissingConfigError, UnknownProfileError
from shotplan.core.logging_config import get_logger

logger = get_logger("video.profiles")

Dimensions = Tuple[int, int]


class FrameFieldLayout(Enum):
    """Where frame images go in the request."""
    TOP_LEVEL = "top_level"            # payload["frameImages"]
    INPUTS_WRAPPER = "inputs_wrapper"  # payload["inputs"]["frameImages"]


class FrameLabeling(Enum):
    """How each frame entry is labeled."""
    INPUT_IMAGE_WITH_ROLE = "input_image_with_role"  # {"inputImage": url, "frame": "first"}
    IMAGE = "image"                                  # {"image": url}


# =============================================================================
# DIMENSIONS
# =============================================================================

DEFAULT_DIMENSIONS: Dimensions = (1248, 704)

DIMENSION_MAP: Dict[str, Dict[str, Dimensions]] = {
    "16:9": {"360p": (640, 360), "540p": (960, 540), "720p": (1280, 720), "1080p": (1920, 1080)},
    "9:16": {"360p": (360, 640), "540p": (540, 960), "720p": (720, 1280), "1080p": (1080, 1920)},
    "1:1": {"360p": (360, 360), "540p": (540, 540), "720p": (720, 720), "1080p": (1080, 1080)},
    "4:3": {"360p": (480, 360), "540p": (720, 540), "720p": (960, 720), "1080p": (1440, 1080)},
    "3:4": {"360p": (360, 480), "540p": (540, 720), "720p": (720, 960), "1080p": (1080, 1440)},
}


@dataclass
class CapabilityProfile:
    """A video target's request shape and constraints."""
    profile_id: str
    model: str
    durations: Tuple[float, ...]
    resolutions: Tuple[str, ...]
    aspect_ratios: Tuple[str, ...] = ("16:9",)
    label: str = ""
    supports_first_frame: bool = True
    supports_last_frame: bool = False
    frame_layout: FrameFieldLayout = FrameFieldLayout.TOP_LEVEL
    frame_labeling: FrameLabeling = FrameLabeling.INPUT_IMAGE_WITH_ROLE
    send_dimensions: bool = True
    has_audio: bool = False
    provider_settings: Dict[str, Any] = field(default_factory=dict)

    # Model-specific dimensions, checked before DIMENSION_MAP
    dimensions: Dict[str, Dict[str, Dimensions]] = field(default_factory=dict)

    def __post_init__(self):
        if not self.durations:
            raise InvalidConfigError(f"Profile '{self.profile_id}' declares no durations")
        if not self.resolutions:
            raise InvalidConfigError(f"Profile '{self.profile_id}' declares no resolutions")
        self.durations = tuple(sorted(self.durations))

    @property
    def max_duration(self) -> float:
        return self.durations[-1]

    @property
    def default_resolution(self) -> str:
        return self.resolutions[0]

    def get_dimensions(self, aspect_ratio: str, resolution: str) -> Dimensions:
        """Pixel size for an aspect ratio and resolution, falling back to the generic map."""
        specific = self.dimensions.get(aspect_ratio, {}).get(resolution)
        if specific:
            return specific
        return DIMENSION_MAP.get(aspect_ratio, {}).get(resolution, DEFAULT_DIMENSIONS)

    @classmethod
    def from_dict(cls, profile_id: str, data: Dict[str, Any]) -> 'CapabilityProfile':
        """Create a profile from a config entry."""
        try:
            dimensions = {
                ratio: {res: tuple(size) for res, size in sizes.items()}
                for ratio, sizes in data.get("dimensions", {}).items()
            }
            return cls(
                profile_id=profile_id,
                model=data["model"],
                durations=tuple(data["durations"]),
                resolutions=tuple(data["resolutions"]),
                aspect_ratios=tuple(data.get("aspect_ratios", ("16:9",))),
                label=data.get("label", profile_id),
                supports_first_frame=bool(data.get("supports_first_frame", True)),
                supports_last_frame=bool(data.get("supports_last_frame", False)),
                frame_layout=FrameFieldLayout(data.get("frame_layout", FrameFieldLayout.TOP_LEVEL.value)),
                frame_labeling=FrameLabeling(
                    data.get("frame_labeling", FrameLabeling.INPUT_IMAGE_WITH_ROLE.value)
                ),
                send_dimensions=bool(data.get("send_dimensions", True)),
                has_audio=bool(data.get("has_audio", False)),
                provider_settings=dict(data.get("provider_settings", {})),
                dimensions=dimensions,
            )
        except KeyError as e:
            raise MissingConfigError(
                f"Profile '{profile_id}' missing required field {e}",
                {"profile_id": profile_id, "field": e.args[0]}
            )
        except ValueError as e:
            raise InvalidConfigError(f"Profile '{profile_id}' is invalid: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile_id": self.profile_id,
            "model": self.model,
            "label": self.label,
            "durations": list(self.durations),
            "resolutions": list(self.resolutions),
            "aspect_ratios": list(self.aspect_ratios),
            "supports_first_frame": self.supports_first_frame,
            "supports_last_frame": self.supports_last_frame,
            "frame_layout": self.frame_layout.value,
            "frame_labeling": self.frame_labeling.value,
            "send_dimensions": self.send_dimensions,
            "has_audio": self.has_audio,
        }


# =============================================================================
# BUILT-IN PROFILES
# =============================================================================

_WIDE_RATIOS = ("16:9", "1:1", "9:16")

DEFAULT_PROFILES: Dict[str, CapabilityProfile] = {p.profile_id: p for p in [
    CapabilityProfile(
        "seedance-1.0-pro", "bytedance:2@1",
        durations=(2, 4, 5, 6, 8, 10, 12),
        resolutions=("480p", "720p", "1080p"),
        aspect_ratios=("16:9", "9:16", "1:1", "4:3", "3:4", "21:9", "9:21"),
        label="Seedance 1.0 Pro",
        supports_last_frame=True,
        dimensions={
            "16:9": {"480p": (864, 480), "720p": (1248, 704), "1080p": (1920, 1088)},
            "9:16": {"480p": (480, 864), "720p": (704, 1248), "1080p": (1088, 1920)},
            "1:1": {"480p": (640, 640), "720p": (960, 960), "1080p": (1440, 1440)},
            "4:3": {"480p": (736, 544), "720p": (1120, 832), "1080p": (1664, 1248)},
            "3:4": {"480p": (544, 736), "720p": (832, 1120), "1080p": (1248, 1664)},
            "21:9": {"480p": (960, 416), "720p": (1568, 672), "1080p": (2176, 928)},
            "9:21": {"480p": (416, 960), "720p": (672, 1568), "1080p": (928, 2176)},
        },
    ),
    CapabilityProfile(
        "seedance-1.5-pro", "bytedance:seedance@1.5-pro",
        durations=(4, 5, 6, 8, 10, 12),
        resolutions=("480p", "720p"),
        aspect_ratios=("16:9", "9:16", "1:1", "4:3", "3:4", "21:9"),
        label="Seedance 1.5 Pro",
        supports_last_frame=True,
        has_audio=True,
        dimensions={
            "16:9": {"480p": (864, 496)},
            "9:16": {"480p": (496, 864)},
            "1:1": {"480p": (640, 640), "720p": (960, 960)},
            "4:3": {"480p": (752, 560), "720p": (1112, 834)},
            "3:4": {"480p": (560, 752), "720p": (834, 1112)},
            "21:9": {"480p": (992, 432), "720p": (1470, 630)},
        },
    ),
    CapabilityProfile(
        "klingai-2.1-pro", "klingai:5@2",
        durations=(5, 10), resolutions=("1080p",), aspect_ratios=_WIDE_RATIOS,
        label="KlingAI 2.1 Pro", supports_last_frame=True,
    ),
    CapabilityProfile(
        "klingai-2.5-turbo-pro", "klingai:6@1",
        durations=(5, 10), resolutions=("720p",), aspect_ratios=_WIDE_RATIOS,
        label="KlingAI 2.5 Turbo Pro", supports_last_frame=True,
    ),
    CapabilityProfile(
        "kling-video-2.6-pro", "klingai:kling-video@2.6-pro",
        durations=(5, 10), resolutions=("1080p",), aspect_ratios=_WIDE_RATIOS,
        label="Kling VIDEO 2.6 Pro", has_audio=True,
        frame_layout=FrameFieldLayout.INPUTS_WRAPPER,
        frame_labeling=FrameLabeling.IMAGE,
    ),
    CapabilityProfile(
        "kling-video-o1", "klingai:kling@o1",
        durations=(5, 10), resolutions=("1080p",), aspect_ratios=_WIDE_RATIOS,
        label="Kling VIDEO O1", supports_last_frame=True,
        frame_layout=FrameFieldLayout.INPUTS_WRAPPER,
        frame_labeling=FrameLabeling.IMAGE,
        # Dimensions are inferred from the frame
        send_dimensions=False,
    ),
    CapabilityProfile(
        "veo-3.0", "google:3@0",
        durations=(8,), resolutions=("720p", "1080p"), aspect_ratios=("16:9", "9:16"),
        label="Google Veo 3.0", has_audio=True,
    ),
    CapabilityProfile(
        "veo-3-fast", "google:3@1",
        durations=(8,), resolutions=("720p", "1080p"), aspect_ratios=("16:9", "9:16"),
        label="Google Veo 3 Fast", supports_last_frame=True, has_audio=True,
    ),
    CapabilityProfile(
        "veo-3.1", "google:3@2",
        durations=(8,), resolutions=("720p", "1080p"), aspect_ratios=("16:9", "9:16"),
        label="Google Veo 3.1", supports_last_frame=True, has_audio=True,
    ),
    CapabilityProfile(
        "veo-3.1-fast", "google:3@3",
        durations=(8,), resolutions=("720p", "1080p"), aspect_ratios=("16:9", "9:16"),
        label="Google Veo 3.1 Fast", supports_last_frame=True, has_audio=True,
    ),
    CapabilityProfile(
        "pixverse-v5.5", "pixverse:1@6",
        durations=(5, 8, 10), resolutions=("360p", "540p", "720p", "1080p"),
        aspect_ratios=("16:9", "4:3", "1:1", "3:4", "9:16"),
        label="PixVerse v5.5", supports_last_frame=True, has_audio=True,
    ),
    CapabilityProfile(
        "hailuo-2.3", "minimax:4@1",
        durations=(6, 10), resolutions=("768p", "1080p"), aspect_ratios=("16:9",),
        label="MiniMax Hailuo 2.3",
        frame_layout=FrameFieldLayout.INPUTS_WRAPPER,
        dimensions={"16:9": {"768p": (1366, 768)}},
    ),
    CapabilityProfile(
        "sora-2-pro", "openai:3@2",
        durations=(4, 8, 12), resolutions=("720p",),
        aspect_ratios=("16:9", "9:16", "7:4", "4:7"),
        label="Sora 2 Pro",
        dimensions={"7:4": {"720p": (1792, 1024)}, "4:7": {"720p": (1024, 1792)}},
    ),
    CapabilityProfile(
        "ltx-2-pro", "lightricks:2@0",
        durations=(6, 8, 10), resolutions=("1080p", "1440p", "2160p"), aspect_ratios=("16:9",),
        label="LTX-2 Pro", has_audio=True,
        frame_layout=FrameFieldLayout.INPUTS_WRAPPER,
        dimensions={"16:9": {"1440p": (2560, 1440), "2160p": (3840, 2160)}},
    ),
    CapabilityProfile(
        "runway-gen4-turbo", "runway:1@1",
        durations=(2, 3, 4, 5, 6, 7, 8, 9, 10), resolutions=("720p", "832p", "960p"),
        aspect_ratios=("16:9", "9:16", "1:1", "21:9", "4:3"),
        label="Runway Gen-4 Turbo",
        frame_layout=FrameFieldLayout.INPUTS_WRAPPER,
        frame_labeling=FrameLabeling.IMAGE,
        dimensions={
            "1:1": {"960p": (960, 960)},
            "21:9": {"672p": (1584, 672)},
            "4:3": {"832p": (1104, 832)},
        },
    ),
    CapabilityProfile(
        "alibaba-wan-2.6", "alibaba:wan@2.6",
        durations=(5, 10, 15), resolutions=("720p", "1080p"),
        aspect_ratios=("16:9", "9:16", "1:1", "17:13", "13:17"),
        label="Alibaba Wan 2.6", has_audio=True,
        frame_layout=FrameFieldLayout.INPUTS_WRAPPER,
        frame_labeling=FrameLabeling.IMAGE,
        dimensions={
            "1:1": {"720p": (960, 960), "1080p": (1440, 1440)},
            "17:13": {"720p": (1088, 832), "1080p": (1632, 1248)},
            "13:17": {"720p": (832, 1088), "1080p": (1248, 1632)},
        },
    ),
]}


# =============================================================================
# REGISTRY
# =============================================================================

_registry: Dict[str, CapabilityProfile] = dict(DEFAULT_PROFILES)


def get_profile(profile_id: str) -> CapabilityProfile:
    """Look up a registered profile by id."""
    try:
        return _registry[profile_id]
    except KeyError:
        raise UnknownProfileError(profile_id, sorted(_registry))


def register_profile(profile: CapabilityProfile, replace: bool = False) -> None:
    """Add a profile to the registry."""
    if profile.profile_id in _registry and not replace:
        raise InvalidConfigError(f"Profile '{profile.profile_id}' is already registered")
    _registry[profile.profile_id] = profile
    logger.debug(f"Registered capability profile: {profile.profile_id} ({profile.model})")


def list_profiles() -> List[CapabilityProfile]:
    return [_registry[key] for key in sorted(_registry)]


def load_profiles(profiles: Dict[str, Dict[str, Any]]) -> List[CapabilityProfile]:
    """Register custom profiles from the video_profiles config section."""
    loaded = []
    for profile_id, data in profiles.items():
        profile = CapabilityProfile.from_dict(profile_id, data)
        register_profile(profile, replace=True)
        loaded.append(profile)
    if loaded:
        logger.info(f"Loaded {len(loaded)} custom capability profile(s)")
    return loaded


def reset_profiles() -> None:
    """Restore the registry to the built-in profiles."""
    _registry.clear()
    _registry.update(DEFAULT_PROFILES)


def get_dimensions(
    aspect_ratio: str,
    resolution: str,
    profile: Optional[CapabilityProfile] = None
) -> Dimensions:
    if profile is not None:
        return profile.get_dimensions(aspect_ratio, resolution)
    return DIMENSION_MAP.get(aspect_ratio, {}).get(resolution, DEFAULT_DIMENSIONS)
