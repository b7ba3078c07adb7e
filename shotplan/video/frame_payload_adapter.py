"""
Shotplan Frame-Payload Adapter

Pure mapping from a finalized shot, its prompt set and its resolved frame
image URLs to the request payload one capability profile expects.

Precondition violations (no opening frame, no motion prompt, a profile that
cannot take the opening frame) come back as a PayloadError result rather
than an exception, so the caller can decide whether to regenerate upstream
or skip the shot.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shotplan.core.constants import FrameTopology
from shotplan.core.logging_config import get_logger
from shotplan.models.prompts import PromptSet
from shotplan.models.shot import Shot
from shotplan.planning.duration_reconciler import snap_duration
from shotplan.video.capability_profiles import (
    CapabilityProfile,
    Dimensions,
    FrameFieldLayout,
    FrameLabeling,
)

logger = get_logger("video.payload")

TASK_TYPE = "videoInference"
DELIVERY_METHOD = "async"


@dataclass(frozen=True)
class FrameSet:
    """Resolved frame image URLs for one shot."""
    image_url: Optional[str] = None
    start_frame_url: Optional[str] = None
    end_frame_url: Optional[str] = None

    def opening_url(self, topology: FrameTopology) -> Optional[str]:
        if topology is FrameTopology.SINGLE:
            return self.image_url
        if topology is FrameTopology.START_END:
            return self.start_frame_url
        raise ValueError(f"Unhandled frame topology: {topology}")

    def closing_url(self, topology: FrameTopology) -> Optional[str]:
        if topology is FrameTopology.SINGLE:
            return None
        if topology is FrameTopology.START_END:
            return self.end_frame_url
        raise ValueError(f"Unhandled frame topology: {topology}")


@dataclass
class PayloadError:
    """Why a payload could not be built."""
    code: str
    message: str
    details: str = ""
    suggestions: List[str] = field(default_factory=list)

    def __str__(self):
        return f"{self.message}: {self.details}" if self.details else self.message


@dataclass
class PayloadResult:
    """Either a provider payload or the error that prevented it."""
    shot_id: str
    profile_id: str
    payload: Optional[Dict[str, Any]] = None
    error: Optional[PayloadError] = None
    duration: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    end_frame_omitted: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and self.payload is not None

    @classmethod
    def failure(cls, shot_id: str, profile_id: str, error: PayloadError) -> 'PayloadResult':
        return cls(shot_id=shot_id, profile_id=profile_id, error=error)


def _frame_entry(url: str, role: str, labeling: FrameLabeling) -> Dict[str, str]:
    if labeling is FrameLabeling.IMAGE:
        return {"image": url}
    if labeling is FrameLabeling.INPUT_IMAGE_WITH_ROLE:
        return {"inputImage": url, "frame": role}
    raise ValueError(f"Unhandled frame labeling: {labeling}")


def _place_frames(payload: Dict[str, Any], frames: List[Dict[str, str]], layout: FrameFieldLayout) -> None:
    if layout is FrameFieldLayout.TOP_LEVEL:
        payload["frameImages"] = frames
    elif layout is FrameFieldLayout.INPUTS_WRAPPER:
        payload["inputs"] = {"frameImages": frames}
    else:
        raise ValueError(f"Unhandled frame layout: {layout}")


def build_video_payload(
    shot: Shot,
    prompt_set: PromptSet,
    frames: FrameSet,
    profile: CapabilityProfile,
    aspect_ratio: str = "16:9",
    resolution: Optional[str] = None,
    task_uuid: Optional[str] = None
) -> PayloadResult:
    """
    Build the video-generation request for one shot.

    Args:
        shot: Finalized shot
        prompt_set: Resolved prompts; the motion prompt becomes the positive prompt
        frames: Frame image URLs from the image step
        profile: Target capability profile
        aspect_ratio: Output aspect ratio
        resolution: Output resolution, defaults to the profile's first
        task_uuid: Request id, generated when omitted

    Returns:
        PayloadResult
    """
    topology = shot.frame_topology

    opening = frames.opening_url(topology)
    if not opening:
        slot = "storyboard image" if topology is FrameTopology.SINGLE else "start frame"
        return PayloadResult.failure(shot.shot_id, profile.profile_id, PayloadError(
            code="missing_opening_frame",
            message=f"{topology.value} shot requires a {slot}",
            details=f"Generate the {slot} for {shot.shot_id} first",
        ))

    if not profile.supports_first_frame:
        return PayloadResult.failure(shot.shot_id, profile.profile_id, PayloadError(
            code="first_frame_unsupported",
            message=f"Profile {profile.profile_id} does not accept an opening frame",
            suggestions=["Choose a profile with image-to-video support"],
        ))

    if not prompt_set.video_motion_prompt:
        return PayloadResult.failure(shot.shot_id, profile.profile_id, PayloadError(
            code="missing_motion_prompt",
            message=f"Shot {shot.shot_id} has no video motion prompt",
        ))

    resolution = resolution or profile.default_resolution
    if resolution not in profile.resolutions:
        return PayloadResult.failure(shot.shot_id, profile.profile_id, PayloadError(
            code="unsupported_resolution",
            message=f"Resolution {resolution} not supported by {profile.profile_id}",
            details=f"Supported: {', '.join(profile.resolutions)}",
        ))
    if aspect_ratio not in profile.aspect_ratios:
        logger.warning(
            f"Aspect ratio {aspect_ratio} not listed for {profile.profile_id}, "
            "using generic dimensions"
        )

    duration = snap_duration(shot.duration, profile.durations)
    if duration != shot.duration:
        logger.info(
            f"Shot {shot.shot_id}: duration {shot.duration}s re-snapped to "
            f"{duration}s for {profile.profile_id}"
        )

    frame_entries = [_frame_entry(opening, "first", profile.frame_labeling)]
    closing = frames.closing_url(topology)
    end_frame_omitted = False
    if closing:
        if profile.supports_last_frame:
            frame_entries.append(_frame_entry(closing, "last", profile.frame_labeling))
        else:
            end_frame_omitted = True
            logger.debug(f"Shot {shot.shot_id}: {profile.profile_id} takes no last frame, omitted")

    payload: Dict[str, Any] = {
        "taskType": TASK_TYPE,
        "taskUUID": task_uuid or str(uuid.uuid4()),
        "model": profile.model,
        "positivePrompt": prompt_set.video_motion_prompt,
        "duration": duration,
    }
    _place_frames(payload, frame_entries, profile.frame_layout)
    payload.update({
        "numberResults": 1,
        "deliveryMethod": DELIVERY_METHOD,
        "includeCost": True,
    })

    dimensions = profile.get_dimensions(aspect_ratio, resolution)
    if profile.send_dimensions:
        payload["width"], payload["height"] = dimensions

    if profile.provider_settings:
        payload["providerSettings"] = dict(profile.provider_settings)

    return PayloadResult(
        shot_id=shot.shot_id,
        profile_id=profile.profile_id,
        payload=payload,
        duration=duration,
        dimensions=dimensions,
        end_frame_omitted=end_frame_omitted,
    )
