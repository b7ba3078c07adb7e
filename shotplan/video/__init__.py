"""
Shotplan Video

Capability profiles and the frame-payload adapter.
"""

from .capability_profiles import (
    CapabilityProfile,
    FrameFieldLayout,
    FrameLabeling,
    DEFAULT_PROFILES,
    DIMENSION_MAP,
    get_profile,
    register_profile,
    list_profiles,
    load_profiles,
    reset_profiles,
    get_dimensions,
)
from .frame_payload_adapter import (
    FrameSet,
    PayloadError,
    PayloadResult,
    build_video_payload,
)

__all__ = [
    'CapabilityProfile',
    'FrameFieldLayout',
    'FrameLabeling',
    'DEFAULT_PROFILES',
    'DIMENSION_MAP',
    'get_profile',
    'register_profile',
    'list_profiles',
    'load_profiles',
    'reset_profiles',
    'get_dimensions',
    'FrameSet',
    'PayloadError',
    'PayloadResult',
    'build_video_payload',
]
