"""kcl-design - validated KCL frame generation."""

from .core import DesignEngine, EngineOptions, detect_outline_phase, parse_frames_from_response, validate_frame_code
from .core.types import GenerationContext, GenerationResult

__version__ = "0.1.0"

__all__ = [
    "DesignEngine",
    "EngineOptions",
    "GenerationContext",
    "GenerationResult",
    "detect_outline_phase",
    "parse_frames_from_response",
    "validate_frame_code",
]
