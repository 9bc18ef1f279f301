"""Core generation, parsing and validation components."""

from kcl_design.core.density import DensityCheckResult, apply_density_warnings, validate_content_density
from kcl_design.core.engine import (
    MAX_DESIGN_RETRIES,
    DesignEngine,
    EngineOptions,
    ModelGateway,
    build_image_asset_ref,
    build_proof_payload,
)
from kcl_design.core.outline import DEFAULT_OUTLINE_LEXICON, OutlineLexicon, detect_outline_phase
from kcl_design.core.parser import parse_frames_from_response
from kcl_design.core.validator import merge_validations, validate_frame_code
from kcl_design.core.vocabulary import DEFAULT_VOCABULARY, ComponentVocabulary

__all__ = [
    "DEFAULT_OUTLINE_LEXICON",
    "DEFAULT_VOCABULARY",
    "MAX_DESIGN_RETRIES",
    "ComponentVocabulary",
    "DensityCheckResult",
    "DesignEngine",
    "EngineOptions",
    "ModelGateway",
    "OutlineLexicon",
    "apply_density_warnings",
    "build_image_asset_ref",
    "build_proof_payload",
    "detect_outline_phase",
    "merge_validations",
    "parse_frames_from_response",
    "validate_content_density",
    "validate_frame_code",
]
