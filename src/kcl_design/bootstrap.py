"""Engine assembly from settings."""

from __future__ import annotations

from kcl_design.config import Settings, get_settings
from kcl_design.core.engine import DesignEngine, ModelGateway
from kcl_design.integrations.republic_client import build_gateway


def build_engine(settings: Settings | None = None, gateway: ModelGateway | None = None) -> DesignEngine:
    """Build a design engine wired to the configured model gateway."""

    resolved = settings or get_settings()
    return DesignEngine(
        gateway or build_gateway(resolved),
        max_retries=resolved.max_retries,
        default_max_tokens=resolved.max_tokens,
    )
