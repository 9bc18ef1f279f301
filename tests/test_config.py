import sys
from typing import Any

import pytest
from rich.logging import RichHandler

from kcl_design import config, logging_utils
from kcl_design.bootstrap import build_engine
from kcl_design.config import Settings
from kcl_design.core.prompt import SystemPromptContext
from kcl_design.core.types import ComposeOptions, ComposeResult, CompositionMode, DesignAction, GenerationContext
from kcl_design.integrations.republic_client import RepublicGateway

ENV_KEYS = (
    "KCL_DESIGN_MODEL",
    "KCL_DESIGN_API_KEY",
    "KCL_DESIGN_API_BASE",
    "KCL_DESIGN_MAX_TOKENS",
    "KCL_DESIGN_MAX_RETRIES",
    "KCL_DESIGN_LOG_LEVEL",
    "KCL_DESIGN_LOG_PROFILE",
)


class FakeLogger:
    def __init__(self) -> None:
        self.removed = 0
        self.sinks: list[tuple[Any, dict[str, Any]]] = []

    def remove(self) -> None:
        self.removed += 1

    def add(self, sink: Any, **kwargs: Any) -> int:
        self.sinks.append((sink, kwargs))
        return len(self.sinks)


class RecordingGateway:
    def __init__(self) -> None:
        self.options: list[ComposeOptions] = []

    async def compose(self, prompt: str, system_prompt: str, options: ComposeOptions) -> ComposeResult:
        self.options.append(options)
        return ComposeResult(text="<div></div>", provider="openai", model="gpt-4o")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings(_env_file=None)
    assert settings.model is None
    assert settings.max_tokens == 16384
    assert settings.max_retries == 2
    assert settings.log_level == "INFO"
    assert settings.log_profile == "default"


def test_settings_read_prefixed_env(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("KCL_DESIGN_MODEL", "anthropic:claude-sonnet-4-5")
    clean_env.setenv("KCL_DESIGN_API_KEY", "sk-secret")
    clean_env.setenv("kcl_design_max_retries", "0")
    clean_env.setenv("MODEL", "ignored:model")

    settings = Settings(_env_file=None)
    assert settings.model == "anthropic:claude-sonnet-4-5"
    assert settings.max_retries == 0
    assert "sk-secret" not in repr(settings)


def test_settings_reject_negative_retries(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, max_retries=-1)


def test_get_settings_configures_logging(clean_env: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []
    clean_env.setattr(config, "configure_logging", lambda **kwargs: calls.append(kwargs))
    clean_env.setenv("KCL_DESIGN_LOG_PROFILE", "console")
    clean_env.setenv("KCL_DESIGN_LOG_LEVEL", "debug")

    config.get_settings()

    assert calls == [{"profile": "console", "level": "debug"}]


def test_configure_logging_once_per_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeLogger()
    monkeypatch.setattr(logging_utils, "logger", fake)
    monkeypatch.setattr(logging_utils, "_CONFIGURED_PROFILE", None)

    logging_utils.configure_logging(profile="console", level="debug")
    logging_utils.configure_logging(profile="console", level="info")
    logging_utils.configure_logging(profile="default", level="warning")

    assert fake.removed == 2
    (console_sink, console_kwargs), (default_sink, default_kwargs) = fake.sinks
    assert isinstance(console_sink, RichHandler)
    assert console_kwargs["level"] == "DEBUG"
    assert default_sink is sys.stderr
    assert default_kwargs["level"] == "WARNING"


@pytest.mark.asyncio
async def test_build_engine_uses_settings(clean_env: pytest.MonkeyPatch) -> None:
    gateway = RecordingGateway()
    engine = build_engine(Settings(_env_file=None, max_retries=0, max_tokens=1000), gateway=gateway)

    result = await engine.execute_with_validation(
        DesignAction.EDIT,
        lambda: "edit",
        SystemPromptContext(CompositionMode.DECK),
        GenerationContext(canvas_id="c"),
    )

    assert not result.validation.valid
    assert [options.max_tokens for options in gateway.options] == [1000]


def test_build_engine_defaults_to_republic(clean_env: pytest.MonkeyPatch) -> None:
    engine = build_engine(Settings(_env_file=None, model="openai:gpt-4o"))
    assert isinstance(engine._gateway, RepublicGateway)
