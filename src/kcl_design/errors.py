"""Exceptions raised while wiring a design engine to its model."""

from __future__ import annotations


class KclDesignError(Exception):
    """Root of every error kcl-design raises itself."""


class ConfigurationError(KclDesignError):
    """Settings cannot produce a usable model gateway."""


class ModelNotConfiguredError(ConfigurationError):
    """Neither the call nor ``KCL_DESIGN_MODEL`` names a model."""


class InvalidModelFormatError(ConfigurationError):
    """A model name cannot be resolved to ``provider:model``."""
