"""Configuration helpers for building services outside the Flask app."""

from __future__ import annotations

from typing import Any

from authcore.core.config import TestingConfig


def config_mapping(**overrides: Any) -> dict[str, Any]:
    """Return the testing configuration as a plain mapping, with overrides."""
    values = {k: getattr(TestingConfig, k) for k in dir(TestingConfig) if k.isupper()}
    values.update(overrides)
    return values
