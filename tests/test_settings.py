"""Tests for environment-driven settings."""

import io
import sys

import pytest
from loguru import logger

from classeval.classification import Classification
from classeval.settings import Settings, configure_logging, settings


def test_settings_defaults(monkeypatch):
    """Test default values."""
    monkeypatch.delenv("CLASSEVAL_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CLASSEVAL_PROBABILITY_TOLERANCE", raising=False)

    config = Settings()

    assert config.log_level == "INFO"
    assert config.probability_tolerance == 0.01


def test_settings_from_environment(monkeypatch):
    """Test overriding settings through prefixed environment variables."""
    monkeypatch.setenv("CLASSEVAL_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLASSEVAL_PROBABILITY_TOLERANCE", "0.5")

    config = Settings()

    assert config.log_level == "debug"
    assert config.probability_tolerance == 0.5


def test_tolerance_setting_drives_classifications(monkeypatch):
    """Test that the default probability tolerance is read at construction."""
    monkeypatch.setattr(settings, "probability_tolerance", 0.2)

    classification = Classification.conditional_from(["a", "b"], [0.6, 0.3])

    assert classification.tolerance == 0.2


def test_configure_logging_filters_by_level(monkeypatch):
    """Test that the stderr sink honours the requested level."""
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging("warning")
    logger.info("hidden message")
    logger.warning("visible message")
    logger.remove()

    assert "hidden message" not in stream.getvalue()
    assert "visible message" in stream.getvalue()


def test_configure_logging_rejects_unknown_level():
    """Test that an unknown level name fails loudly."""
    with pytest.raises(ValueError):
        configure_logging("chatty")
