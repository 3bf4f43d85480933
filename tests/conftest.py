# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import csv
import os
import time
from pathlib import Path
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from sluice.contracts import TransformResult
from sluice.plugins.base import BaseTransform
from sluice.plugins.context import PluginContext
from sluice.plugins.hookspecs import hookimpl
from sluice.plugins.schemas import DynamicRowSchema

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Test plugins
# =============================================================================


class ExplodingTransform(BaseTransform):
    """Raises on the first row it sees."""

    name = "explode"
    input_schema = DynamicRowSchema
    output_schema = DynamicRowSchema
    plugin_version = "0.0.1"

    def process(self, row: dict[str, Any], ctx: PluginContext) -> TransformResult:
        raise RuntimeError("boom")


class SlowTransform(BaseTransform):
    """Sleeps ``config["seconds"]`` per row."""

    name = "slow"
    input_schema = DynamicRowSchema
    output_schema = DynamicRowSchema
    plugin_version = "0.0.1"

    def process(self, row: dict[str, Any], ctx: PluginContext) -> TransformResult:
        time.sleep(self.config.get("seconds", 0.5))
        return TransformResult.success(dict(row))


class FailingTestPlugins:
    """Hook implementer registering the test-only transforms."""

    @hookimpl
    def sluice_get_transforms(self) -> list[type[Any]]:
        return [ExplodingTransform, SlowTransform]


# =============================================================================
# Fixtures
# =============================================================================


def write_csv(path: Path, rows: list[dict[str, Any]]) -> Path:
    """Write rows (all keys of the first row as header) to a CSV file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0]))
        writer.writeheader()
        writer.writerows(rows)
    return path


@pytest.fixture
def people_csv(tmp_path: Path) -> Path:
    """Small CSV with name/age/city columns."""
    return write_csv(
        tmp_path / "people.csv",
        [
            {"name": "ada", "age": "36", "city": "london"},
            {"name": "bob", "age": "17", "city": "paris"},
            {"name": "cy", "age": "52", "city": "london"},
        ],
    )


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """Directory for snapshot temp sinks (not created up front)."""
    return tmp_path / "snapshots"


@pytest.fixture
def manager() -> Any:
    """Plugin manager with built-in and test plugins registered."""
    from sluice.engine.session import default_manager

    pm = default_manager()
    pm.register(FailingTestPlugins())
    return pm


@pytest.fixture
def session(staging_dir: Path, manager: Any) -> Any:
    """Session staging snapshots under tmp_path."""
    from sluice.core.config import SnapshotSettings
    from sluice.engine.session import Session

    return Session(
        snapshot_settings=SnapshotSettings(staging_dir=staging_dir),
        manager=manager,
    )


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    """Undo configure_logging() calls made by CLI commands."""
    import logging

    import structlog

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)
