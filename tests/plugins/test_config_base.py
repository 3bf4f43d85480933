# tests/plugins/test_config_base.py
"""Tests for plugin configuration base classes."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sluice.plugins.config_base import PathConfig, PluginConfig, PluginConfigError


class TestPluginConfig:
    """Tests for PluginConfig base class."""

    def test_rejects_extra_fields(self) -> None:
        class MyConfig(PluginConfig):
            name: str

        with pytest.raises(ValidationError, match="Extra inputs are not permitted"):
            MyConfig(name="test", unknown_field="value")  # type: ignore[call-arg]

    def test_from_dict_wraps_validation_error(self) -> None:
        from sluice.contracts import SluiceError

        class MyConfig(PluginConfig):
            required_field: str

        with pytest.raises(PluginConfigError) as exc_info:
            MyConfig.from_dict({})

        assert "Invalid configuration for MyConfig" in str(exc_info.value)
        assert isinstance(exc_info.value, SluiceError)
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_from_dict_success(self) -> None:
        class MyConfig(PluginConfig):
            name: str
            count: int = 10

        cfg = MyConfig.from_dict({"name": "test"})

        assert cfg.name == "test"
        assert cfg.count == 10


class TestPathConfig:
    """Tests for PathConfig."""

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_path_rejected(self, path: str) -> None:
        with pytest.raises(PluginConfigError, match="path cannot be empty"):
            PathConfig.from_dict({"path": path})

    def test_resolved_path_relative(self, tmp_path: Path) -> None:
        cfg = PathConfig(path="data/in.csv")

        assert cfg.resolved_path() == Path("data/in.csv")
        assert cfg.resolved_path(tmp_path) == tmp_path / "data/in.csv"

    def test_resolved_path_absolute_ignores_base(self, tmp_path: Path) -> None:
        cfg = PathConfig(path="/abs/in.csv")

        assert cfg.resolved_path(tmp_path) == Path("/abs/in.csv")
