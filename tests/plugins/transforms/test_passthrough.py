"""Tests for PassThrough transform."""

from sluice.plugins.context import PluginContext
from sluice.plugins.protocols import TransformProtocol


class TestPassThrough:
    """Tests for PassThrough transform plugin."""

    def test_implements_protocol(self) -> None:
        from sluice.plugins.transforms.passthrough import PassThrough

        assert isinstance(PassThrough({}), TransformProtocol)

    def test_returns_deep_copy(self) -> None:
        from sluice.plugins.transforms.passthrough import PassThrough

        row = {"id": 1, "meta": {"tags": ["a"]}}
        result = PassThrough({}).process(row, PluginContext(run_id="test"))

        assert result.status == "success"
        assert result.row == row
        assert result.row is not row
        assert result.row["meta"] is not row["meta"]
