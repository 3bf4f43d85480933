"""Tests for JSON sink plugin."""

import json
from datetime import date
from pathlib import Path

import pytest

from sluice.plugins.context import PluginContext
from sluice.plugins.protocols import SinkProtocol


class TestJSONSink:
    """Tests for JSONSink plugin."""

    @pytest.fixture
    def ctx(self) -> PluginContext:
        return PluginContext(run_id="test-run", config={})

    def test_implements_protocol(self) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        assert isinstance(JSONSink({"path": "/tmp/test.json"}), SinkProtocol)
        assert JSONSink.name == "json"

    def test_write_json_array_across_batches(self, tmp_path: Path, ctx: PluginContext) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        path = tmp_path / "output.json"
        sink = JSONSink({"path": str(path), "format": "json"})
        sink.write([{"id": 1, "name": "alice"}], ctx)
        sink.write([{"id": 2, "name": "bob"}], ctx)
        sink.flush()
        sink.close()

        data = json.loads(path.read_text())
        assert [row["name"] for row in data] == ["alice", "bob"]

    def test_write_jsonl(self, tmp_path: Path, ctx: PluginContext) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        path = tmp_path / "output.jsonl"
        sink = JSONSink({"path": str(path)})
        sink.write([{"id": 1}, {"id": 2}], ctx)
        sink.close()

        lines = path.read_text().splitlines()
        assert [json.loads(line) for line in lines] == [{"id": 1}, {"id": 2}]

    @pytest.mark.parametrize(("suffix", "expected"), [(".json", "[]"), (".jsonl", "")])
    def test_empty_write_leaves_readable_file(
        self, tmp_path: Path, ctx: PluginContext, suffix: str, expected: str
    ) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        path = tmp_path / f"output{suffix}"
        sink = JSONSink({"path": str(path)})
        sink.write([], ctx)
        sink.close()

        assert path.read_text() == expected

    def test_hash_changes_with_content(self, tmp_path: Path, ctx: PluginContext) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        sink = JSONSink({"path": str(tmp_path / "out.jsonl")})
        first = sink.write([{"id": 1}], ctx)
        second = sink.write([{"id": 2}], ctx)
        sink.close()

        assert first.content_hash != second.content_hash
        assert second.size_bytes > first.size_bytes

    @pytest.mark.parametrize(
        "row",
        [{"pair": (1, 2)}, {"when": date(2024, 1, 2)}, {"nested": {1: "a"}}, {"tags": [{"s"}]}],
        ids=["tuple", "date", "int-key", "set-in-list"],
    )
    def test_strict_rejects_values_that_would_change(
        self, tmp_path: Path, ctx: PluginContext, row: dict
    ) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        path = tmp_path / "out.jsonl"
        sink = JSONSink({"path": str(path), "strict": True})

        with pytest.raises(TypeError, match="round-trip|not a string"):
            sink.write([{"ok": 1}, row], ctx)
        sink.close()

        assert not path.exists() or path.read_text() == ""

    def test_strict_accepts_json_native_values(self, tmp_path: Path, ctx: PluginContext) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        path = tmp_path / "out.jsonl"
        row = {"n": 1, "f": 0.5, "b": False, "none": None, "list": [1, "a"], "obj": {"k": [None]}}
        sink = JSONSink({"path": str(path), "strict": True})
        sink.write([row], ctx)
        sink.close()

        assert json.loads(path.read_text()) == row

    @pytest.mark.parametrize("fmt", ["json", "jsonl"])
    def test_unencodable_value_is_not_stringified(
        self, tmp_path: Path, ctx: PluginContext, fmt: str
    ) -> None:
        from sluice.plugins.sinks.json_sink import JSONSink

        path = tmp_path / f"out.{fmt}"
        sink = JSONSink({"path": str(path), "format": fmt})
        sink.write([{"id": 1}], ctx)

        with pytest.raises(TypeError):
            sink.write([{"id": 2}, {"when": date(2024, 1, 2)}], ctx)
        sink.close()

        assert "2024" not in path.read_text()
        assert '"id": 2' not in path.read_text()
