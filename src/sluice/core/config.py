"""
Configuration schema and loading for Sluice pipelines.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

The same SourceSettings/SinkSettings instances double as the physical
descriptors bound in a FlowDef, so a snapshot sub-flow can rebind the very
object the session registered.
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# Compiled regex for validating source, node and sink identifiers
_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _check_identifier(kind: str, name: str) -> None:
    if not _IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"{kind} name '{name}' must be a valid identifier")


class SourceSettings(BaseModel):
    """Physical input descriptor: which source plugin reads what."""

    model_config = {"frozen": True}

    plugin: str = Field(description="Source plugin name (csv, json, ...)")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Plugin-specific configuration options",
    )


class SinkSettings(BaseModel):
    """Physical output descriptor.

    ``input`` names the node feeding the sink when declared in YAML; it is
    unused when a sink is bound programmatically to a pipe.
    """

    model_config = {"frozen": True}

    plugin: str = Field(description="Sink plugin name (csv, json, ...)")
    input: str | None = Field(
        default=None,
        description="Source or node name whose rows are written",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Plugin-specific configuration options",
    )


class NodeSettings(BaseModel):
    """One operator node of a declared pipeline.

    Example YAML:
        nodes:
          - name: adults
            plugin: filter
            inputs: [people]
            options:
              field: age
              greater_than: 17
          - name: everyone
            type: merge
            inputs: [adults, minors]
    """

    model_config = {"frozen": True}

    name: str = Field(description="Node identifier (unique within pipeline)")
    type: Literal["transform", "merge", "literal"] = Field(
        default="transform",
        description="transform (one input), merge (two or more), literal (rows in options)",
    )
    plugin: str | None = Field(
        default=None,
        description="Transform plugin name (transform nodes only)",
    )
    inputs: list[str] = Field(
        default_factory=list,
        description="Upstream source or node names",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Plugin-specific configuration options",
    )

    @model_validator(mode="after")
    def validate_shape(self) -> "NodeSettings":
        """Check inputs and plugin against the node type."""
        _check_identifier("Node", self.name)
        if self.type == "transform":
            if self.plugin is None:
                raise ValueError(f"Node '{self.name}': transform nodes require a plugin")
            if len(self.inputs) != 1:
                raise ValueError(
                    f"Node '{self.name}': transform nodes take exactly one input, "
                    f"got {len(self.inputs)}"
                )
        elif self.type == "merge":
            if len(self.inputs) < 2:
                raise ValueError(f"Node '{self.name}': merge nodes need at least two inputs")
            if self.plugin is not None:
                raise ValueError(f"Node '{self.name}': merge nodes do not take a plugin")
        else:
            if self.inputs:
                raise ValueError(f"Node '{self.name}': literal nodes have no inputs")
            if not isinstance(self.options.get("rows"), list):
                raise ValueError(f"Node '{self.name}': literal nodes require options.rows")
        return self


class SnapshotSettings(BaseModel):
    """Where and how snapshots are materialized."""

    model_config = {"frozen": True}

    staging_dir: Path = Field(
        default=Path("/tmp/sluice/snapshots"),
        description="Directory holding temporary snapshot sinks",
    )
    format: Literal["jsonl"] = Field(
        default="jsonl",
        description="Serialization of temporary sinks; must read back the records written",
    )
    max_collect_rows: int = Field(
        default=10_000,
        gt=0,
        description="Row limit for eager read-back (to_list)",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Abort the snapshot run after this many seconds",
    )


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = Field(default=False, description="Emit JSON log lines")


class SluiceSettings(BaseModel):
    """Top-level Sluice configuration.

    All settings are validated and frozen after construction. A settings
    file may declare no pipeline at all (interactive use only needs the
    snapshot and logging sections).
    """

    model_config = {"frozen": True}

    sources: dict[str, SourceSettings] = Field(
        default_factory=dict,
        description="Named source descriptors",
    )
    nodes: list[NodeSettings] = Field(
        default_factory=list,
        description="Operator nodes in declaration order",
    )
    sinks: dict[str, SinkSettings] = Field(
        default_factory=dict,
        description="Named sink descriptors",
    )
    snapshot: SnapshotSettings = Field(
        default_factory=SnapshotSettings,
        description="Snapshot staging configuration",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    @field_validator("sources")
    @classmethod
    def validate_source_names(
        cls, v: dict[str, SourceSettings]
    ) -> dict[str, SourceSettings]:
        """Source names must be identifiers."""
        for name in v:
            _check_identifier("Source", name)
        return v

    @model_validator(mode="after")
    def validate_references(self) -> "SluiceSettings":
        """Ensure names are unique and every input refers to something declared earlier."""
        declared: set[str] = set(self.sources)
        for node in self.nodes:
            if node.name in declared:
                raise ValueError(f"Duplicate name '{node.name}' in sources/nodes")
            for upstream in node.inputs:
                if upstream not in declared:
                    raise ValueError(
                        f"Node '{node.name}' references unknown input '{upstream}'. "
                        f"Inputs must be declared before use: {sorted(declared)}"
                    )
            declared.add(node.name)

        for sink_name, sink in self.sinks.items():
            _check_identifier("Sink", sink_name)
            if sink.input is None:
                raise ValueError(f"Sink '{sink_name}' requires an input")
            if sink.input not in declared:
                raise ValueError(
                    f"Sink '{sink_name}' references unknown input '{sink.input}'. "
                    f"Available: {sorted(declared)}"
                )
        return self


def load_settings(config_path: Path) -> SluiceSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SLUICE_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: SLUICE_SNAPSHOT__MAX_COLLECT_ROWS for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated SluiceSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SLUICE",
        settings_files=[str(config_path)],
        environments=False,  # No [default]/[production] sections
        load_dotenv=False,  # Don't auto-load .env
        merge_enabled=True,  # Deep merge nested dicts
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    # Also filter out internal Dynaconf settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): v
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    return SluiceSettings(**raw_config)


def resolve_config(settings: SluiceSettings) -> dict[str, Any]:
    """Convert validated settings to a JSON-compatible dict.

    Includes all settings (explicit + defaults); used by the CLI when
    printing the effective configuration.
    """
    return settings.model_dump(mode="json")
