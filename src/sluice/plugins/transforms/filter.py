"""Filter transform plugin.

Keeps or drops rows based on one condition over one field.
"""

import copy
import re
from typing import Any

from pydantic import ConfigDict, Field, model_validator

from sluice.contracts import TransformResult
from sluice.plugins.base import BaseTransform
from sluice.plugins.config_base import PluginConfig
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import DynamicRowSchema
from sluice.plugins.sentinels import MISSING, get_nested

CONDITION_KEYS = (
    "equals",
    "not_equals",
    "greater_than",
    "less_than",
    "contains",
    "matches",
    "in",
)


class FilterConfig(PluginConfig):
    """Configuration for filter transform.

    A condition counts as configured when its key is present, so
    ``equals: null`` filters for None. ``in`` is a Python keyword, so it is
    stored as ``in_`` and accepted under its plain name.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    field: str
    allow_missing: bool = False

    equals: Any = None
    not_equals: Any = None
    greater_than: Any = None
    less_than: Any = None
    contains: str | None = None
    matches: str | None = None
    in_: list[Any] | None = Field(default=None, alias="in")

    @model_validator(mode="after")
    def validate_single_condition(self) -> "FilterConfig":
        """Exactly one condition must be configured."""
        found = self._configured()
        if len(found) != 1:
            raise ValueError(
                f"Filter requires exactly one condition, got {found or 'none'}. "
                f"Valid conditions: {list(CONDITION_KEYS)}"
            )
        return self

    def _configured(self) -> list[str]:
        return [
            key
            for key in CONDITION_KEYS
            if ("in_" if key == "in" else key) in self.model_fields_set
        ]

    @property
    def condition(self) -> tuple[str, Any]:
        """The single configured (condition, value) pair."""
        key = self._configured()[0]
        return key, getattr(self, "in_" if key == "in" else key)


class Filter(BaseTransform):
    """Filter rows based on a field condition.

    Returns success with the row if the condition passes, success with
    row=None if the row is filtered out.

    Config options:
        field: Field to check (supports dot notation for nested fields)
        allow_missing: If True, missing fields pass filter (default: False)

        Conditions (exactly one required):
        - equals: Field must equal this value
        - not_equals: Field must not equal this value
        - greater_than: Field must be > this value (numeric)
        - less_than: Field must be < this value (numeric)
        - contains: Field must contain this substring
        - matches: Field must match this regex pattern
        - in: Field must be one of these values (list)
    """

    name = "filter"
    input_schema = DynamicRowSchema
    output_schema = DynamicRowSchema
    plugin_version = "1.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = FilterConfig.from_dict(config)
        self._field = cfg.field
        self._allow_missing = cfg.allow_missing
        self._condition_type, self._condition_value = cfg.condition

        self._regex: re.Pattern[str] | None = None
        if self._condition_type == "matches":
            self._regex = re.compile(self._condition_value)

    def process(self, row: dict[str, Any], ctx: PluginContext) -> TransformResult:
        """Apply filter condition to row.

        Returns:
            TransformResult with row if passes, row=None if filtered, or an
            error result when the field cannot be compared with the value
        """
        field_value = get_nested(row, self._field)

        if field_value is MISSING:
            if self._allow_missing:
                return TransformResult.success(copy.deepcopy(row))
            return TransformResult.success(None)

        try:
            passes = self._evaluate_condition(field_value)
        except TypeError as e:
            return TransformResult.error(
                {
                    "message": f"Cannot apply '{self._condition_type}' to field '{self._field}'",
                    "error": str(e),
                }
            )

        if passes:
            return TransformResult.success(copy.deepcopy(row))
        return TransformResult.success(None)

    def _evaluate_condition(self, value: Any) -> bool:
        match self._condition_type:
            case "equals":
                return bool(value == self._condition_value)
            case "not_equals":
                return bool(value != self._condition_value)
            case "greater_than":
                return bool(value > self._condition_value)
            case "less_than":
                return bool(value < self._condition_value)
            case "contains":
                return self._condition_value in str(value)
            case "matches":
                assert self._regex is not None
                return self._regex.search(str(value)) is not None
            case "in":
                return value in self._condition_value
            case _:
                raise AssertionError(f"unknown condition {self._condition_type!r}")
