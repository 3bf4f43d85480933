"""Hook implementation for built-in transform plugins."""

from typing import Any

from sluice.plugins.hookspecs import hookimpl


class SluiceBuiltinTransforms:
    """Hook implementer for built-in transform plugins."""

    @hookimpl
    def sluice_get_transforms(self) -> list[type[Any]]:
        """Return built-in transform plugin classes."""
        from sluice.plugins.transforms.field_mapper import FieldMapper
        from sluice.plugins.transforms.filter import Filter
        from sluice.plugins.transforms.passthrough import PassThrough

        return [PassThrough, FieldMapper, Filter]


# Singleton instance for registration
builtin_transforms = SluiceBuiltinTransforms()
