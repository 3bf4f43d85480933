"""Built-in transform plugins.

Transforms process rows one at a time. Each receives a row and returns a
TransformResult: a new row, None to drop it, or an error.
"""

from sluice.plugins.transforms.field_mapper import FieldMapper
from sluice.plugins.transforms.filter import Filter
from sluice.plugins.transforms.passthrough import PassThrough

__all__ = ["FieldMapper", "Filter", "PassThrough"]
