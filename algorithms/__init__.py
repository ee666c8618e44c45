from .weight_converter import WeightConverter
from .set_normalizer import (
    normalize_set,
    normalize_entry,
    normalize_workout,
    format_set,
    format_number,
)

__all__ = [
    "WeightConverter",
    "normalize_set",
    "normalize_entry",
    "normalize_workout",
    "format_set",
    "format_number",
]
