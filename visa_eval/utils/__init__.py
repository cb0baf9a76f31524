"""
Utility functions for the Visa Eligibility Evaluation Service
"""

from .validators import (
    require_fields,
    clamp_score,
    to_score,
    to_number,
    normalize_code,
    normalize_key,
    days_between,
    enum_value,
    to_list,
    unique
)

__all__ = [
    "require_fields",
    "clamp_score",
    "to_score",
    "to_number",
    "normalize_code",
    "normalize_key",
    "days_between",
    "enum_value",
    "to_list",
    "unique"
]
