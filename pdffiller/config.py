"""
Configuration settings for pdffiller.
Consolidates defaults and environment overrides in one place.
"""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Rendering
DEFAULT_RENDER_DPI = _env_float("PDFFILLER_RENDER_DPI", 150.0)
POINTS_PER_INCH = 72.0

# Button states
DEFAULT_ON_STATE = "Yes"  # used when a widget exposes no "on" appearance
OFF_STATE = "Off"
FALSE_VALUES = frozenset({"", "0", "false"})

# Field tree traversal
UNKNOWN_PAGE_INDEX = -1
MAX_FIELD_DEPTH = _env_int("PDFFILLER_MAX_FIELD_DEPTH", 64)

# Field flag bits (PDF 32000-1, 12.7.3.1 and 12.7.4)
FLAG_READ_ONLY = 1 << 0
FLAG_REQUIRED = 1 << 1
FLAG_RADIO = 1 << 15
FLAG_PUSHBUTTON = 1 << 16
FLAG_COMBO_EDIT = 1 << 18

# Output
PDF_HEADER = b"%PDF-"
TEMP_PREFIX = ".pdffiller_"
