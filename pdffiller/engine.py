"""One-time process setup for the libraries pdffiller drives.

``initialize`` is never called by the core modules. Applications call it once
at startup (the CLI does); calling it again is harmless.
"""

from __future__ import annotations

import logging

import fitz

LOGGER = logging.getLogger("pdffiller.engine")

_initialized = False


def initialize(*, quiet: bool = True) -> None:
    """Route MuPDF diagnostics away from stderr and quieten pypdf warnings."""
    global _initialized
    if _initialized:
        return

    fitz.TOOLS.mupdf_display_errors(not quiet)
    fitz.TOOLS.mupdf_display_warnings(not quiet)
    logging.getLogger("pypdf").setLevel(logging.ERROR if quiet else logging.WARNING)

    _initialized = True
    LOGGER.debug("Engine initialized (quiet=%s)", quiet)


def is_initialized() -> bool:
    return _initialized
