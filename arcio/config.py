"""
Editor configuration.

Settings come from environment variables, falling back to the defaults
below:

- ARCIO_SNAP_THRESHOLD: pixel distance under which a dragged node snaps
- ARCIO_CORNER_GAP: stub length of orthogonal routes next to a node border
- ARCIO_MAX_HISTORY: undo depth (0 = unlimited)
- ARCIO_DEFAULT_ALGORITHM: curve algorithm for newly connected edges
- ARCIO_AUTOSAVE_PATH: file the backend autosaves the graph to
"""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, field_validator

from .models import CurveAlgorithm


DEFAULT_SNAP_THRESHOLD = 5.0
DEFAULT_CORNER_GAP = 15.0
DEFAULT_MAX_HISTORY = 100

ENV_PREFIX = "ARCIO_"


class EditorSettings(BaseModel):
    """Tunable parameters of an editing session."""
    snap_threshold: float = DEFAULT_SNAP_THRESHOLD
    corner_gap: float = DEFAULT_CORNER_GAP
    max_history: Optional[int] = DEFAULT_MAX_HISTORY
    default_algorithm: CurveAlgorithm = CurveAlgorithm.DEFAULT
    autosave_path: Optional[Path] = None

    @field_validator('max_history', mode='before')
    @classmethod
    def zero_means_unlimited(cls, value):
        if value in (0, "0"):
            return None
        return value

    @field_validator('default_algorithm', mode='before')
    @classmethod
    def coerce_algorithm(cls, value):
        return CurveAlgorithm.coerce(value)


def load_settings(environ: Optional[dict] = None) -> EditorSettings:
    """Build settings from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ
    values = {}
    for field in EditorSettings.model_fields:
        raw = env.get(f"{ENV_PREFIX}{field.upper()}")
        if raw is not None and raw != "":
            values[field] = raw
    return EditorSettings(**values)
