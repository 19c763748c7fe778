"""Tunables and runtime options for the article extractor.

Module-level constants hold the defaults; :class:`ReadabilityOptions` is the
validated, immutable bundle a caller hands to
:class:`~readr.readability.Readability`.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Flag, auto

from bs4 import Tag
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Extraction thresholds
# ---------------------------------------------------------------------------

# Minimum extracted characters for a pass to be accepted
DEFAULT_CHAR_THRESHOLD = 500

# Number of best-scoring candidates kept for ancestor promotion
DEFAULT_N_TOP_CANDIDATES = 5

# 0 disables the element-count ceiling
DEFAULT_MAX_ELEMS_TO_PARSE = 0

# Scoring stops contributing after this many ancestor levels
ANCESTOR_SCORE_DEPTH = 5

# Elements shorter than this are never scored
MIN_SCORABLE_TEXT_LENGTH = 25

# Share widgets longer than this are kept
SHARE_ELEMENT_THRESHOLD = 500

# Top candidates needed before promoting to a common ancestor
MINIMUM_TOP_CANDIDATES = 3

# ---------------------------------------------------------------------------
# Class handling
# ---------------------------------------------------------------------------

# Always kept by the class stripper
CLASSES_TO_PRESERVE: tuple[str, ...] = ("page",)


class Strictness(Flag):
    """Heuristic toggles relaxed one at a time by the retry loop."""

    NONE = 0
    STRIP_UNLIKELYS = auto()
    WEIGHT_CLASSES = auto()
    CLEAN_CONDITIONALLY = auto()
    ALL = STRIP_UNLIKELYS | WEIGHT_CLASSES | CLEAN_CONDITIONALLY


# Relaxation order used by the retry loop
RELAXATION_ORDER: tuple[Strictness, ...] = (
    Strictness.STRIP_UNLIKELYS,
    Strictness.WEIGHT_CLASSES,
    Strictness.CLEAN_CONDITIONALLY,
)


def inner_html(element: Tag) -> str:
    """Default serializer: the element's inner HTML."""
    return element.decode_contents()


class ReadabilityOptions(BaseModel):
    """Caller-facing configuration.  Read-only once constructed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    char_threshold: int = Field(default=DEFAULT_CHAR_THRESHOLD, ge=0)
    keep_classes: bool = False
    classes_to_preserve: tuple[str, ...] = CLASSES_TO_PRESERVE
    disable_json_ld: bool = False
    allowed_video_regex: re.Pattern[str] | None = None
    serializer: Callable[[Tag], str] = inner_html
    max_elems_to_parse: int = Field(default=DEFAULT_MAX_ELEMS_TO_PARSE, ge=0)
    n_top_candidates: int = Field(default=DEFAULT_N_TOP_CANDIDATES, ge=1)
    detect_language: bool = False

    @field_validator("classes_to_preserve", mode="before")
    @classmethod
    def _merge_default_classes(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return CLASSES_TO_PRESERVE
        if isinstance(value, str):
            value = value.split()
        merged = list(CLASSES_TO_PRESERVE)
        for name in value:  # type: ignore[union-attr]
            if name not in merged:
                merged.append(str(name))
        return tuple(merged)

    @field_validator("allowed_video_regex", mode="before")
    @classmethod
    def _compile_video_regex(cls, value: object) -> object:
        if isinstance(value, str):
            return re.compile(value, re.IGNORECASE)
        return value
