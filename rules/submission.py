# rules/submission.py

import math
import re

from utils import normalize_score


MISSING_FIELDS_ERROR = "Handle and score are required"

_NUMERIC_TEXT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def coerce_handle(raw):
    """
    Cast a submitted handle to the stored string, or None if there is none.

    Any non-empty scalar counts: 42 -> "42", true -> "true", "  " -> "  ".
    Handles are not normalised: "AAA" and "aaa" are different players.
    """
    if raw is None or raw is False or raw == "":
        return None
    if isinstance(raw, (dict, list)):
        return None
    if raw is True:
        return "true"
    if isinstance(raw, (int, float)):
        if raw == 0:
            return None
        return str(normalize_score(raw))
    return str(raw)


def coerce_score(raw):
    """
    Cast a submitted score to a number, or None if it can't be one.

    Accepts numbers, booleans (as 1/0) and numeric text ("100", " 2.5 ",
    "1e3"). Integral values stay ints. NaN and infinity are refused.
    """
    if raw is None or isinstance(raw, (dict, list)):
        return None
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw

    if isinstance(raw, str):
        text = raw.strip()
        if not _NUMERIC_TEXT_RE.match(text):
            return None
        try:
            return int(text)
        except ValueError:
            raw = float(text)

    if not isinstance(raw, float) or not math.isfinite(raw):
        return None
    return normalize_score(raw)


def validate_submission(handle, score) -> tuple[bool, str]:
    """
    Returns (ok, error_message).

    Rules:
    - Handle must be present and non-empty
    - Score must be present and castable to a finite number; 0 is a valid score
    """
    if coerce_handle(handle) is None:
        return False, MISSING_FIELDS_ERROR

    if coerce_score(score) is None:
        return False, MISSING_FIELDS_ERROR

    return True, ""
