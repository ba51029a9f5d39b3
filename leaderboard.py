# leaderboard.py
from __future__ import annotations

import logging
from typing import List

from rules.submission import coerce_handle, coerce_score, validate_submission
from store import ScoreStore, StoreFault
from utils import utc_now_iso

logger = logging.getLogger(__name__)

LEADERBOARD_LIMIT = 10

__all__ = ["InvalidSubmission", "Leaderboard", "LEADERBOARD_LIMIT", "StoreFault"]


class InvalidSubmission(ValueError):
    """A submission was rejected before touching any store."""


class Leaderboard:
    """
    Best score per handle, top LEADERBOARD_LIMIT on read.

    The store is picked once at startup (see store.select_store) and never
    swapped: a durable store that starts failing raises StoreFault instead
    of falling back to memory.
    """

    def __init__(self, store: ScoreStore):
        self.store = store

    @property
    def durable(self) -> bool:
        return self.store.durable

    # =========================
    # Read leaderboard
    # =========================

    def get_top(self, n: int = LEADERBOARD_LIMIT) -> List[dict]:
        """Return up to n {"handle", "score"} dicts, best first."""
        limit = max(0, min(int(n), LEADERBOARD_LIMIT))
        if limit == 0:
            return []
        return [entry.to_public() for entry in self.store.top(limit)]

    # =========================
    # Record score
    # =========================

    def submit_score(self, handle, score) -> bool:
        """
        Record a score for a handle.

        Returns True if the leaderboard changed (insert or improved score).

        Rule: only replace an existing score if the new score is higher.
        """
        ok, err = validate_submission(handle, score)
        if not ok:
            raise InvalidSubmission(err)

        handle = coerce_handle(handle)
        score = coerce_score(score)
        changed = self.store.submit(handle, score, utc_now_iso())
        if changed:
            logger.debug(f"Score for {handle!r} is now {score}")
        else:
            logger.debug(f"Kept existing score for {handle!r}; {score} is not higher")
        return changed
