"""NavigationStateMachine — tracks the active step index.

The only state is the active index.  A step counts as visited when its
index is at or before the active one, so stepping back from step 3 to
step 0 leaves steps 1-3 unvisited again.

Valid indices are ``0 <= i < total_steps``; out-of-range moves are
rejected without changing state.  With no steps loaded, every move is
rejected.
"""

from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)


class NavigationStateMachine:
    """Position within an ordered list of steps."""

    def __init__(self, total_steps: int = 0) -> None:
        self._total = total_steps
        self._current = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def total_steps(self) -> int:
        return self._total

    @property
    def current_index(self) -> int:
        return self._current

    def reset(self, total_steps: int) -> None:
        """Start over at step 0 for a freshly loaded definition."""
        self._total = total_steps
        self._current = 0

    def restore(self, index: int) -> bool:
        """Jump to a persisted index; out-of-range values leave step 0 active."""
        if not self._in_range(index):
            logger.warning(
                "Ignoring persisted step index %d (survey has %d steps)",
                index, self._total,
            )
            return False
        self._current = index
        return True

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def go_to_step(self, index: int) -> bool:
        """Set the active index.  Returns False (no change) when out of range."""
        if not self._in_range(index):
            logger.debug("Rejected move to step %d of %d", index, self._total)
            return False
        self._current = index
        return True

    def has_next(self) -> bool:
        return self._total > 0 and self._current < self._total - 1

    def has_prev(self) -> bool:
        return self._current > 0

    def has_visited(self, index: int) -> bool:
        """True if ``index`` is at or before the active step."""
        return index <= self._current

    def is_last_step(self) -> bool:
        return self._total > 0 and self._current == self._total - 1

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def progress_percent(self) -> float:
        """``(current + 1) / total * 100``; 0 when nothing is loaded."""
        if self._total == 0:
            return 0.0
        return (self._current + 1) / self._total * 100.0

    def step_index_for_fraction(self, fraction: float) -> int | None:
        """Map a click position on the progress bar (0..1) to a step index.

        Returns None when no steps are loaded.  Fractions are clamped.
        """
        if self._total == 0:
            return None
        fraction = min(max(fraction, 0.0), 1.0)
        index = math.floor(fraction * self._total)
        return min(index, self._total - 1)

    def _in_range(self, index: int) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < self._total
