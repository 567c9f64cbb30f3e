"""Generation ids that let consumers drop output of superseded scans."""

from __future__ import annotations

import itertools


class GenerationSequencer:
    """Hand out monotonically increasing scan generations.

    Only the most recently issued generation is current. Callbacks tagged
    with an older id are to be discarded without side effects.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start + 1)
        self._current = start

    def next(self) -> int:
        self._current = next(self._counter)
        return self._current

    def is_current(self, generation: int) -> bool:
        return generation == self._current

    @property
    def current(self) -> int:
        return self._current
