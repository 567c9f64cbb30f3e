"""Tests for scan generation sequencing."""

from __future__ import annotations

from daisy.generation import GenerationSequencer


def test_generations_are_monotonic_and_unique() -> None:
    sequencer = GenerationSequencer()

    ids = [sequencer.next() for _ in range(5)]

    assert ids == [1, 2, 3, 4, 5]
    assert sequencer.current == 5


def test_only_latest_generation_is_current() -> None:
    sequencer = GenerationSequencer()
    first = sequencer.next()
    second = sequencer.next()

    assert not sequencer.is_current(first)
    assert sequencer.is_current(second)


def test_independent_sequencers_do_not_interfere() -> None:
    one = GenerationSequencer()
    two = GenerationSequencer()

    one.next()
    one.next()

    assert two.next() == 1
    assert one.is_current(2)
