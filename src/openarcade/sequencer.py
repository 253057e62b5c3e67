"""Melody-matching game state.

A melody is an ordered list of note numbers: 1..7 map to keys 0..6 and
0 is a rest, which the player never has to play. The sequencer waits for
the expected key, advances past any rests that follow it, and loops back
to the first note when the melody ends, counting rounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger("openarcade.sequencer")

REST = 0
MAX_NOTE = 7

# Twinkle Twinkle Little Star, with a rest closing every phrase
DEFAULT_MELODY = [
    1, 1, 5, 5, 6, 6, 5, 0, 4, 4, 3, 3, 2, 2, 1, 0,
    5, 5, 4, 4, 3, 3, 2, 0, 5, 5, 4, 4, 3, 3, 2, 0,
    1, 1, 5, 5, 6, 6, 5, 0, 4, 4, 3, 3, 2, 2, 1, 0,
]


@dataclass(frozen=True)
class HintEntry:
    """An upcoming note as shown to the player."""
    play_order: int  # 1-based position counted across rounds
    note: int
    offset: int  # position within the current hint group

    @property
    def key_index(self) -> int:
        return self.note - 1


def whole_number(name: str, value) -> int:
    """Coerce a count read from config. YAML may hand us ``4.0`` for ``4``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return int(value)


def validate_melody(melody: Sequence[int]) -> list[int]:
    notes = [whole_number("Melody note", n) for n in melody]
    if not notes:
        raise ValueError("Melody must contain at least one note")
    bad = [n for n in notes if not REST <= n <= MAX_NOTE]
    if bad:
        raise ValueError(f"Melody notes must be in [0, {MAX_NOTE}], got {bad}")
    if all(n == REST for n in notes):
        raise ValueError("Melody must contain at least one non-rest note")
    return notes


class NoteSequencer:
    """State machine over a fixed melody.

    State is just (current_note_index, current_round). Wrong keys are
    ignored; there is no terminal state.
    """

    def __init__(self, melody: Sequence[int] = DEFAULT_MELODY, hint_group_size: int = 4):
        self.melody = validate_melody(melody)
        hint_group_size = whole_number("hint_group_size", hint_group_size)
        if hint_group_size < 1:
            raise ValueError(f"hint_group_size must be >= 1, got {hint_group_size}")
        self.hint_group_size = hint_group_size
        self.reset()

    def reset(self):
        """Restart from the first note of round 0."""
        self._index = 0
        self._round = 0
        self.completed_notes = 0
        self._skip_rests()

    @property
    def current_note_index(self) -> int:
        return self._index

    @property
    def current_round(self) -> int:
        return self._round

    def current_expected_note(self) -> int:
        return self.melody[self._index]

    def expected_key(self) -> int:
        return self.melody[self._index] - 1

    def _skip_rests(self):
        while self._index < len(self.melody) and self.melody[self._index] == REST:
            self._index += 1
        if self._index >= len(self.melody):
            self._round += 1
            self._index = 0
            logger.info("Melody round %d complete", self._round)
            # A melody starting with rests must not leave us parked on one
            while self.melody[self._index] == REST:
                self._index += 1

    def on_key_triggered(self, key_index: int) -> bool:
        """Feed a struck key. Returns True if it was the expected note."""
        if self.melody[self._index] != key_index + 1:
            return False

        self.completed_notes += 1
        self._index += 1
        self._skip_rests()
        return True

    def hint_window(self) -> list[HintEntry]:
        """Remaining notes of the current hint group, starting at the current note."""
        group = self.hint_group_size
        chunk_start = (self._index // group) * group
        chunk_end = min(chunk_start + group, len(self.melody))
        base = self._round * len(self.melody)
        return [
            HintEntry(play_order=base + i + 1, note=self.melody[i], offset=i - chunk_start)
            for i in range(self._index, chunk_end)
        ]

    def hints_by_key(self) -> dict[int, list[HintEntry]]:
        """Hint window grouped by key index, rests left out."""
        grouped: dict[int, list[HintEntry]] = {}
        for entry in self.hint_window():
            if entry.note == REST:
                continue
            grouped.setdefault(entry.key_index, []).append(entry)
        return grouped
