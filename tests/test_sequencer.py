"""Tests for melody sequencing and hints."""

import pytest

from openarcade.sequencer import DEFAULT_MELODY, REST, HintEntry, NoteSequencer, validate_melody


class TestNoteSequencer:
    def test_starts_on_first_note(self):
        seq = NoteSequencer([3, 1, 2])
        assert seq.current_note_index == 0
        assert seq.current_round == 0
        assert seq.current_expected_note() == 3
        assert seq.expected_key() == 2

    def test_correct_key_advances(self):
        seq = NoteSequencer([3, 1, 2])
        assert seq.on_key_triggered(2)
        assert seq.current_note_index == 1
        assert seq.completed_notes == 1

    def test_wrong_key_is_ignored(self):
        seq = NoteSequencer([3, 1, 2])
        assert not seq.on_key_triggered(0)
        assert seq.current_note_index == 0
        assert seq.completed_notes == 0

    def test_rests_are_skipped_and_round_wraps(self):
        seq = NoteSequencer([1, 0, 2, 0])
        assert seq.on_key_triggered(0)
        assert seq.current_note_index == 2
        assert seq.on_key_triggered(1)
        assert seq.current_note_index == 0
        assert seq.current_round == 1

    def test_consecutive_rests(self):
        seq = NoteSequencer([1, 0, 0, 0, 5])
        seq.on_key_triggered(0)
        assert seq.current_note_index == 4
        assert seq.current_expected_note() == 5

    def test_leading_rests_skipped_on_start_and_wrap(self):
        seq = NoteSequencer([0, 0, 4, 2])
        assert seq.current_note_index == 2
        seq.on_key_triggered(3)
        seq.on_key_triggered(1)
        assert seq.current_round == 1
        assert seq.current_note_index == 2

    def test_never_parks_on_a_rest(self):
        seq = NoteSequencer(DEFAULT_MELODY)
        for _ in range(3 * len(DEFAULT_MELODY)):
            assert seq.current_expected_note() != REST
            seq.on_key_triggered(seq.expected_key())
        assert seq.current_round >= 2

    def test_single_note_melody_loops(self):
        seq = NoteSequencer([7])
        for expected_round in range(1, 4):
            assert seq.on_key_triggered(6)
            assert seq.current_round == expected_round
            assert seq.current_note_index == 0

    def test_reset(self):
        seq = NoteSequencer([1, 2])
        seq.on_key_triggered(0)
        seq.on_key_triggered(1)
        seq.reset()
        assert (seq.current_note_index, seq.current_round, seq.completed_notes) == (0, 0, 0)


class TestValidation:
    @pytest.mark.parametrize("melody", [[], [0, 0, 0], [1, 8], [-1, 2]])
    def test_rejects_bad_melody(self, melody):
        with pytest.raises(ValueError):
            NoteSequencer(melody)

    def test_rejects_bad_group_size(self):
        with pytest.raises(ValueError):
            NoteSequencer([1], hint_group_size=0)

    def test_validate_returns_ints(self):
        assert validate_melody((1.0, 0, 3)) == [1, 0, 3]

    def test_default_melody_is_valid(self):
        assert validate_melody(DEFAULT_MELODY) == DEFAULT_MELODY


class TestHints:
    def test_window_covers_rest_of_group(self):
        seq = NoteSequencer([1, 2, 3, 4, 5, 6], hint_group_size=4)
        seq.on_key_triggered(0)
        window = seq.hint_window()
        assert [h.note for h in window] == [2, 3, 4]
        assert [h.offset for h in window] == [1, 2, 3]
        assert [h.play_order for h in window] == [2, 3, 4]

    def test_last_group_may_be_short(self):
        seq = NoteSequencer([1, 2, 3, 4, 5, 6], hint_group_size=4)
        for key in range(4):
            seq.on_key_triggered(key)
        assert [h.note for h in seq.hint_window()] == [5, 6]

    def test_play_order_counts_across_rounds(self):
        seq = NoteSequencer([1, 2], hint_group_size=4)
        seq.on_key_triggered(0)
        seq.on_key_triggered(1)
        assert seq.hint_window()[0] == HintEntry(play_order=3, note=1, offset=0)

    def test_window_includes_rests(self):
        seq = NoteSequencer([1, 0, 2, 3], hint_group_size=4)
        assert [h.note for h in seq.hint_window()] == [1, 0, 2, 3]

    def test_hints_by_key_drops_rests(self):
        seq = NoteSequencer([1, 0, 1, 3], hint_group_size=4)
        grouped = seq.hints_by_key()
        assert set(grouped) == {0, 2}
        assert [h.play_order for h in grouped[0]] == [1, 3]
        assert grouped[2][0].key_index == 2


class TestWholeNumberCounts:
    def test_integral_float_group_size(self):
        seq = NoteSequencer([1, 2, 3, 4, 5], hint_group_size=2.0)
        assert seq.hint_group_size == 2
        assert [h.note for h in seq.hint_window()] == [1, 2]

    def test_fractional_group_size_rejected(self):
        with pytest.raises(ValueError):
            NoteSequencer([1, 2], hint_group_size=1.5)

    def test_fractional_note_rejected(self):
        with pytest.raises(ValueError):
            validate_melody([1, 2.5])
