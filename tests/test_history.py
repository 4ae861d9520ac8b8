"""Undo/redo history behaviour."""

import pytest

from showplot.editor.history import History


class TestHistory:
    def test_set_records_step_and_clears_future(self):
        h = History([])
        a = [{"id": "a"}]
        assert h.set(a) is True
        assert h.present is a
        assert h.can_undo and not h.can_redo

        assert h.undo() is True
        assert h.present == []
        assert h.can_redo

        b = [{"id": "b"}]
        h.set(b)
        assert not h.can_redo
        assert h.past == [[]]

    def test_same_object_is_not_a_step(self):
        initial = [{"id": "a"}]
        h = History(initial)
        assert h.set(initial) is False
        assert h.set(lambda cur: cur) is False
        assert not h.can_undo

    def test_callable_receives_present(self):
        h = History(1)
        h.set(lambda n: n + 1)
        h.set(lambda n: n * 10)
        assert h.present == 20
        h.undo()
        assert h.present == 2

    def test_undo_redo_on_empty_stacks(self):
        h = History("x")
        assert h.undo() is False
        assert h.redo() is False
        assert h.present == "x"

    def test_redo_replays_in_order(self):
        h = History(0)
        for n in (1, 2, 3):
            h.set(n)
        h.undo()
        h.undo()
        assert h.present == 1
        assert h.redo() and h.present == 2
        assert h.redo() and h.present == 3
        assert not h.can_redo

    def test_limit_drops_oldest(self):
        h = History(0, limit=50)
        for n in range(1, 61):
            h.set(n)
        assert len(h.past) == 50
        assert h.past[0] == 10
        while h.undo():
            pass
        assert h.present == 10

    def test_reset_clears_both_stacks(self):
        h = History(0)
        h.set(1)
        h.set(2)
        h.undo()
        h.reset(7)
        assert h.present == 7
        assert not h.can_undo and not h.can_redo

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            History([], limit=0)
