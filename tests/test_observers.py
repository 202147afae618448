"""Tests for the fault-isolated subscriber list."""

from pomotrack.observers import Subscribers

from helpers import Collector


class TestSubscribers:
    def test_notifies_in_order(self):
        subs = Subscribers("test")
        order = []
        subs.add(lambda v: order.append(("a", v)))
        subs.add(lambda v: order.append(("b", v)))
        subs.notify(7)
        assert order == [("a", 7), ("b", 7)]

    def test_failure_does_not_stop_others(self, caplog):
        subs = Subscribers("test")
        c = Collector()
        subs.add(lambda: 1 / 0)
        subs.add(c)
        subs.notify()
        assert len(c) == 1
        assert "Error in test subscriber" in caplog.text

    def test_self_unsubscribe_during_notify(self):
        subs = Subscribers("test")
        c = Collector()
        holder = {}

        def once(value):
            holder["unsubscribe"]()

        holder["unsubscribe"] = subs.add(once)
        subs.add(c)
        subs.notify(1)
        subs.notify(2)
        assert c.items == [1, 2]
        assert len(subs) == 1

    def test_clear(self):
        subs = Subscribers("test")
        subs.add(lambda: None)
        subs.clear()
        assert len(subs) == 0
