"""Tests for agentboard.broadcast."""

from agentboard.broadcast import ITEM_TRANSITIONED, Broadcaster


class TestBroadcaster:
    def test_publish_to_all(self):
        hub = Broadcaster()
        a, b = [], []
        hub.subscribe(lambda e, d: a.append((e, d)))
        hub.subscribe(lambda e, d: b.append((e, d)))

        hub.publish(ITEM_TRANSITIONED, {"to": "done"})

        assert a == b == [(ITEM_TRANSITIONED, {"to": "done"})]

    def test_unsubscribe(self):
        hub = Broadcaster()
        seen = []
        unsubscribe = hub.subscribe(lambda e, d: seen.append(e))
        unsubscribe()
        hub.publish("x", None)
        assert seen == []
        assert hub.subscriber_count == 0

    def test_failing_subscriber_skipped(self, caplog):
        """One broken listener doesn't stop delivery to the rest."""
        hub = Broadcaster()
        seen = []

        def broken(event, data):
            raise ConnectionResetError("socket closed")

        hub.subscribe(broken)
        hub.subscribe(lambda e, d: seen.append(e))
        hub.publish("comment:added", {})

        assert seen == ["comment:added"]
        assert "Subscriber failed on comment:added" in caplog.text

    def test_close_drops_subscribers(self):
        hub = Broadcaster()
        hub.subscribe(lambda e, d: None)
        hub.close()
        assert hub.subscriber_count == 0

    def test_no_subscribers(self):
        Broadcaster().publish("x", {"a": 1})

