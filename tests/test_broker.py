"""
Unit tests for the update broker.

Tests fan-out order, release, failure isolation and teardown.
"""

import pytest

from case_configs.core.broker import AttachmentChangedEvent, UpdateBroker


class TestPublish:
    """Test event delivery."""

    def setup_method(self):
        """Set up a fresh broker."""
        self.broker = UpdateBroker()
        self.received = []

    def _recorder(self, name):
        def handler(event):
            self.received.append((name, event))
        return handler

    def test_delivers_to_all_in_subscription_order(self):
        """Two subscribers get the event once each, first subscriber first."""
        self.broker.subscribe(self._recorder("first"))
        self.broker.subscribe(self._recorder("second"))
        event = AttachmentChangedEvent(case_id=1, source="CatalogBrowser")

        delivered = self.broker.publish(event)

        assert delivered == 2
        assert self.received == [("first", event), ("second", event)]

    def test_released_subscriber_gets_nothing_further(self):
        """Release stops delivery to that handler only."""
        first = self.broker.subscribe(self._recorder("first"))
        self.broker.subscribe(self._recorder("second"))
        self.broker.publish(AttachmentChangedEvent(case_id=1, source="test"))

        first.release()
        self.broker.publish(AttachmentChangedEvent(case_id=2, source="test"))

        assert [name for name, _ in self.received] == ["first", "second", "second"]
        assert not first.active

    def test_release_is_idempotent(self):
        """Releasing twice is harmless."""
        subscription = self.broker.subscribe(self._recorder("only"))

        subscription.release()
        subscription.release()

        assert self.broker.subscriber_count == 0

    def test_no_replay_for_late_subscribers(self):
        """Events published before subscribing are not delivered."""
        self.broker.publish(AttachmentChangedEvent(case_id=1, source="test"))

        self.broker.subscribe(self._recorder("late"))

        assert self.received == []

    def test_publish_without_subscribers(self):
        """Publishing to nobody delivers to nobody."""
        assert self.broker.publish(AttachmentChangedEvent(case_id=1, source="test")) == 0

    def test_every_subscriber_sees_every_case(self):
        """The broker does not filter by case id."""
        self.broker.subscribe(self._recorder("any"))

        self.broker.publish(AttachmentChangedEvent(case_id=1, source="test"))
        self.broker.publish(AttachmentChangedEvent(case_id=2, source="test"))

        assert [event.case_id for _, event in self.received] == [1, 2]

    def test_failing_handler_does_not_stop_delivery(self):
        """A raising subscriber is skipped over, later ones still receive."""
        def broken(event):
            raise RuntimeError("boom")

        self.broker.subscribe(broken)
        self.broker.subscribe(self._recorder("after"))

        delivered = self.broker.publish(AttachmentChangedEvent(case_id=1, source="test"))

        assert delivered == 2
        assert [name for name, _ in self.received] == ["after"]

    def test_release_during_delivery_skips_released(self):
        """A handler releasing a later subscriber prevents its delivery."""
        subscriptions = {}

        def releaser(event):
            self.received.append(("releaser", event))
            subscriptions["victim"].release()

        self.broker.subscribe(releaser)
        subscriptions["victim"] = self.broker.subscribe(self._recorder("victim"))

        delivered = self.broker.publish(AttachmentChangedEvent(case_id=1, source="test"))

        assert delivered == 1
        assert [name for name, _ in self.received] == ["releaser"]


class TestClose:
    """Test broker teardown."""

    def test_close_releases_all_subscriptions(self):
        """Close releases every handle and drops later events."""
        broker = UpdateBroker()
        received = []
        subscriptions = [
            broker.subscribe(received.append),
            broker.subscribe(received.append),
        ]

        broker.close()

        assert broker.subscriber_count == 0
        assert all(not s.active for s in subscriptions)
        assert broker.publish(AttachmentChangedEvent(case_id=1, source="test")) == 0
        assert received == []

    def test_subscribe_after_close_raises(self):
        """A closed broker accepts no new subscribers."""
        broker = UpdateBroker()
        broker.close()

        with pytest.raises(RuntimeError, match="closed broker"):
            broker.subscribe(lambda event: None)
