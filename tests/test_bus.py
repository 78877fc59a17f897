"""Tests for the in-process NotificationBus."""
import pytest

from defi_alerts.schemas import NotificationEvent, NotificationRecord


def _event(user_id=7, alert_id=1) -> NotificationEvent:
    record = NotificationRecord(
        id=alert_id, user_id=user_id, alert_id=alert_id, title="t", message="m"
    )
    return NotificationEvent(user_id=user_id, alert_id=alert_id, notification=record)


class TestNotificationBus:
    """Fan-out, isolation and registry changes during publish."""

    def test_publish_reaches_every_subscriber_once(self, bus):
        first, second = [], []
        bus.subscribe(first.append)
        bus.subscribe(second.append)

        event = _event()
        assert bus.publish(event) == 2
        assert first == [event]
        assert second == [event]

    def test_publish_without_subscribers_is_a_no_op(self, bus):
        assert bus.publish(_event()) == 0

    def test_no_replay_for_late_subscribers(self, bus):
        bus.publish(_event())
        late = []
        bus.subscribe(late.append)
        assert late == []

    def test_failing_subscriber_does_not_block_others(self, bus):
        received = []

        def explode(event):
            raise RuntimeError("boom")

        bus.subscribe(explode)
        bus.subscribe(received.append)

        assert bus.publish(_event()) == 1
        assert len(received) == 1

    def test_unsubscribe_handle_is_idempotent(self, bus):
        received = []
        unsubscribe = bus.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        bus.publish(_event())
        assert received == []
        assert bus.subscriber_count == 0

    def test_unsubscribing_during_publish_is_safe(self, bus):
        calls = []
        handles = {}

        def first(event):
            calls.append("first")
            handles["second"]()

        def second(event):
            calls.append("second")

        handles["first"] = bus.subscribe(first)
        handles["second"] = bus.subscribe(second)

        bus.publish(_event())
        assert calls == ["first", "second"]

        bus.publish(_event())
        assert calls == ["first", "second", "first"]

    def test_subscribing_during_publish_takes_effect_next_time(self, bus):
        late = []

        def adder(event):
            bus.subscribe(late.append)

        bus.subscribe(adder)
        bus.publish(_event())
        assert late == []

        bus.publish(_event(alert_id=2))
        assert [e.alert_id for e in late] == [2]

    def test_on_off_aliases(self, bus):
        received = []
        bus.on("notification", received.append)
        bus.publish(_event())
        bus.off("notification", received.append)
        bus.publish(_event())
        assert len(received) == 1

    def test_unknown_event_name_is_rejected(self, bus):
        with pytest.raises(ValueError):
            bus.on("price", print)
