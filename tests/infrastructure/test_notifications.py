"""Tests for the notification side channel."""

from crowdfund_sync.infrastructure.notifications import (
    CollectingNotifier,
    LogNotifier,
    Notification,
    NotificationLevel,
)


class TestCollectingNotifier:

    def test_collects_and_drains(self):
        notifier = CollectingNotifier()
        notifier.notify(Notification(level=NotificationLevel.INFO, message="one"))
        notifier.notify(Notification(level=NotificationLevel.ERROR, message="two"))

        drained = notifier.drain()

        assert [n.message for n in drained] == ["one", "two"]
        assert notifier.notifications == []

    def test_keeps_most_recent(self):
        notifier = CollectingNotifier(limit=2)
        for i in range(5):
            notifier.notify(Notification(level=NotificationLevel.INFO, message=str(i)))

        assert [n.message for n in notifier.notifications] == ["3", "4"]


class TestNotification:

    def test_to_dict(self):
        data = Notification(
            level=NotificationLevel.SUCCESS, message="Contribution sent!", description="tx_000001"
        ).to_dict()

        assert data["level"] == "success"
        assert data["description"] == "tx_000001"
        assert "created_at" in data

    def test_log_notifier_accepts_all_levels(self):
        notifier = LogNotifier()
        for level in NotificationLevel:
            notifier.notify(Notification(level=level, message="hello"))
