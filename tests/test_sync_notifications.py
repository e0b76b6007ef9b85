from tests.recon_helpers import base_directory, push, reconciliation


def test_first_completion_queues_single_notification(client, notifier):
    batch = {**base_directory(), "reconciliations": [reconciliation(1, number=7, cashier_id=1, status="completed")]}
    assert push(client, batch).status_code == 200

    assert [item.message for item in notifier.notifications] == ["Reconciliation #7 for cashier Sara was completed"]

    # Same state pushed again is not a new completion.
    assert push(client, batch).status_code == 200
    assert len(notifier.notifications) == 1


def test_draft_to_completed_transition_notifies(client, notifier):
    draft = {**base_directory(), "reconciliations": [reconciliation(1, number=3, status="draft")]}
    assert push(client, draft).status_code == 200
    assert notifier.notifications == []

    completed = {"reconciliations": [reconciliation(1, number=3, status="completed")]}
    assert push(client, completed).status_code == 200
    assert [item.message for item in notifier.notifications] == ["Reconciliation #3 for cashier Sara was completed"]


def test_unknown_cashier_falls_back_to_generic_label(client, notifier):
    batch = {"reconciliations": [reconciliation(1, number=4, cashier_id=42, status="completed")]}
    assert push(client, batch).status_code == 200
    assert notifier.notifications[0].message == "Reconciliation #4 for a cashier was completed"


def test_several_completions_are_summarized(client, notifier):
    batch = {
        **base_directory(),
        "reconciliations": [
            reconciliation(1, status="completed"),
            reconciliation(2, status="completed"),
            reconciliation(3, status="draft"),
        ],
    }
    assert push(client, batch).status_code == 200
    assert [item.message for item in notifier.notifications] == ["2 new reconciliations were completed"]


def test_rejected_batch_does_not_notify(client, notifier):
    batch = {
        "reconciliations": [reconciliation(1, status="completed")],
        "bankReceipts": [{"id": 1, "reconciliation_id": 5}],
    }
    assert push(client, batch).status_code == 422
    assert notifier.notifications == []


def test_notification_reaches_provider_through_dispatcher(client):
    from app.recon.services.notifications import NotificationDispatcher

    class RecordingProvider:
        def __init__(self):
            self.sent = []

        def send(self, notification):
            self.sent.append(notification)

    provider = RecordingProvider()
    dispatcher = NotificationDispatcher(provider, backoff_ms=0)
    dispatcher.start()
    client.app.state.notifier = dispatcher
    try:
        batch = {**base_directory(), "reconciliations": [reconciliation(1, number=9, status="completed")]}
        assert push(client, batch).status_code == 200
        assert dispatcher.flush(timeout=5)
    finally:
        dispatcher.stop()

    assert [item.title for item in provider.sent] == ["Reconciliation completed"]


def test_failed_cashier_lookup_degrades_to_generic_label(client, db_session, notifier, monkeypatch):
    from sqlalchemy import select
    from sqlalchemy.exc import OperationalError

    from app.recon.db.models import Reconciliation
    from app.recon.repos.sync import SyncRepository

    def failing_lookup(self, cashier_ids):
        raise OperationalError("SELECT cashiers", {}, Exception("connection reset"))

    monkeypatch.setattr(SyncRepository, "cashier_names", failing_lookup)

    batch = {**base_directory(), "reconciliations": [reconciliation(1, number=12, cashier_id=1, status="completed")]}
    response = push(client, batch)
    assert response.status_code == 200

    db_session.expire_all()
    assert db_session.execute(select(Reconciliation.id)).scalars().all() == [1]
    assert [item.message for item in notifier.notifications] == ["Reconciliation #12 for a cashier was completed"]
