"""
Unit tests for status changes, the status history and optimistic locking.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from shopdesk.exceptions import ConcurrencyError, InvalidStateError, NotFoundError, ValidationError
from shopdesk.models.order import Order
from shopdesk.models.order_status_history import OrderStatusHistory
from shopdesk.services import order_status
from shopdesk.services.order_status import apply_status_change, update_order
from shopdesk.services.order_service import trash_order
from shopdesk.services.status_history import get_history, record_transition
from tests.factories import create_test_order, create_test_user


def _history_count(db, order_id):
    return db.query(OrderStatusHistory).filter(OrderStatusHistory.order_id == order_id).count()


def _bump_version(db, order_id):
    """Simulate another request committing a write to the order."""
    db.query(Order).filter(Order.id == order_id).update(
        {Order.version: Order.version + 1}, synchronize_session=False
    )


class TestRecordTransition:

    def test_writes_one_record(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        entry = record_transition(db_session, order.id, "Pending", "Processing", admin.id, "stock confirmed")
        db_session.commit()

        assert entry is not None
        assert entry.old_status == "Pending"
        assert entry.new_status == "Processing"
        assert entry.reason == "stock confirmed"
        assert entry.changed_by_id == admin.id
        assert _history_count(db_session, order.id) == 1

    def test_same_status_writes_nothing(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        assert record_transition(db_session, order.id, "Pending", "Pending", admin.id) is None
        db_session.commit()
        assert _history_count(db_session, order.id) == 0

    def test_missing_actor_writes_nothing(self, db_session):
        order = create_test_order(db_session, status="Pending")

        assert record_transition(db_session, order.id, "Pending", "Processing", None) is None
        db_session.commit()
        assert _history_count(db_session, order.id) == 0

    def test_empty_reason_stored_as_null(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        entry = record_transition(db_session, order.id, "Pending", "On-Hold", admin.id, "")
        db_session.commit()

        assert entry.reason is None


class TestApplyStatusChange:

    def test_same_status_is_a_no_op(self, db_session):
        """Setting the current status again produces no history record."""
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Processing")

        result = apply_status_change(db_session, order, "Processing", admin.id)
        db_session.commit()

        assert result.changed is False
        assert result.history is None
        assert _history_count(db_session, order.id) == 0

    def test_change_writes_history_and_bumps_version(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")
        version_before = order.version

        result = apply_status_change(db_session, order, "Processing", admin.id, reason="ok")
        db_session.commit()

        assert result.changed is True
        assert result.warning is None
        assert order.status == "Processing"
        assert order.version == version_before + 1
        assert _history_count(db_session, order.id) == 1

    def test_unusual_change_applies_with_warning(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Delivered")

        result = apply_status_change(db_session, order, "Pending", admin.id)
        db_session.commit()

        assert order.status == "Pending"
        assert result.warning == "Warning: Unusual status transition from Delivered to Pending"
        assert _history_count(db_session, order.id) == 1

    def test_strict_mode_rejects_unusual_change(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Cancelled")

        with pytest.raises(InvalidStateError) as exc_info:
            apply_status_change(db_session, order, "Processing", admin.id, strict=True)

        assert exc_info.value.details["current_state"] == "Cancelled"
        assert exc_info.value.details["allowed_states"] == []
        db_session.rollback()
        assert db_session.get(Order, order.id).status == "Cancelled"
        assert _history_count(db_session, order.id) == 0

    def test_unknown_status_is_rejected(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        with pytest.raises(ValidationError) as exc_info:
            apply_status_change(db_session, order, "Shipped-ish", admin.id)

        assert exc_info.value.details["field"] == "status"
        assert order.status == "Pending"
        assert _history_count(db_session, order.id) == 0

    def test_empty_status_is_rejected(self, db_session):
        order = create_test_order(db_session, status="Pending")

        with pytest.raises(ValidationError):
            apply_status_change(db_session, order, "", None)

    def test_change_without_actor_applies_without_history(self, db_session):
        order = create_test_order(db_session, status="Pending")

        result = apply_status_change(db_session, order, "Processing", None)
        db_session.commit()

        assert result.changed is True
        assert result.history is None
        assert order.status == "Processing"
        assert _history_count(db_session, order.id) == 0

    def test_stale_version_raises_and_writes_nothing(self, db_session):
        """A write based on an outdated read is rejected, history included."""
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")
        _bump_version(db_session, order.id)

        with pytest.raises(ConcurrencyError):
            apply_status_change(db_session, order, "Processing", admin.id)
        db_session.rollback()

        assert db_session.get(Order, order.id).status == "Pending"
        assert _history_count(db_session, order.id) == 0


class TestHistory:

    def test_history_is_complete_and_newest_first(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Payment-Processing")
        path = ["Pending", "Processing", "Awaiting Stock", "Picking/Packing"]

        for status in path:
            apply_status_change(db_session, order, status, admin.id)
            db_session.commit()

        history = get_history(db_session, order.id)

        assert len(history) == len(path)
        pairs = [(h.old_status, h.new_status) for h in history]
        assert pairs == [
            ("Awaiting Stock", "Picking/Packing"),
            ("Processing", "Awaiting Stock"),
            ("Pending", "Processing"),
            ("Payment-Processing", "Pending"),
        ]

    def test_trash_keeps_history(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")
        apply_status_change(db_session, order, "Processing", admin.id)
        db_session.commit()
        before = [(h.id, h.old_status, h.new_status) for h in get_history(db_session, order.id)]

        trash_order(db_session, order.id)

        after = [(h.id, h.old_status, h.new_status) for h in get_history(db_session, order.id)]
        assert db_session.get(Order, order.id).is_trashed is True
        assert db_session.get(Order, order.id).status == "Processing"
        assert after == before


class TestUpdateOrder:

    def test_applies_all_fields(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = update_order(
            db_session,
            order.id,
            {"status": "Processing", "shipment_tracking": "1Z999", "origin": "Instagram", "reason": "paid"},
            admin.id,
        )

        assert result.order.status == "Processing"
        assert result.order.shipment_tracking == "1Z999"
        assert result.order.origin == "Instagram"
        assert result.warning is None
        history = get_history(db_session, order.id)
        assert len(history) == 1
        assert history[0].reason == "paid"

    def test_tracking_can_be_cleared(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending", shipment_tracking="OLD")

        result = update_order(db_session, order.id, {"shipment_tracking": None}, admin.id)

        assert result.order.shipment_tracking is None
        assert result.status_change is None

    def test_missing_order(self, db_session):
        admin = create_test_user(db_session, account_type="admin")

        with pytest.raises(NotFoundError):
            update_order(db_session, 424242, {"status": "Processing"}, admin.id)

    def test_strict_rejection_leaves_order_unchanged(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Refunded")

        with pytest.raises(InvalidStateError):
            update_order(db_session, order.id, {"status": "Pending", "origin": "Email"}, admin.id, strict=True)

        refreshed = db_session.get(Order, order.id)
        assert refreshed.status == "Refunded"
        assert refreshed.origin == "Website"
        assert _history_count(db_session, order.id) == 0

    def test_unknown_status_leaves_order_unchanged(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        with pytest.raises(ValidationError):
            update_order(db_session, order.id, {"status": "bogus", "origin": "Email"}, admin.id)

        db_session.expire_all()
        refreshed = db_session.get(Order, order.id)
        assert refreshed.status == "Pending"
        assert refreshed.origin == "Website"
        assert _history_count(db_session, order.id) == 0

    def test_retries_after_concurrent_write(self, db_session, monkeypatch):
        """The first attempt loses the race; the retry re-reads and succeeds."""
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")
        real_apply = order_status._apply_field_changes
        attempts = []

        def racing_apply(db, current, changes, actor_id, strict):
            attempts.append(current.version)
            if len(attempts) == 1:
                _bump_version(db, current.id)
            return real_apply(db, current, changes, actor_id, strict)

        monkeypatch.setattr(order_status, "_apply_field_changes", racing_apply)

        result = update_order(db_session, order.id, {"status": "Processing"}, admin.id, max_retries=3)

        assert len(attempts) == 2
        assert result.order.status == "Processing"
        assert _history_count(db_session, order.id) == 1

    def test_gives_up_after_max_retries(self, db_session, monkeypatch):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")
        real_apply = order_status._apply_field_changes
        attempts = []

        def always_racing(db, current, changes, actor_id, strict):
            attempts.append(1)
            _bump_version(db, current.id)
            return real_apply(db, current, changes, actor_id, strict)

        monkeypatch.setattr(order_status, "_apply_field_changes", always_racing)

        with pytest.raises(ConcurrencyError):
            update_order(db_session, order.id, {"status": "Processing"}, admin.id, max_retries=2)

        assert len(attempts) == 3
        assert db_session.get(Order, order.id).status == "Pending"
        assert _history_count(db_session, order.id) == 0


class TestStatusColumnConstraint:

    def test_database_rejects_status_outside_vocabulary(self, db_session):
        order = create_test_order(db_session, status="Pending")

        order.status = "Shipped-ish"
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

        assert db_session.get(Order, order.id).status == "Pending"
