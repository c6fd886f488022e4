"""
Unit tests for bulk order operations.

Each id is processed independently: a failure is reported for that id and
the rest of the batch still runs.
"""
from shopdesk.models.order import Order
from shopdesk.models.order_status_history import OrderStatusHistory
from shopdesk.services.bulk_operations import bulk_apply
from shopdesk.services.status_history import get_history
from tests.factories import create_test_order, create_test_user


class TestBulkChangeStatus:

    def test_partial_failure_keeps_going(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        first = create_test_order(db_session, status="Pending")
        second = create_test_order(db_session, status="Pending")

        result = bulk_apply(
            db_session, [first.id, 999999, second.id], "changeStatus", admin.id, status="Processing"
        )

        assert [s["order_id"] for s in result.success] == [first.id, second.id]
        assert result.failed == [{"order_id": 999999, "message": "Order not found"}]
        assert result.summary == "Bulk update completed. 2 succeeded, 1 failed."
        assert db_session.get(Order, first.id).status == "Processing"
        assert db_session.get(Order, second.id).status == "Processing"

    def test_every_id_lands_in_exactly_one_list(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        ids = [create_test_order(db_session, status="Pending").id for _ in range(3)] + [404, 405]

        result = bulk_apply(db_session, ids, "changeStatus", admin.id, status="On-Hold")

        reported = [s["order_id"] for s in result.success] + [f["order_id"] for f in result.failed]
        assert sorted(reported) == sorted(ids)
        assert len(result.success) == 3
        assert len(result.failed) == 2

    def test_writes_one_history_record_per_change(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        orders = [create_test_order(db_session, status="Processing") for _ in range(2)]

        bulk_apply(
            db_session, [o.id for o in orders], "changeStatus", admin.id,
            status="Picking/Packing", reason="batch pick",
        )

        for order in orders:
            history = get_history(db_session, order.id)
            assert len(history) == 1
            assert history[0].old_status == "Processing"
            assert history[0].new_status == "Picking/Packing"
            assert history[0].reason == "batch pick"
            assert history[0].changed_by_id == admin.id

    def test_unusual_transition_succeeds_with_warning(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Delivered")

        result = bulk_apply(db_session, [order.id], "changeStatus", admin.id, status="Pending")

        assert result.success[0]["status"] == "Pending"
        assert result.success[0]["warning"].startswith("Warning: Unusual status transition")

    def test_strict_mode_fails_only_the_rejected_order(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        allowed = create_test_order(db_session, status="Pending")
        rejected = create_test_order(db_session, status="Refunded")

        result = bulk_apply(
            db_session, [rejected.id, allowed.id], "changeStatus", admin.id,
            status="Processing", strict=True,
        )

        assert [s["order_id"] for s in result.success] == [allowed.id]
        assert result.failed[0]["order_id"] == rejected.id
        assert result.failed[0]["message"].startswith("Invalid status transition from Refunded")
        assert db_session.get(Order, rejected.id).status == "Refunded"

    def test_same_status_succeeds_without_history(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = bulk_apply(db_session, [order.id], "changeStatus", admin.id, status="Pending")

        assert len(result.success) == 1
        assert get_history(db_session, order.id) == []

    def test_duplicate_ids_are_processed_again(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = bulk_apply(db_session, [order.id, order.id], "changeStatus", admin.id, status="Processing")

        assert len(result.success) == 2
        # The second pass is a no-op: status already matches
        assert len(get_history(db_session, order.id)) == 1

    def test_missing_status_fails_each_order(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = bulk_apply(db_session, [order.id], "changeStatus", admin.id, status=None)

        assert result.success == []
        assert result.failed == [{"order_id": order.id, "message": "Invalid action or missing status"}]


    def test_unknown_status_fails_each_order(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = bulk_apply(db_session, [order.id], "changeStatus", admin.id, status="Shipped-ish")

        assert result.success == []
        assert result.failed[0]["order_id"] == order.id
        assert result.failed[0]["message"].startswith("Invalid status 'Shipped-ish'")
        assert db_session.get(Order, order.id).status == "Pending"
        assert get_history(db_session, order.id) == []


class TestBulkTrash:

    def test_trash_partial_failure(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = bulk_apply(db_session, [order.id, 777777], "trash", admin.id)

        assert [s["order_id"] for s in result.success] == [order.id]
        assert [f["order_id"] for f in result.failed] == [777777]
        assert "not found" in result.failed[0]["message"]

    def test_trash_keeps_status_and_history(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")
        bulk_apply(db_session, [order.id], "changeStatus", admin.id, status="Processing")

        result = bulk_apply(db_session, [order.id], "trash", admin.id)

        assert result.success == [{"order_id": order.id, "action": "trashed"}]
        refreshed = db_session.get(Order, order.id)
        assert refreshed.is_trashed is True
        assert refreshed.status == "Processing"
        assert db_session.query(OrderStatusHistory).filter(
            OrderStatusHistory.order_id == order.id
        ).count() == 1

    def test_unknown_action(self, db_session):
        admin = create_test_user(db_session, account_type="admin")
        order = create_test_order(db_session, status="Pending")

        result = bulk_apply(db_session, [order.id], "archive", admin.id)

        assert result.failed[0]["message"] == "Invalid action or missing status"
        assert db_session.get(Order, order.id).is_trashed is False
