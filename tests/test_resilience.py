import pytest
from sqlalchemy.exc import OperationalError

import analytics
import crud


class _BrokenSession:
    """Stands in for a session whose database has gone away."""

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("no such table"))


def test_list_reads_return_empty_when_store_unavailable():
    db = _BrokenSession()

    assert crud.list_tools(db) == []
    assert crud.list_stock_items(db) == []
    assert crud.list_low_stock_items(db) == []
    assert crud.list_borrowings(db, status="pending_approval") == []
    assert crud.list_pending_borrowings(db) == []
    assert crud.list_approvals(db, 1) == []
    assert crud.list_pending_approvals_for_role(db, "coordinator") == []
    assert crud.list_stock_usages(db, used_by=1) == []
    assert analytics.most_used_tools(db) == []
    assert analytics.tool_borrowing_stats(db) == {}
    assert analytics.stock_usage_stats(db) == {}


def test_lookups_still_raise_when_store_unavailable():
    db = _BrokenSession()

    with pytest.raises(OperationalError):
        crud.get_tool_by_code(db, "EL-MT-001")
