from datetime import datetime

import analytics
import workflow
from models import BorrowingIn, StockUsageIn


def _borrow(db, borrower, borrowing_id, tool_ids, day):
    return workflow.create_borrowing(
        db,
        BorrowingIn(
            borrowing_id=borrowing_id,
            tool_ids=tool_ids,
            borrow_date=datetime(2026, 1, day, 8, 0),
            expected_return_date=datetime(2026, 1, day + 2, 8, 0),
        ),
        borrower=borrower,
    )


def test_most_used_tools_ranking(client, auth, users, make_tool, db_session):
    mm = make_tool("EL-MT-001")
    cm = make_tool("EL-CM-001", name="Clamp meter")
    os_ = make_tool("EL-OS-001", name="Oscilloscope")
    make_tool("EL-IR-001", name="Insulation tester")

    _borrow(db_session, users["user"], "BRW-1", [mm.id, cm.id], 5)
    _borrow(db_session, users["user"], "BRW-2", [mm.id], 9)
    _borrow(db_session, users["coordinator"], "BRW-3", [mm.id, os_.id], 7)
    _borrow(db_session, users["coordinator"], "BRW-4", [cm.id], 11)

    ranked = analytics.most_used_tools(db_session, limit=10)
    assert [(t.tool_code, t.borrow_count) for t in ranked] == [
        ("EL-MT-001", 3),
        ("EL-CM-001", 2),
        ("EL-OS-001", 1),
    ]
    assert ranked[0].last_borrowed_at == datetime(2026, 1, 9, 8, 0)

    r = client.get("/analytics/most-used-tools", params={"limit": 2}, headers=auth("user"))
    assert r.status_code == 200
    assert [t["tool_code"] for t in r.json()] == ["EL-MT-001", "EL-CM-001"]

    # out-of-range limits are clamped
    r = client.get("/analytics/most-used-tools", params={"limit": 0}, headers=auth("user"))
    assert len(r.json()) == 1


def test_tool_borrowing_stats(client, auth, users, make_tool, db_session):
    mm = make_tool("EL-MT-001")
    cm = make_tool("EL-CM-001")
    make_tool("EL-OS-001")
    _borrow(db_session, users["user"], "BRW-1", [mm.id, cm.id], 5)
    _borrow(db_session, users["user"], "BRW-2", [mm.id], 9)

    assert analytics.tool_borrowing_stats(db_session) == {mm.id: 2, cm.id: 1}

    r = client.get("/analytics/tool-borrowing-stats", headers=auth("user"))
    assert r.json() == {str(mm.id): 2, str(cm.id): 1}


def test_stock_usage_stats_includes_unused_items(client, auth, users, make_stock_item, db_session):
    used = make_stock_item("CT-001", quantity=20)
    idle = make_stock_item("FS-001", quantity=20)
    for qty in (1, 2, 3):
        workflow.record_stock_usage(
            db_session,
            StockUsageIn(item_id=used.id, quantity=qty, usage_date="2026-02-01T09:00:00"),
            actor=users["user"],
        )

    assert analytics.stock_usage_stats(db_session) == {used.id: 3, idle.id: 0}

    r = client.get("/analytics/stock-usage-stats", headers=auth("user"))
    assert r.json() == {str(used.id): 3, str(idle.id): 0}


def test_analytics_empty_store(client, auth, users):
    assert client.get("/analytics/most-used-tools", headers=auth("user")).json() == []
    assert client.get("/analytics/tool-borrowing-stats", headers=auth("user")).json() == {}
    assert client.get("/analytics/stock-usage-stats", headers=auth("user")).json() == {}
