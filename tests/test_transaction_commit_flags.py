from sqlalchemy import select

import crud
from models import AppSettingIn, StockItemIn, StockItemUpdate, ToolIn, ToolUpdate
from orm import AppSettingORM, ToolORM


def test_create_tool_commit_false_requires_manual_commit(db_session):
    created = crud.create_tool(db_session, ToolIn(tool_id="EL-MT-001", name="Multimeter"), commit=False)

    db_session.commit()
    db_session.expire_all()

    loaded = crud.get_tool(db_session, created.id)
    assert loaded is not None
    assert loaded.tool_id == "EL-MT-001"


def test_create_tool_commit_false_rollback_discards_change(db_session):
    created = crud.create_tool(db_session, ToolIn(tool_id="EL-MT-002", name="Multimeter"), commit=False)

    db_session.rollback()
    db_session.expire_all()

    assert crud.get_tool(db_session, created.id) is None


def test_update_tool_commit_false_rollback_discards_change(db_session):
    tool = crud.create_tool(db_session, ToolIn(tool_id="EL-MT-003", name="Multimeter"))

    updated = crud.update_tool(db_session, tool.id, ToolUpdate(status="damaged"), commit=False)
    assert updated.status == "damaged"

    db_session.rollback()
    db_session.expire_all()

    loaded = db_session.get(ToolORM, tool.id)
    assert loaded.status == "available"


def test_delete_tool_commit_false_requires_manual_commit(db_session):
    tool = crud.create_tool(db_session, ToolIn(tool_id="EL-MT-004", name="Multimeter"))

    assert crud.delete_tool(db_session, tool.id, commit=False) is True

    db_session.commit()
    db_session.expire_all()

    assert db_session.get(ToolORM, tool.id) is None


def test_update_stock_item_commit_false_rollback_keeps_status(db_session):
    item = crud.create_stock_item(db_session, StockItemIn(item_id="CT-001", name="Cable tie", quantity=50))

    updated = crud.update_stock_item(db_session, item.id, StockItemUpdate(quantity=0), commit=False)
    assert updated.status == "out_of_stock"

    db_session.rollback()
    db_session.expire_all()

    loaded = crud.get_stock_item(db_session, item.id)
    assert loaded.quantity == 50
    assert loaded.status == "available"


def test_set_setting_commit_false_rollback_discards_change(db_session):
    crud.set_setting(db_session, "loan_days", AppSettingIn(value="7"))

    crud.set_setting(db_session, "loan_days", AppSettingIn(value="30"), commit=False)
    db_session.rollback()
    db_session.expire_all()

    value = db_session.execute(
        select(AppSettingORM.value).where(AppSettingORM.key == "loan_days")
    ).scalar_one()
    assert value == "7"
