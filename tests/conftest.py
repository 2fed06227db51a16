import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# ---- テスト用DBパス（db.py が最初に import される前に設定する）----
_TEST_DIR = Path(tempfile.mkdtemp(prefix="inventory_test_"))
os.environ["APP_DB_PATH"] = str(_TEST_DIR / "test_inventory.db")
os.environ.pop("APP_DATABASE_URL", None)


@pytest.fixture(scope="session")
def app_module():
    import main

    return main


@pytest.fixture()
def client(app_module):
    # get_db を override（テスト用SessionLocalを使う）
    def _get_db_override():
        db = app_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app_module.app.dependency_overrides[app_module.get_db] = _get_db_override
    with TestClient(app_module.app) as c:
        yield c
    app_module.app.dependency_overrides.clear()


@pytest.fixture()
def db_session(app_module):
    db = app_module.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db(app_module, db_session):
    # 各テスト前に全テーブルを消す（外部キーの逆順）
    from db import Base

    for table in reversed(Base.metadata.sorted_tables):
        db_session.execute(table.delete())
    db_session.commit()
    yield


@pytest.fixture()
def users(db_session):
    """One user per role, keyed by role name."""
    import crud
    from models import UserIn

    created = {}
    for role in ("admin", "lab_supervisor", "coordinator", "sm_operasi", "user"):
        created[role] = crud.create_user(
            db_session,
            UserIn(open_id=f"{role}-openid", name=role.replace("_", " ").title(), role=role),
        )
    return created


@pytest.fixture()
def auth(users):
    def _headers(role: str) -> dict[str, str]:
        return {"X-User-Id": str(users[role].id)}

    return _headers


@pytest.fixture()
def make_tool(db_session):
    import crud
    from models import ToolIn

    def _make(tool_id: str, name: str = "Multimeter", **kwargs):
        return crud.create_tool(db_session, ToolIn(tool_id=tool_id, name=name, **kwargs))

    return _make


@pytest.fixture()
def make_stock_item(db_session):
    import crud
    from models import StockItemIn

    def _make(item_id: str, quantity: int, min_threshold: int = 5, name: str = "Cable tie", **kwargs):
        return crud.create_stock_item(
            db_session,
            StockItemIn(item_id=item_id, name=name, quantity=quantity, min_threshold=min_threshold, **kwargs),
        )

    return _make
