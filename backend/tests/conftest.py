"""
测试公共夹具：每个测试使用独立的临时 SQLite 文件，
通过 dependency_overrides 替换 get_db。
"""
import asyncio
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.pool import NullPool

from checkin.database import build_engine, build_session_factory, get_db, init_db
from checkin.main import app


@pytest.fixture()
def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'checkin.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    yield build_session_factory(engine)
    asyncio.run(engine.dispose())


@pytest.fixture()
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def count_rows(session_factory):
    """同步返回某张表的行数"""
    async def _count(model):
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return lambda model: asyncio.run(_count(model))


@pytest.fixture()
def set_today(monkeypatch):
    """固定服务端的“今天”"""
    def _set(day: date):
        monkeypatch.setattr("checkin.services.submissions.get_today", lambda: day)
        monkeypatch.setattr("checkin.routers.forms.get_today", lambda: day)

    _set(date(2024, 3, 4))
    return _set


SAMPLE_FIELDS = [
    {"label": "Bible chapters", "type": "number"},
    {"label": "Note", "type": "text", "required": False},
    {"label": "Mood", "type": "select", "options": ["good", "ok", "bad"]},
    {"label": "Outreach", "type": "steps", "options": ["Try", "Share", "Accept"]},
    {"label": "Prayed", "type": "checkbox"},
    {"label": "Banner", "type": "image", "options": ["https://example.com/banner.png"]},
]


@pytest.fixture()
def make_form(client):
    def _make(fields=None, name="Morning check-in", **extra):
        payload = {"name": name, "fields": SAMPLE_FIELDS if fields is None else fields, **extra}
        res = client.post("/api/forms", json=payload)
        assert res.status_code == 201, res.text
        return res.json()

    return _make


def field_ids(form: dict) -> dict:
    """label -> field id"""
    return {f["label"]: f["id"] for f in form["fields"]}
