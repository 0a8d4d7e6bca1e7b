"""
Pytest configuration and fixtures.

The persistence layer is replaced by ``FakeDB``: it records every statement
handed to ``jobly.db`` and answers from canned rows, so route tests can check
both the HTTP response and the SQL/params that reached the database.
"""
import copy
import os

os.environ.setdefault("JOBLY_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient

from jobly import db
from jobly.auth_utils import create_token
from jobly.main import app


class FakeDB:
    """Stand-in for ``jobly.db``; rules are (substring of the query, result)."""

    def __init__(self):
        self.calls = []
        self._rules = []

    def on(self, fragment, result):
        self._rules.append((fragment, result))
        return self

    def _answer(self, kind, query, params, default):
        sql = " ".join(query.split())
        params = list(params or [])
        # placeholders must line up with params
        db.to_pyformat(sql, params)
        self.calls.append((kind, sql, params))
        for fragment, result in self._rules:
            if fragment in sql:
                return copy.deepcopy(result)
        return default

    def fetch_one(self, query, params=None):
        return self._answer("fetch_one", query, params, None)

    def fetch_all(self, query, params=None):
        return self._answer("fetch_all", query, params, [])

    def execute(self, query, params=None):
        return self._answer("execute", query, params, 1)

    def execute_returning(self, query, params=None):
        return self._answer("execute_returning", query, params, None)

    def execute_returning_one(self, query, params=None):
        row = self._answer("execute_returning_one", query, params, None)
        if row is None:
            raise RuntimeError("Expected one row returned, got none.")
        return row

    def find(self, fragment):
        """All recorded (kind, sql, params) whose SQL contains ``fragment``."""
        return [c for c in self.calls if fragment in c[1]]


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakeDB()
    for name in ("fetch_one", "fetch_all", "execute", "execute_returning", "execute_returning_one"):
        monkeypatch.setattr(db, name, getattr(fake, name))
    monkeypatch.setattr(db, "init_db_pool", lambda: None)
    monkeypatch.setattr(db, "close_db_pool", lambda: None)
    return fake


@pytest.fixture
def client(fake_db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_token('admin', is_admin=True)}"}


@pytest.fixture
def u1_headers():
    return {"Authorization": f"Bearer {create_token('u1', is_admin=False)}"}


@pytest.fixture
def c1_row():
    return {
        "handle": "c1",
        "name": "C1",
        "description": "Desc1",
        "numEmployees": 1,
        "logoUrl": "http://c1.img",
    }


@pytest.fixture
def u1_row():
    return {
        "username": "u1",
        "firstName": "U1F",
        "lastName": "U1L",
        "email": "user1@user.com",
        "isAdmin": False,
    }
