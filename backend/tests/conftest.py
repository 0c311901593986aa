"""
An in-memory stand-in for the Supabase client, covering the query shapes
habits.db uses: select/order/limit, upsert, delete/eq, update/eq.
"""
from types import SimpleNamespace

import pytest


class FakeQuery:
    def __init__(self, rows: dict, action: str, payload=None):
        self._rows = rows
        self._action = action
        self._payload = payload
        self._order: list[str] = []
        self._eq = None

    def order(self, column):
        self._order.append(column)
        return self

    def limit(self, n):
        return self

    def eq(self, column, value):
        self._eq = (column, value)
        return self

    def execute(self):
        if self._action == "select":
            rows = list(self._rows.values())
            for column in reversed(self._order):
                rows.sort(key=lambda r: r.get(column))
            return SimpleNamespace(data=[dict(r) for r in rows])

        if self._action == "upsert":
            current = self._rows.get(self._payload["id"], {})
            self._rows[self._payload["id"]] = {**current, **self._payload}
        elif self._action in ("update", "delete"):
            column, value = self._eq
            for key in [k for k, r in self._rows.items() if r.get(column) == value]:
                if self._action == "delete":
                    del self._rows[key]
                else:
                    self._rows[key] = {**self._rows[key], **self._payload}
        return SimpleNamespace(data=[])


class FakeTable:
    def __init__(self, rows: dict):
        self._rows = rows

    def select(self, *columns):
        return FakeQuery(self._rows, "select")

    def upsert(self, row):
        return FakeQuery(self._rows, "upsert", row)

    def update(self, changes):
        return FakeQuery(self._rows, "update", changes)

    def delete(self):
        return FakeQuery(self._rows, "delete")


class FakeClient:
    def __init__(self):
        self.rows: dict[str, dict] = {}

    def table(self, name):
        return FakeTable(self.rows)


@pytest.fixture
def fake_db():
    return FakeClient()
