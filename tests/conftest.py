"""
Shared fixtures: scripted LLM and in-memory Supabase stand-ins.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional

import pytest

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "sat_tutor_agent", "src"))
sys.path.insert(0, os.path.join(project_root, "backend"))

from sat_tutor_agent.llm_client import GenerationError


class ScriptedGenerator:
    """
    Replays canned generator outputs in order.

    Items may be strings, dicts (sent as JSON) or exceptions (raised).
    Once the script runs out every call returns `default`.
    """

    def __init__(self, responses: Optional[List[Any]] = None, default: str = '{"reply": "Sure, let\'s work on it."}'):
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, messages, json_mode=False, temperature=0.7, fast_mode=False):
        self.calls.append({
            "prompt": messages[-1]["content"],
            "json_mode": json_mode,
            "temperature": temperature,
            "fast_mode": fast_mode,
        })
        if not self.responses:
            return self.default
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, (dict, list)):
            return json.dumps(item)
        return item


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the postgrest query builder for the code under test."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.filters: List[tuple] = []
        self.action = "select"
        self.payload: Any = None
        self.limit_count: Optional[int] = None
        self.order_by: Optional[tuple] = None
        self.single_row = False

    def select(self, *columns):
        self.action = "select"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def limit(self, n):
        self.limit_count = n
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def single(self):
        self.single_row = True
        return self

    def upsert(self, row, on_conflict=None):
        self.action = "upsert"
        self.payload = (row, on_conflict)
        return self

    def update(self, values):
        self.action = "update"
        self.payload = values
        return self

    def delete(self):
        self.action = "delete"
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def execute(self):
        if self.db.fail:
            raise ConnectionError("supabase unavailable")

        rows = self.db.tables.setdefault(self.table_name, [])
        self.db.log.append((self.table_name, self.action, self.payload, list(self.filters)))

        if self.action == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                found.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self.limit_count is not None:
                found = found[:self.limit_count]
            if self.single_row:
                return FakeResult(found[0] if found else None)
            return FakeResult(found)

        if self.action == "upsert":
            row, key = self.payload
            key = key or "id"
            rows[:] = [r for r in rows if r.get(key) != row.get(key)]
            rows.append(dict(row))
            return FakeResult([row])

        if self.action == "update":
            changed = []
            for r in rows:
                if self._matches(r):
                    r.update(self.payload)
                    changed.append(dict(r))
            return FakeResult(changed)

        if self.action == "delete":
            removed = [r for r in rows if self._matches(r)]
            rows[:] = [r for r in rows if not self._matches(r)]
            return FakeResult(removed)

        raise ValueError(self.action)


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None, fail: bool = False):
        self.tables = tables or {}
        self.fail = fail
        self.log: List[tuple] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def make_generator():
    """Factory: make_generator([...responses]) -> ScriptedGenerator."""
    return ScriptedGenerator


@pytest.fixture
def make_supabase():
    """Factory: make_supabase(tables=None, fail=False) -> FakeSupabase."""
    return FakeSupabase


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def generation_error():
    return GenerationError("model unavailable", status=500)
