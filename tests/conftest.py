"""Shared fixtures: a token codec with a fixed secret and a table-aware Supabase mock."""

from typing import Dict, List
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.core.tokens import TokenCodec

TEST_SECRET = "test-jwt-secret"


@pytest.fixture
def codec():
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def group_id():
    return uuid4()


def make_supabase(tables: Dict[str, List[dict]]) -> MagicMock:
    """Mock Supabase client whose `table(name)` queries return `tables[name]`.

    Filters (eq, order, limit, ...) chain back to the same query, so any
    select ends in the rows configured for that table. The mock for each table
    is created once, so assertions can look it up with `client.table(name)`.
    """
    client = MagicMock()
    mocks = {}

    def table(name):
        if name not in mocks:
            t = MagicMock()
            query = t.select.return_value
            for method in ("eq", "or_", "order", "limit", "in_"):
                getattr(query, method).return_value = query
            query.execute.return_value = MagicMock(data=tables.get(name, []))
            mocks[name] = t
        return mocks[name]

    client.table.side_effect = table
    return client
