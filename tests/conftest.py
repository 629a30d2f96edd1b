from __future__ import annotations

from datetime import datetime

import pytest

from src.yourobc.yourobc.common.permissions import Actor
from src.yourobc.yourobc.core.enums import Role
from src.yourobc.yourobc.counters.model import Counter
from src.yourobc.yourobc.counters.service import CounterService


class InMemoryCounters:
    def __init__(self):
        self.values: dict[tuple, int] = {}

    def increment(self, *, counter_type, year, month, prefix, start, increment_by):
        key = (counter_type, year, month)
        if key in self.values:
            self.values[key] += increment_by
        else:
            self.values[key] = start
        return self.values[key]

    def get(self, *, counter_type, year, month):
        key = (counter_type, year, month)
        if key not in self.values:
            return None
        return Counter(
            counter_id=1, counter_type=counter_type, year=year, month=month, prefix="", last_number=self.values[key], increment_by=1
        )

    def list_counters(self, *, counter_type=None, year=None):
        return []

    def delete(self, *, counter_type, year, month):
        return self.values.pop((counter_type, year, month), None) is not None


class InMemoryAudit:
    def __init__(self):
        self.entries: list[dict] = []

    def record(self, *, user_id, action, entity_type, entity_id, description):
        self.entries.append(
            {"user_id": user_id, "action": action, "entity_type": entity_type, "entity_id": entity_id, "description": description}
        )
        return len(self.entries)

    def list_for_entity(self, *, entity_type, entity_id, limit=100):
        return []

    def actions(self) -> list[str]:
        return [e["action"] for e in self.entries]


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 15, 9, 30)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=1, role=Role.ADMIN)


@pytest.fixture
def manager() -> Actor:
    return Actor(user_id=2, role=Role.MANAGER)


@pytest.fixture
def staff() -> Actor:
    return Actor(user_id=3, role=Role.STAFF)


@pytest.fixture
def other_staff() -> Actor:
    return Actor(user_id=4, role=Role.STAFF)


@pytest.fixture
def audit() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def counter_repo() -> InMemoryCounters:
    return InMemoryCounters()


@pytest.fixture
def counter_service(counter_repo) -> CounterService:
    return CounterService(counter_repo)
