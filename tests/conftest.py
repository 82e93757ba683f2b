"""Shared fixtures and in-memory fakes for the task API tests."""

from __future__ import annotations

import asyncio
import itertools

import pytest

from app.cache.store import MemoryCacheStore
from app.core.errors import CacheFailure, OriginFailure
from app.models import TASK_STATUS_DONE, TASK_STATUS_PENDING, Task, User, get_utc_now


class FakeTaskRepository:
    """Dict-backed stand-in for TaskRepository that counts list loads."""

    def __init__(self, tasks: list[Task] | None = None, delay: float = 0.0):
        self.tasks: dict[int, Task] = {t.id: t for t in tasks or []}
        self.delay = delay
        self.fail_with: Exception | None = None
        self.list_calls = 0
        self.create_calls = 0
        self._ids = itertools.count(max(self.tasks, default=0) + 1)

    async def find_by_owner(self, user_id: int) -> list[Task]:
        self.list_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        owned = [t for t in self.tasks.values() if t.user_id == user_id]
        return sorted(owned, key=lambda t: t.id, reverse=True)

    async def find_by_id(self, task_id: int) -> Task | None:
        return self.tasks.get(task_id)

    async def create(self, task: Task) -> Task:
        self.create_calls += 1
        task.id = next(self._ids)
        self.tasks[task.id] = task
        return task

    async def update(self, task_id: int, values: dict) -> Task | None:
        task = self.tasks.get(task_id)
        if task is None:
            return None
        task.sqlmodel_update(values)
        task.updated_at = get_utc_now()
        return task

    async def delete(self, task_id: int) -> None:
        self.tasks.pop(task_id, None)


class FakeUserRepository:
    def __init__(self):
        self.users: dict[int, User] = {}
        self._ids = itertools.count(1)

    async def find_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_id(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def create(self, user: User) -> User:
        user.id = next(self._ids)
        self.users[user.id] = user
        return user


class FailingCacheStore:
    """Cache store whose selected operations always fail."""

    def __init__(self, fail_get=True, fail_set=True, fail_delete=True):
        self.inner = MemoryCacheStore()
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.fail_delete = fail_delete

    async def get(self, key):
        if self.fail_get:
            raise CacheFailure("connection refused")
        return await self.inner.get(key)

    async def set(self, key, value, ttl):
        if self.fail_set:
            raise CacheFailure("connection refused")
        await self.inner.set(key, value, ttl)

    async def delete(self, key):
        if self.fail_delete:
            raise CacheFailure("connection refused")
        await self.inner.delete(key)

    async def close(self):
        pass


class HangingCacheStore(MemoryCacheStore):
    """Memory store whose reads stall, like a Redis server that stopped answering."""

    def __init__(self, stall: float = 1.0):
        super().__init__()
        self.stall = stall

    async def get(self, key):
        await asyncio.sleep(self.stall)
        return await super().get(key)


class RecordingCacheStore(MemoryCacheStore):
    """Memory store that remembers the TTL of every write."""

    def __init__(self):
        super().__init__()
        self.ttls: list[float] = []

    async def set(self, key, value, ttl):
        self.ttls.append(ttl)
        await super().set(key, value, ttl)


def make_task(task_id: int, user_id: int = 1, title: str | None = None, **kwargs) -> Task:
    return Task(
        id=task_id,
        user_id=user_id,
        title=title or f"Task {task_id}",
        content=kwargs.pop("content", ""),
        status=kwargs.pop("status", TASK_STATUS_PENDING),
        **kwargs,
    )


@pytest.fixture
def sample_tasks():
    """Two tasks for owner 1 and one for owner 2."""
    return [
        make_task(1, user_id=1, title="Task 1", status=TASK_STATUS_PENDING),
        make_task(2, user_id=1, title="Task 2", status=TASK_STATUS_DONE),
        make_task(3, user_id=2, title="Someone else's"),
    ]


@pytest.fixture
def task_repo(sample_tasks):
    return FakeTaskRepository(sample_tasks)


@pytest.fixture
def memory_cache():
    return MemoryCacheStore()


@pytest.fixture
def origin_failure():
    return OriginFailure("database is down")
