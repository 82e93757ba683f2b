import asyncio
import logging

from app.cache.codec import decode_tasks, encode_tasks
from app.cache.keys import user_tasks_key
from app.cache.singleflight import SingleFlight
from app.cache.store import CacheStore
from app.cache.ttl import jittered
from app.core.errors import (
    CacheFailure,
    DeadlineExceeded,
    PermissionDenied,
    TaskNotFound,
    TaskValidationError,
)
from app.models import (
    TASK_STATUS_DONE,
    TASK_STATUS_PENDING,
    Task,
    TaskCreate,
    TaskRecord,
    TaskUpdate,
)
from app.repositories.task_repository import TaskRepository

logger = logging.getLogger(__name__)

# ±10% around the base TTL
LIST_TTL_JITTER_RATIO = 0.1


def _to_records(tasks: list[Task]) -> list[TaskRecord]:
    return [TaskRecord.model_validate(t) for t in tasks]


async def _within(aw, timeout: float | None, user_id: int):
    if timeout is None:
        return await aw
    try:
        return await asyncio.wait_for(aw, timeout)
    except asyncio.TimeoutError as e:
        raise DeadlineExceeded(
            f"task list for user {user_id} not ready after deadline"
        ) from e


def _clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise TaskValidationError("title is required")
    return title


class TaskService:
    """
    Task operations with a read-through cache on each user's task list.

    Reads check the cache first; concurrent misses for the same user share
    one database load, which repopulates the cache with a jittered TTL.
    Every mutation deletes the owner's cached list afterwards.

    Cache errors never fail a request: reads fall back to the database and
    invalidation failures are logged.

    Known staleness window: a list load that started before a mutation can
    write its (pre-mutation) result into the cache after that mutation's
    invalidation ran. The stale list then lives until its TTL expires. The
    double-check inside the collapsed load narrows this window but does not
    close it.
    """

    def __init__(
        self,
        repo: TaskRepository,
        cache: CacheStore | None = None,
        list_ttl_seconds: float = 60,
        singleflight: SingleFlight | None = None,
    ):
        self.repo = repo
        self.cache = cache
        self.list_ttl_seconds = list_ttl_seconds
        self._singleflight = singleflight or SingleFlight()

    async def list_for_owner(
        self, user_id: int, timeout: float | None = None
    ) -> list[TaskRecord]:
        """
        Return the user's tasks, newest first.

        ``timeout`` is one deadline for the whole call: the cache read, the
        wait on a shared load and the database query all count against it.

        Raises:
            DeadlineExceeded: ``timeout`` elapsed
            OriginFailure: the database query failed
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        def remaining() -> float | None:
            return None if deadline is None else max(deadline - loop.time(), 0.0)

        if self.cache is None:
            tasks = await _within(self.repo.find_by_owner(user_id), remaining(), user_id)
            return _to_records(tasks)

        key = user_tasks_key(user_id)

        cached = await _within(self._read_cached(key), remaining(), user_id)
        if cached is not None:
            logger.debug(f"task list cache hit key={key}")
            return cached

        async def load():
            # another caller may have populated the key while we queued
            cached = await self._read_cached(key)
            if cached is not None:
                return cached

            logger.debug(f"task list cache miss, loading from database key={key}")
            records = _to_records(await self.repo.find_by_owner(user_id))
            await self._populate(key, records)
            return records

        return await self._singleflight.do(key, load, timeout=remaining())

    async def _read_cached(self, key: str) -> list[TaskRecord] | None:
        """Return cached records, or None on miss, empty value, error or corruption."""
        try:
            raw = await self.cache.get(key)
            if not raw:
                return None
            return decode_tasks(raw)
        except CacheFailure as e:
            logger.warning(f"task list cache read failed, using database: {e}")
            return None

    async def _populate(self, key: str, records: list[TaskRecord]) -> None:
        ttl = jittered(self.list_ttl_seconds, LIST_TTL_JITTER_RATIO, minimum=1.0)
        try:
            await self.cache.set(key, encode_tasks(records), ttl)
            logger.debug(f"task list cached key={key} ttl={ttl:.2f}")
        except CacheFailure as e:
            logger.warning(f"task list cache write failed: {e}")

    async def _invalidate(self, user_id: int) -> None:
        if self.cache is None:
            return
        key = user_tasks_key(user_id)
        try:
            await self.cache.delete(key)
            logger.debug(f"task list invalidated key={key}")
        except CacheFailure as e:
            logger.warning(f"task list invalidation failed, relying on TTL: {e}")

    async def _get_owned(self, user_id: int, task_id: int) -> Task:
        task = await self.repo.find_by_id(task_id)
        if task is None:
            raise TaskNotFound(f"Task with id {task_id} not found")
        if task.user_id != user_id:
            raise PermissionDenied()
        return task

    async def get_task(self, user_id: int, task_id: int) -> TaskRecord:
        return TaskRecord.model_validate(await self._get_owned(user_id, task_id))

    async def create_task(self, user_id: int, task_data: TaskCreate) -> TaskRecord:
        task = Task(
            user_id=user_id,
            title=_clean_title(task_data.title),
            content=task_data.content,
            status=TASK_STATUS_PENDING,
        )
        task = await self.repo.create(task)
        await self._invalidate(user_id)
        return TaskRecord.model_validate(task)

    async def update_task(
        self, user_id: int, task_id: int, task_data: TaskUpdate
    ) -> TaskRecord:
        update_data = task_data.model_dump(exclude_unset=True, exclude_none=True)
        if "title" in update_data:
            update_data["title"] = _clean_title(update_data["title"])

        await self._get_owned(user_id, task_id)
        task = await self.repo.update(task_id, update_data)
        if task is None:
            # deleted after the ownership check
            raise TaskNotFound(f"Task with id {task_id} not found")
        await self._invalidate(user_id)
        return TaskRecord.model_validate(task)

    async def complete_task(self, user_id: int, task_id: int) -> TaskRecord:
        return await self.update_task(
            user_id, task_id, TaskUpdate(status=TASK_STATUS_DONE)
        )

    async def delete_task(self, user_id: int, task_id: int) -> None:
        await self._get_owned(user_id, task_id)
        await self.repo.delete(task_id)
        await self._invalidate(user_id)
