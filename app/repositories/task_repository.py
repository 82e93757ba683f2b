from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.errors import OriginFailure
from app.models import Task, get_utc_now


class TaskRepository:
    """
    Durable task storage.

    Each call opens its own session, so a list load shared by several
    requests is not bound to any one of them. Deleted rows are kept with
    ``deleted_at`` set and are invisible to every finder.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_by_owner(self, user_id: int) -> list[Task]:
        query = (
            select(Task)
            .where(Task.user_id == user_id)
            .where(col(Task.deleted_at).is_(None))
            .order_by(col(Task.created_at).desc(), col(Task.id).desc())
        )
        try:
            async with self._session_factory() as db:
                result = await db.exec(query)
                return list(result.all())
        except SQLAlchemyError as e:
            raise OriginFailure(f"failed to list tasks for user {user_id}") from e

    async def find_by_id(self, task_id: int) -> Task | None:
        try:
            async with self._session_factory() as db:
                task = await db.get(Task, task_id)
        except SQLAlchemyError as e:
            raise OriginFailure(f"failed to load task {task_id}") from e
        if task is None or task.deleted_at is not None:
            return None
        return task

    async def create(self, task: Task) -> Task:
        try:
            async with self._session_factory() as db:
                db.add(task)
                await db.commit()
                await db.refresh(task)
                return task
        except SQLAlchemyError as e:
            raise OriginFailure("failed to create task") from e

    async def update(self, task_id: int, values: dict) -> Task | None:
        """Apply ``values`` to a live task; None if it is missing or deleted."""
        try:
            async with self._session_factory() as db:
                task = await db.get(Task, task_id, with_for_update=True)
                if task is None or task.deleted_at is not None:
                    return None
                task.sqlmodel_update(values)
                task.updated_at = get_utc_now()
                db.add(task)
                await db.commit()
                await db.refresh(task)
                return task
        except SQLAlchemyError as e:
            raise OriginFailure(f"failed to update task {task_id}") from e

    async def delete(self, task_id: int) -> None:
        try:
            async with self._session_factory() as db:
                task = await db.get(Task, task_id, with_for_update=True)
                if task is None or task.deleted_at is not None:
                    return
                task.deleted_at = get_utc_now()
                db.add(task)
                await db.commit()
        except SQLAlchemyError as e:
            raise OriginFailure(f"failed to delete task {task_id}") from e
