from fastapi import APIRouter, status

from app.core.config import SettingsDep
from app.dependencies import CurrentUserId, TaskServiceDep
from app.models import TaskCreate, TaskRecord, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/", response_model=TaskRecord, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate, user_id: CurrentUserId, service: TaskServiceDep
):
    """Create a new task"""
    return await service.create_task(user_id, task_data)


@router.get("/", response_model=list[TaskRecord])
async def list_tasks(
    user_id: CurrentUserId, service: TaskServiceDep, settings: SettingsDep
):
    """List the caller's tasks, newest first"""
    return await service.list_for_owner(
        user_id, timeout=settings.request_timeout_seconds
    )


@router.get("/{task_id}", response_model=TaskRecord)
async def get_task(task_id: int, user_id: CurrentUserId, service: TaskServiceDep):
    """Get a specific task by ID"""
    return await service.get_task(user_id, task_id)


@router.patch("/{task_id}", response_model=TaskRecord)
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    user_id: CurrentUserId,
    service: TaskServiceDep,
):
    return await service.update_task(user_id, task_id, task_data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, user_id: CurrentUserId, service: TaskServiceDep):
    """Delete a task"""
    await service.delete_task(user_id, task_id)


@router.post("/{task_id}/complete", response_model=TaskRecord)
async def mark_task_complete(
    task_id: int, user_id: CurrentUserId, service: TaskServiceDep
):
    """Mark a task as completed"""
    return await service.complete_task(user_id, task_id)
