"""
Task endpoints.

Every route requires a bearer token. Admins see and may change every
task; other users only their own.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.core.database import get_db
from taskmanager.auth.dependencies import CurrentUser, get_current_user
from taskmanager.models.task import TaskPriority
from taskmanager.services.task_service import TaskService
from taskmanager.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskEnvelope,
    TaskListResponse,
    task_to_response,
    build_task_list,
)

router = APIRouter()


def get_task_service(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TaskService:
    """Bind the task service to the caller's identity."""
    return TaskService(db, current_user)


# =============================================================================
# Collections (declared before /{task_id})
# =============================================================================

@router.get("", response_model=TaskListResponse)
async def list_tasks(service: TaskService = Depends(get_task_service)):
    """All tasks for admins, the caller's own tasks otherwise."""
    tasks = await service.list_all()
    message = "Admin view: All tasks" if service.identity.is_admin else "Your tasks"
    return build_task_list(message, tasks)


@router.get("/my", response_model=TaskListResponse)
async def my_tasks(service: TaskService = Depends(get_task_service)):
    tasks = await service.list_for_user(service.identity.id)
    return build_task_list("Your tasks", tasks)


@router.get("/search", response_model=TaskListResponse)
async def search_tasks(
    title: str = Query("", max_length=200),
    service: TaskService = Depends(get_task_service),
):
    """Case-insensitive title substring search."""
    tasks = await service.search(title)
    return build_task_list("Search results", tasks, search_term=title)


@router.get("/completed", response_model=TaskListResponse)
async def completed_tasks(service: TaskService = Depends(get_task_service)):
    tasks = await service.filter_completed(True)
    return build_task_list("Completed tasks", tasks)


@router.get("/pending", response_model=TaskListResponse)
async def pending_tasks(service: TaskService = Depends(get_task_service)):
    tasks = await service.filter_completed(False)
    return build_task_list("Pending tasks", tasks)


@router.get("/priority/{priority}", response_model=TaskListResponse)
async def tasks_by_priority(
    priority: str,
    service: TaskService = Depends(get_task_service),
):
    tasks = await service.filter_priority(priority)
    label = TaskPriority.parse(priority)
    return build_task_list(f"Tasks with {label.value} priority", tasks, priority=label)


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    response: Response,
    service: TaskService = Depends(get_task_service),
):
    task = await service.create(data)
    response.headers["Location"] = f"/api/tasks/{task.id}"
    return TaskEnvelope(message="Task created successfully", task=task_to_response(task))


# =============================================================================
# Single task
# =============================================================================

@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, service: TaskService = Depends(get_task_service)):
    task = await service.get(task_id)
    return task_to_response(task)


@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
):
    """Partial update: only the fields present in the body change."""
    task = await service.update(task_id, data)
    return TaskEnvelope(message="Task updated successfully", task=task_to_response(task))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)):
    await service.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{task_id}/complete", response_model=TaskEnvelope)
async def mark_complete(task_id: int, service: TaskService = Depends(get_task_service)):
    task = await service.set_completed(task_id, True)
    return TaskEnvelope(message="Task marked as complete", task=task_to_response(task))


@router.patch("/{task_id}/incomplete", response_model=TaskEnvelope)
async def mark_incomplete(task_id: int, service: TaskService = Depends(get_task_service)):
    task = await service.set_completed(task_id, False)
    return TaskEnvelope(message="Task marked as incomplete", task=task_to_response(task))
