"""Task service - volunteer and staff to-dos."""

from typing import Any, Literal

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient, fetch_collection, service_call

TASK_KEYS = ("tasks",)

TaskStatus = Literal["pending", "in_progress", "completed"]


@service_call("Failed to load tasks")
async def list_tasks(client: ApiClient, status: TaskStatus | None = None) -> ApiResponse:
    return await fetch_collection(client, "tasks", TASK_KEYS, status=status)


@service_call("Failed to load upcoming tasks")
async def get_upcoming_tasks(client: ApiClient) -> ApiResponse:
    return await fetch_collection(client, "tasks/upcoming", TASK_KEYS)


@service_call("Failed to create task")
async def create_task(
    client: ApiClient,
    title: str,
    due_date: str,
    description: str = "",
    due_time: str | None = None,
    priority: str = "medium",
    case_id: int | str | None = None,
    assigned_to: int | str | None = None,
) -> ApiResponse:
    payload: dict[str, Any] = {
        "title": title,
        "description": description,
        "due_date": due_date,
        "due_time": due_time or None,
        "priority": priority,
        "case_id": int(case_id) if case_id else None,
        "assigned_to": int(assigned_to) if assigned_to else None,
    }
    return await client.casa_post("tasks", payload)


@service_call("Failed to complete task")
async def complete_task(client: ApiClient, task_id: str) -> ApiResponse:
    return await client.casa_post(f"tasks/{task_id}/complete", {})


@service_call("Failed to delete task")
async def delete_task(client: ApiClient, task_id: str) -> ApiResponse:
    return await client.casa_delete(f"tasks/{task_id}")
