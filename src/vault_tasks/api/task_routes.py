"""REST API routes for task operations."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from vault_tasks.errors import RestError
from vault_tasks.provider import TaskProvider
from vault_tasks.tools.task_tools import (
    DEFAULT_STATES,
    handle_project_list,
    handle_provider_status,
    handle_task_add,
    handle_task_delete,
    handle_task_get,
    handle_task_list,
    handle_task_update,
)


class TaskAddBody(BaseModel):
    name: str
    description: Optional[str] = None
    due: Optional[str] = None
    priority: Optional[str] = None


class TaskUpdateBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    state: Optional[str] = None
    due: Optional[str] = None
    priority: Optional[str] = None


def _raise_for_error(result: dict) -> dict:
    if "error" in result:
        status = 409 if result.get("conflict") else 404
        raise HTTPException(status_code=status, detail=result["error"])
    return result


def register_task_routes(app_router: APIRouter, provider: TaskProvider) -> None:
    """Attach task REST routes that use the shared provider."""

    @app_router.get("/tasks")
    async def list_tasks(
        states: str = Query(DEFAULT_STATES),
        due: Optional[str] = Query(None),
        file_path: Optional[str] = Query(None),
        limit: int = Query(200),
    ):
        try:
            return await handle_task_list(
                provider, states=states, due=due, file_path=file_path, limit=limit
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app_router.get("/tasks/{task_id}")
    async def get_task(task_id: str):
        return _raise_for_error(await handle_task_get(provider, task_id=task_id))

    @app_router.post("/tasks", status_code=201)
    async def add_task(body: TaskAddBody):
        try:
            result = await handle_task_add(provider, **body.model_dump())
        except RestError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        if "error" in result:
            raise HTTPException(status_code=400, detail=result["error"])
        return result

    @app_router.patch("/tasks/{task_id}")
    async def update_task(task_id: str, body: TaskUpdateBody):
        try:
            result = await handle_task_update(provider, task_id=task_id, **body.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _raise_for_error(result)

    @app_router.delete("/tasks/{task_id}")
    async def delete_task(task_id: str):
        return _raise_for_error(await handle_task_delete(provider, task_id=task_id))

    @app_router.get("/projects")
    async def list_projects():
        return await handle_project_list(provider)

    @app_router.get("/status")
    async def get_status():
        return await handle_provider_status(provider)
