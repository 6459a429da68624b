"""FastAPI application factory for the vault tasks REST API."""

from fastapi import APIRouter, FastAPI

from vault_tasks.api.task_routes import register_task_routes
from vault_tasks.provider import TaskProvider


def create_app(provider: TaskProvider) -> FastAPI:
    """Build and return a FastAPI app wired to the given provider."""
    app = FastAPI(title="vault-tasks", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_task_routes(api, provider)
    app.include_router(api)

    return app
