import platform
import sys
import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.helpers.config import CONFIG
from app.helpers.config_models.state_store import ModeEnum
from app.helpers.http import close_aiohttp_session
from app.helpers.logging import logger
from app.helpers.monitoring import start_as_current_span
from app.helpers.todos import (
    add_todo,
    clear_completed,
    delete_todo,
    get_stats,
    list_todos,
    toggle_todo,
)
from app.models.error import (
    ErrorInnerModel,
    ErrorModel,
    TodoNotFoundError,
    TodoValidationError,
)
from app.models.readiness import (
    HealthDaprModel,
    HealthEnvironmentModel,
    HealthModel,
    ReadinessChecksModel,
    ReadinessEnum,
    ReadinessModel,
    ReadinessStatusEnum,
)
from app.models.stats import StatsModel
from app.models.todo import TodoCreateModel, TodoModel
from app.persistence.store import TodoStore

# First log
logger.info(
    "todo-state-api v%s",
    CONFIG.version,
)
logger.info("State store enabled: %s", CONFIG.state_store.enabled)
logger.info("CORS origins: %s", ", ".join(CONFIG.api.cors_origins))

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    yield

    # Close HTTP session
    logger.info("Shutting down")
    await close_aiohttp_session()


def get_store() -> TodoStore:
    """
    Get the todo store, shared by all requests of the process.
    """
    return CONFIG.state_store.instance


StoreDep = Annotated[TodoStore, Depends(get_store)]

# FastAPI
api = FastAPI(
    description="Create, list, toggle and delete todos. Backed by a Dapr state store, with an in-memory fallback.",
    lifespan=lifespan,
    title="todo-state-api",
    version=CONFIG.version,
)
api.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_headers=["Content-Type", "Authorization"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_origins=CONFIG.api.cors_origins,
)


@api.get("/health")
@start_as_current_span("health_liveness_get")
async def health_liveness_get(store: StoreDep) -> HealthModel:
    """
    Check if the service is running.

    No parameters are expected. The state store is not contacted.

    Returns a 200 OK with the process metadata.
    """
    dapr = CONFIG.state_store.dapr if CONFIG.state_store.mode == ModeEnum.DAPR else None
    return HealthModel(
        dapr=HealthDaprModel(
            enabled=store.backend_enabled,
            port=dapr.http_port if dapr else None,
        ),
        environment=HealthEnvironmentModel(
            platform=sys.platform,
            python_version=platform.python_version(),
            uptime=time.monotonic() - _started_at,
        ),
        version=CONFIG.version,
    )


@api.get(
    "/ready",
    status_code=HTTPStatus.OK,
)
@start_as_current_span("health_readiness_get")
async def health_readiness_get(store: StoreDep) -> JSONResponse:
    """
    Check if the service is ready to serve requests.

    No parameters are expected. The todo collection is read once.

    Returns a 200 OK if the service is ready to serve requests. If the read fails unexpectedly, it returns a 503 Service Unavailable.
    """
    try:
        await store.read()
    except Exception as e:
        logger.exception("Readiness read failed")
        readiness = ReadinessModel(
            error=str(e),
            status=ReadinessStatusEnum.NOT_READY,
        )
        return JSONResponse(
            content=readiness.model_dump(by_alias=True, exclude_none=True, mode="json"),
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        )

    readiness = ReadinessModel(
        checks=ReadinessChecksModel(
            dapr=ReadinessEnum.OK if store.backend_enabled else ReadinessEnum.FALLBACK,
            data_access=ReadinessEnum.OK,
        ),
        status=ReadinessStatusEnum.READY,
    )
    return JSONResponse(
        content=readiness.model_dump(by_alias=True, exclude_none=True, mode="json"),
        status_code=HTTPStatus.OK,
    )


@api.get("/api/todos")
@start_as_current_span("todo_list_get")
async def todo_list_get(store: StoreDep) -> list[TodoModel]:
    """
    REST API to list all todos.

    No parameters are expected.

    Returns the list of `TodoModel`, in insertion order.
    """
    return await list_todos(store)


@api.post(
    "/api/todos",
    status_code=HTTPStatus.CREATED,
)
@start_as_current_span("todo_post")
async def todo_post(store: StoreDep, body: TodoCreateModel) -> TodoModel:
    """
    REST API to create a todo.

    Required body parameter is a JSON object `TodoCreateModel`, with a non-blank `text`.

    Returns the created `TodoModel`.
    """
    try:
        return await add_todo(store, body.text)
    except TodoValidationError as e:
        raise HTTPException(
            detail=str(e),
            status_code=HTTPStatus.BAD_REQUEST,
        ) from e


@api.put("/api/todos/{todo_id}/toggle")
@start_as_current_span("todo_toggle_put")
async def todo_toggle_put(store: StoreDep, todo_id: str) -> TodoModel:
    """
    REST API to flip the completion status of a todo.

    Returns the updated `TodoModel`.
    """
    try:
        return await toggle_todo(store, todo_id)
    except TodoNotFoundError as e:
        raise HTTPException(
            detail=str(e),
            status_code=HTTPStatus.NOT_FOUND,
        ) from e


@api.delete(
    "/api/todos/{todo_id}",
    status_code=HTTPStatus.NO_CONTENT,
)
@start_as_current_span("todo_delete")
async def todo_delete(store: StoreDep, todo_id: str) -> Response:
    """
    REST API to delete a todo.

    Returns a 204 No Content.
    """
    try:
        await delete_todo(store, todo_id)
    except TodoNotFoundError as e:
        raise HTTPException(
            detail=str(e),
            status_code=HTTPStatus.NOT_FOUND,
        ) from e
    return Response(status_code=HTTPStatus.NO_CONTENT)


@api.post("/api/todos/clear-completed")
@start_as_current_span("todo_clear_completed_post")
async def todo_clear_completed_post(store: StoreDep) -> dict[str, int]:
    """
    REST API to delete all completed todos.

    Returns the number of deleted todos, as `{"deleted": n}`.
    """
    return {"deleted": await clear_completed(store)}


@api.get("/api/stats")
@start_as_current_span("stats_get")
async def stats_get(store: StoreDep) -> StatsModel:
    """
    REST API to summarize the todos.

    Returns a `StatsModel`, counts plus service metadata.
    """
    return await get_stats(store)


@api.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request,  # noqa: ARG001
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Handle HTTP exceptions and return the error in a standard format.
    """
    return _standard_error(
        message=exc.detail,
        status_code=HTTPStatus(exc.status_code),
    )


@api.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,  # noqa: ARG001
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation exceptions and return the error in a standard format.
    """
    return _standard_error(
        details=[str(x) for x in exc.errors()],
        message="Validation error",
        status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
    )


@api.exception_handler(Exception)
async def unexpected_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Handle any other exception, without exposing internals outside of development.
    """
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return _standard_error(
        details=[str(exc)] if CONFIG.development else [],
        message="Internal server error",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    )


def _standard_error(
    message: str,
    status_code,
    details: list[str] | None = None,
) -> JSONResponse:
    """
    Generate a standard error response.
    """
    model = ErrorModel(
        error=ErrorInnerModel(
            details=details or [],
            message=message,
        )
    )
    return JSONResponse(
        content=model.model_dump(mode="json"),
        status_code=status_code,
    )
