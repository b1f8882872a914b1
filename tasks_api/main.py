"""FastAPI application entry point."""

from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Path, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from tasks_api import __version__
from tasks_api.config import Settings
from tasks_api.errors import ConflictError, DataIntegrityError
from tasks_api.logging_config import get_logger, setup_logging
from tasks_api.mapper import to_draft, to_response, to_responses
from tasks_api.models import DatabaseHealth, ErrorResponse, HealthResponse, TaskRequest, TaskResponse
from tasks_api.repository import TaskRepository
from tasks_api.service import TaskService
from tasks_api.sqlite_store import SqliteTaskStore
from tasks_api.store import InMemoryTaskStore, TaskStore

logger = get_logger(__name__)

TASK_NOT_FOUND = "Task not found"


def build_store(settings: Settings) -> TaskStore:
    if settings.store == "memory":
        return InMemoryTaskStore()
    return SqliteTaskStore(settings.database_path)


def get_service(request: Request) -> TaskService:
    return request.app.state.service


ServiceDep = Annotated[TaskService, Depends(get_service)]
TaskId = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)


def _error(status_code: int, error: str, message: str, field: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, field=field)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, "Conflict", exc.message, exc.field)


async def data_integrity_handler(request: Request, exc: DataIntegrityError) -> JSONResponse:
    logger.error("Constraint violation on %s %s: %s", request.method, request.url.path, exc.detail)
    return _error(
        status.HTTP_400_BAD_REQUEST,
        "Data Integrity Error",
        "A database constraint was violated",
        "unknown",
    )


async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report path parameter mismatches as one error, body problems per field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        if loc and loc[0] == "path":
            name = str(loc[-1])
            return _error(
                status.HTTP_400_BAD_REQUEST,
                "Invalid Parameter",
                f"Invalid {name}: '{err.get('input')}'. Expected a valid integer.",
                name,
            )
        field = str(loc[1]) if len(loc) > 1 else str(loc[0]) if loc else "body"
        if err.get("type") == "value_error":
            message = str(err["ctx"]["error"])
        else:
            message = err.get("msg", "Invalid value")
        errors.setdefault(field, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=errors)


def create_app(settings: Settings | None = None, store: TaskStore | None = None) -> FastAPI:
    """Build the API around ``store``, or around the store ``settings`` selects."""
    settings = settings or Settings.from_env()
    store = store if store is not None else build_store(settings)

    app = FastAPI(
        title="Task Manager API",
        description="Create, list, update and delete tasks with unique titles.",
        version=__version__,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.service = TaskService(TaskRepository(store))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(DataIntegrityError, data_integrity_handler)
    app.add_exception_handler(RequestValidationError, validation_handler)

    @app.get("/api/health", response_model=HealthResponse, tags=["System"])
    def health_check(response: Response) -> HealthResponse:
        """Health check endpoint. Answers 503 when the store is unreachable."""
        health = HealthResponse(service=settings.app_name)
        try:
            store.ping()
        except Exception as exc:
            logger.warning("Health check: store unreachable: %s", exc)
            health.status = "degraded"
            health.database = DatabaseHealth(status="unhealthy", connection="failed", error=str(exc))
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return health

    @app.get(
        "/api/tasks",
        response_model=list[TaskResponse],
        response_model_exclude_unset=True,
        tags=["Tasks"],
    )
    def list_tasks(service: ServiceDep) -> list[TaskResponse]:
        """List all tasks."""
        return to_responses(service.list_all())

    @app.post(
        "/api/tasks",
        response_model=TaskResponse,
        response_model_exclude_unset=True,
        status_code=status.HTTP_201_CREATED,
        tags=["Tasks"],
        responses={409: {"model": ErrorResponse}},
    )
    def create_task(data: TaskRequest, service: ServiceDep) -> TaskResponse:
        """Create a new task."""
        return to_response(service.create(to_draft(data)))

    @app.get(
        "/api/tasks/{task_id}",
        response_model=TaskResponse,
        response_model_exclude_unset=True,
        tags=["Tasks"],
    )
    def get_task(task_id: TaskId, service: ServiceDep) -> TaskResponse:
        """Get a specific task by ID."""
        task = service.get_by_id(task_id)
        if task is None:
            raise _not_found()
        return to_response(task)

    @app.put(
        "/api/tasks/{task_id}",
        response_model=TaskResponse,
        response_model_exclude_unset=True,
        tags=["Tasks"],
        responses={409: {"model": ErrorResponse}},
    )
    def update_task(task_id: TaskId, data: TaskRequest, service: ServiceDep) -> TaskResponse:
        """Replace the title, description and status of a task."""
        task = service.update(task_id, to_draft(data))
        if task is None:
            raise _not_found()
        return to_response(task)

    @app.delete(
        "/api/tasks/{task_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Tasks"],
    )
    def delete_task(task_id: TaskId, service: ServiceDep) -> None:
        """Delete a task."""
        if not service.delete(task_id):
            raise _not_found()

    return app


def run() -> None:
    """Start the API with uvicorn using settings from the environment."""
    import uvicorn

    settings = Settings.from_env()
    setup_logging(settings)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
