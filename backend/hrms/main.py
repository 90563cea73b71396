"""FastAPI application entry point."""
import jwt
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .auth import router as auth_router
from .config import get_settings
from .database import AsyncSessionLocal, create_schema
from .dependencies import decode_access_token
from .exceptions import DomainError
from .logging_config import configure_logging, get_logger
from .routers.employees import router as employees_router
from .routers.leaves import router as leaves_router
from .routers.notifications import router as notifications_router
from .routers.performance import router as performance_router
from .routers.timesheets import router as timesheets_router
from .routers.users import router as users_router
from .seed import seed_demo_users
from .websocket_manager import user_room, ws_manager

settings = get_settings()
configure_logging(settings.log_level, settings.log_json)
logger = get_logger(__name__)

app = FastAPI(title="HRMS Backend", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(employees_router)
app.include_router(leaves_router)
app.include_router(timesheets_router)
app.include_router(performance_router)
app.include_router(notifications_router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            # Drop the "body"/"query" prefix FastAPI adds to locations
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"status": "error", "errors": errors},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    """Ensure database tables exist and optionally seed demo accounts."""

    await create_schema()

    if settings.seed_demo_users:
        async with AsyncSessionLocal() as session:
            await seed_demo_users(session)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple readiness probe for uptime checks."""

    return {"status": "ok"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str) -> None:
    """Authenticate clients and subscribe them to their own event room."""

    try:
        token_data = decode_access_token(token)
    except (jwt.PyJWTError, PydanticValidationError):
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="Invalid or expired token",
        )
        return

    room = user_room(token_data.id)
    await ws_manager.connect(room, websocket)
    try:
        while True:
            # Keep the connection alive and listen for optional client pings
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await ws_manager.disconnect(room, websocket)
