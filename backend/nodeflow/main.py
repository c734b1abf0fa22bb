"""FastAPI application: routes, the run-state WebSocket and startup wiring."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import router
from .api.websocket import manager
from .config import settings
from .engine.errors import AlreadyRunningError, NodeflowError
from .logging_setup import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    # Importing the package registers every built-in node type
    from . import nodes  # noqa: F401
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(NodeflowError)
async def nodeflow_error_handler(request: Request, exc: NodeflowError):
    status = 409 if isinstance(exc, AlreadyRunningError) else 400
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}


@app.websocket("/ws/runs/{session_id}")
async def run_updates(websocket: WebSocket, session_id: str):
    """Push node_state and execution_complete events for runs started with this session_id."""
    await manager.connect(session_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(session_id, websocket)
