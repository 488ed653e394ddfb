from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .deps import get_executor
from .errors import ExecutorError
from .logging_setup import configure_logging
from .routers import tasks, workspace

configure_logging(level=settings.log_level, json_logs=settings.log_json)
logger = structlog.get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    executor = get_executor()
    executor.workspace.mkdir(parents=True, exist_ok=True)
    logger.info("sandbox_started", port=settings.port, workspace=str(executor.workspace))
    yield
    await executor.shutdown()

app = FastAPI(title="Agent Sandbox", version="1.0.0", lifespan=lifespan)
app.include_router(tasks.router)
app.include_router(workspace.router)

@app.exception_handler(ExecutorError)
async def executor_error_handler(request: Request, exc: ExecutorError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def bad_request_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "invalid request body"}, status_code=400)

def run():
    import uvicorn

    uvicorn.run("sandbox.main:app", host="0.0.0.0", port=settings.port)
