import redis
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .logging_setup import configure_logging
from .routers import agents

configure_logging(level=settings.log_level, json_logs=settings.log_json)
logger = structlog.get_logger(__name__)

app = FastAPI(title="Agent Control Plane", version="1.0.0")
app.include_router(agents.router)

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = "Not found" if exc.status_code == 404 else exc.detail
    return JSONResponse({"success": False, "error": error}, status_code=exc.status_code)

@app.exception_handler(redis.RedisError)
async def log_store_error_handler(request: Request, exc: redis.RedisError):
    logger.error("log_store_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse({"success": False, "error": f"Log store unavailable: {exc}"}, status_code=503)

def run():
    import uvicorn

    uvicorn.run("controlplane.main:app", host="0.0.0.0", port=settings.port)
