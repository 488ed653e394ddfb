import os

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..config import settings
from ..deps import get_executor
from ..errors import ValidationError
from ..models import CloneRequest, CloneResponse, DirectoryListing, FileContent, FileEntry
from ..services.executor import TaskExecutor
from ..services.process import run_process

router = APIRouter()
logger = structlog.get_logger(__name__)

@router.get("/files", response_model=DirectoryListing)
async def list_files(dir: str = Query(default=""), executor: TaskExecutor = Depends(get_executor)):
    target = executor.resolve_workdir(dir)
    try:
        entries = sorted(target.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)
    return DirectoryListing(
        path=str(target),
        files=[FileEntry(name=p.name, type="directory" if p.is_dir() else "file") for p in entries],
    )

@router.get("/read", response_model=FileContent)
async def read_file(file: str = Query(default=""), executor: TaskExecutor = Depends(get_executor)):
    if not file:
        raise ValidationError("file param required")
    target = executor.resolve_workdir(file)
    try:
        content = target.read_text(encoding="utf-8")
    except OSError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)
    return FileContent(path=str(target), content=content)

@router.post("/clone", response_model=CloneResponse, response_model_exclude_none=True)
async def clone_repo(payload: CloneRequest, executor: TaskExecutor = Depends(get_executor)):
    name = payload.dir or payload.repo.rstrip("/").split("/")[-1].removesuffix(".git")
    target = executor.resolve_workdir(name)
    stderr: list[str] = []
    try:
        outcome = await run_process(
            ["git", "clone", "--depth", "1", payload.repo, str(target)],
            cwd=str(executor.workspace),
            env=os.environ,
            timeout_seconds=settings.clone_timeout_seconds,
            on_stdout=lambda _: None,
            on_stderr=stderr.append,
        )
    except OSError as exc:
        return JSONResponse(
            CloneResponse(success=False, path=str(target), error=str(exc)).model_dump(),
            status_code=500,
        )
    if outcome.exit_code != 0:
        logger.warning("clone_failed", repo=payload.repo, exit_code=outcome.exit_code)
        return JSONResponse(
            CloneResponse(success=False, path=str(target), error="".join(stderr) or "git clone timed out").model_dump(),
            status_code=500,
        )
    logger.info("clone_finished", repo=payload.repo, path=str(target))
    return CloneResponse(success=True, path=str(target))
