from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..deps import get_executor
from ..models import RunRequest, RunSyncRequest, TaskAccepted, TaskList, HealthResponse
from ..services.executor import TaskExecutor

router = APIRouter()

@router.post("/run", status_code=202, response_model=TaskAccepted)
async def run_task(payload: RunRequest, executor: TaskExecutor = Depends(get_executor)):
    rec = executor.submit(
        payload.prompt,
        workdir=payload.workdir,
        task_id=payload.agent_id,
        api_key=payload.api_key,
    )
    return TaskAccepted(taskId=rec.id, status=rec.status.value)

@router.get("/status/{task_id}")
async def get_status(task_id: str, executor: TaskExecutor = Depends(get_executor)):
    return JSONResponse(executor.status(task_id))

@router.post("/cancel/{task_id}")
async def cancel_task(task_id: str, executor: TaskExecutor = Depends(get_executor)):
    return JSONResponse(await executor.cancel(task_id))

@router.post("/run-sync")
async def run_sync(payload: RunSyncRequest, executor: TaskExecutor = Depends(get_executor)):
    return JSONResponse(await executor.run_sync(payload.prompt, workdir=payload.workdir, api_key=payload.api_key))

@router.get("/tasks", response_model=TaskList)
async def list_tasks(executor: TaskExecutor = Depends(get_executor)):
    return {"tasks": executor.list()}

@router.get("/health", response_model=HealthResponse)
@router.get("/ping", response_model=HealthResponse)
async def health(executor: TaskExecutor = Depends(get_executor)):
    return HealthResponse(status="ok", workspace=str(executor.workspace), tasks=len(executor.store))
