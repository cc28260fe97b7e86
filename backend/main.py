from contextlib import asynccontextmanager
from typing import Literal, Optional

import structlog
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from bridge import CompletionBridge
from config import load_settings
from logging_config import setup_logging
from models import DATE_PATTERN, ChatRequest, DateSwitch, MoveRequest, Task, TaskCreate, TaskUpdate
from orchestrator import PlannerSession
from store import InvalidDateError, TaskStore, filter_tasks, next_day, progress

log = structlog.get_logger()

settings = load_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings)
    app.state.session = PlannerSession(
        TaskStore(),
        CompletionBridge(settings),
        history_turns=settings.history_turns,
        summary_limit=settings.summary_limit,
    )
    log.info("planner_started", date=app.state.session.date_id, model=settings.model)
    yield
    # Shutdown (nothing to do)

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_session(request: Request) -> PlannerSession:
    return request.app.state.session


def find_by_id(tasks: list[Task], task_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise HTTPException(status_code=404, detail="Task not found")


@app.get("/tasks")
def get_tasks(
    request: Request,
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
    status: Literal["all", "active", "done"] = "all",
    priority: Literal["all", "low", "med", "high"] = "all",
    tag: str = "",
    q: str = "",
) -> list[Task]:
    """List a day's tasks, optionally filtered by status, priority, tag and search text."""
    session = get_session(request)
    tasks = session.store.get_tasks(date or session.date_id)
    return filter_tasks(tasks, status=status, priority=priority, tag=tag, search=q)


@app.get("/tasks/stats")
def get_task_stats(request: Request, date: Optional[str] = Query(default=None, pattern=DATE_PATTERN)) -> dict:
    """Done/total progress for a day."""
    session = get_session(request)
    return progress(session.store.get_tasks(date or session.date_id))


@app.post("/tasks/clear-done")
def clear_done(request: Request, date: Optional[str] = Query(default=None, pattern=DATE_PATTERN)) -> dict:
    session = get_session(request)
    date_id = date or session.date_id
    cleared = session.store.clear_done(date_id)
    return {"cleared": cleared, "tasks": session.store.get_tasks(date_id)}


@app.post("/tasks/carry-forward")
def carry_forward(request: Request, date: Optional[str] = Query(default=None, pattern=DATE_PATTERN)) -> dict:
    """Copy unfinished tasks to the front of the next day's list."""
    session = get_session(request)
    date_id = date or session.date_id
    try:
        carried = session.store.carry_forward(date_id)
        target = next_day(date_id)
    except InvalidDateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"carried": carried, "date": target}


@app.post("/tasks")
def create_task(request: Request, task_data: TaskCreate) -> Task:
    session = get_session(request)
    task = Task.new(
        text=task_data.text,
        time=task_data.time,
        priority=task_data.priority,
        tags=[t.strip() for t in task_data.tags if t.strip()],
        notes=task_data.notes,
        done=task_data.done,
    )
    return session.store.add_task(task_data.date or session.date_id, task)


@app.patch("/tasks/{task_id}")
def update_task(
    request: Request,
    task_id: str,
    task_data: TaskUpdate,
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
) -> Task:
    session = get_session(request)
    date_id = date or session.date_id
    tasks = session.store.get_tasks(date_id)
    updated = find_by_id(tasks, task_id).model_copy(update=task_data.model_dump(exclude_none=True))
    session.store.replace_tasks(date_id, [updated if t.id == task_id else t for t in tasks])
    return updated


@app.delete("/tasks/{task_id}")
def delete_task(
    request: Request,
    task_id: str,
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
) -> dict:
    session = get_session(request)
    date_id = date or session.date_id
    tasks = session.store.get_tasks(date_id)
    find_by_id(tasks, task_id)
    session.store.replace_tasks(date_id, [t for t in tasks if t.id != task_id])
    return {"status": "deleted"}


@app.post("/tasks/{task_id}/toggle")
def toggle_task(
    request: Request,
    task_id: str,
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
) -> dict:
    """Flip done; celebrate is set when the task goes from undone to done."""
    session = get_session(request)
    task, celebrate = session.store.toggle_task(date or session.date_id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"task": task, "celebrate": celebrate}


@app.post("/tasks/{task_id}/move")
def move_task(
    request: Request,
    task_id: str,
    body: MoveRequest,
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
) -> list[Task]:
    session = get_session(request)
    date_id = date or session.date_id
    if not session.store.move_task(date_id, task_id, body.direction):
        raise HTTPException(status_code=404, detail="Task not found")
    return session.store.get_tasks(date_id)


@app.get("/date")
def get_date(request: Request) -> dict:
    return {"date": get_session(request).date_id}


@app.put("/date")
def put_date(request: Request, body: DateSwitch) -> dict:
    session = get_session(request)
    session.switch_date(body.date)
    return {"date": session.date_id}


@app.get("/conversation")
def get_conversation_endpoint(request: Request) -> list[dict]:
    """Get the chat transcript, oldest first."""
    return [entry.model_dump() for entry in get_session(request).transcript.entries]


@app.post("/chat")
async def chat(request: Request, chat_request: ChatRequest) -> dict:
    """Run one user line through the command parser or the model fallback."""
    session = get_session(request)
    reply = await session.submit(chat_request.message)
    if reply is None:
        raise HTTPException(status_code=422, detail="Message is empty")

    return {
        "response": reply.text,
        "celebrate": reply.celebrate,
        "date": session.date_id,
        "tasks": [t.model_dump() for t in session.tasks()],
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
