"""Validate tool-call payloads and apply them to a task list.

Nothing here touches a store: every function takes the current list and
returns an ActionResult carrying the replacement list (or a date switch) for
the caller to commit.
"""
from typing import Any

import structlog
from pydantic import ValidationError

from matcher import find_task
from models import (
    ACTIONS,
    TOOL_CALL_ADAPTER,
    ActionResult,
    CompleteCall,
    CreateCall,
    DeleteCall,
    SwitchDateCall,
    Task,
    UncompleteCall,
    UpdateCall,
    is_date_like,
)

log = structlog.get_logger()


def _replace(tasks: list[Task], updated: Task) -> list[Task]:
    return [updated if t.id == updated.id else t for t in tasks]


def _resolve(verb: str, query: str, tasks: list[Task]) -> tuple[Task | None, ActionResult | None]:
    """Find the task for a match.text query, or the failure result explaining why not."""
    if not query:
        return None, ActionResult(ok=False, message=f'{verb} failed: "match.text" is required.')
    hit = find_task(tasks, query)
    if hit is None:
        return None, ActionResult(ok=False, message=f'{verb} failed: No task found for "{query}".')
    return hit, None


def create_task(call: CreateCall, tasks: list[Task]) -> ActionResult:
    fields = call.task
    if not fields.text:
        return ActionResult(ok=False, message='Create failed: "task.text" is required.')
    task = Task.new(
        text=fields.text,
        time=fields.time or "",
        priority=fields.priority or "med",
        tags=fields.tags or [],
        notes=fields.notes or "",
        done=bool(fields.done),
    )
    return ActionResult(
        ok=True,
        message=call.message or f"Added: {task.text}",
        tasks=[task, *tasks],
        celebrate=task.done,
    )


def update_task(call: UpdateCall, tasks: list[Task]) -> ActionResult:
    hit, failure = _resolve("Update", call.match.text, tasks)
    if failure:
        return failure

    # Only fields that survived sanitizing are applied; a blank title is ignored.
    patch = call.changes.model_dump(exclude_none=True)
    if patch.get("text") == "":
        del patch["text"]

    updated = hit.model_copy(update=patch)
    return ActionResult(
        ok=True,
        message=call.message or f"Updated: {hit.text}",
        tasks=_replace(tasks, updated),
        celebrate=patch.get("done") is True,
    )


def delete_task(call: DeleteCall, tasks: list[Task]) -> ActionResult:
    hit, failure = _resolve("Delete", call.match.text, tasks)
    if failure:
        return failure
    return ActionResult(
        ok=True,
        message=call.message or f"Deleted: {hit.text}",
        tasks=[t for t in tasks if t.id != hit.id],
    )


def complete_task(call: CompleteCall, tasks: list[Task]) -> ActionResult:
    hit, failure = _resolve("Complete", call.match.text, tasks)
    if failure:
        return failure
    if hit.done:
        return ActionResult(ok=True, message=f"Already done: {hit.text}")
    return ActionResult(
        ok=True,
        message=call.message or f"Marked done: {hit.text}",
        tasks=_replace(tasks, hit.model_copy(update={"done": True})),
        celebrate=True,
    )


def uncomplete_task(call: UncompleteCall, tasks: list[Task]) -> ActionResult:
    hit, failure = _resolve("Uncomplete", call.match.text, tasks)
    if failure:
        return failure
    if not hit.done:
        return ActionResult(ok=True, message=f"Already active: {hit.text}")
    return ActionResult(
        ok=True,
        message=call.message or f"Marked not done: {hit.text}",
        tasks=_replace(tasks, hit.model_copy(update={"done": False})),
    )


def switch_date(call: SwitchDateCall, tasks: list[Task]) -> ActionResult:
    if not is_date_like(call.date):
        return ActionResult(ok=False, message='Switch failed: "date" must be YYYY-MM-DD.')
    return ActionResult(ok=True, message=call.message or f"Switched to {call.date}.", date=call.date)


HANDLERS = {
    CreateCall: create_task,
    UpdateCall: update_task,
    DeleteCall: delete_task,
    CompleteCall: complete_task,
    UncompleteCall: uncomplete_task,
    SwitchDateCall: switch_date,
}


def apply_tool_call(payload: Any, tasks: list[Task]) -> ActionResult:
    """
    Validate an untrusted payload and apply it to tasks.
    Failures come back as ok=False with a user-facing message and no task list;
    the input list is never modified.
    """
    if not isinstance(payload, dict) or not payload.get("action"):
        return ActionResult(ok=False, message="Invalid tool payload.")

    action = str(payload["action"])
    if action not in ACTIONS:
        log.info("tool_call_rejected", action=action, reason="unknown_action")
        return ActionResult(ok=False, message=f"Unknown action: {action}")

    try:
        call = TOOL_CALL_ADAPTER.validate_python(payload)
    except ValidationError as e:
        log.warning("tool_call_rejected", action=action, reason="validation", errors=e.error_count())
        return ActionResult(ok=False, message="Invalid tool payload.")

    result = HANDLERS[type(call)](call, list(tasks))
    log.info("tool_call_applied", action=action, ok=result.ok)
    return result
