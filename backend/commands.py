"""Rule-based chat commands.

parse_command() turns a line into a Command (or None when the line should go
to the language model); run_command() executes it against a PlannerSession.
"""
import re
from dataclasses import dataclass, field
from typing import Optional

import structlog

from executor import complete_task, delete_task
from models import CompleteCall, DeleteCall, Reply, Task, is_date_like
from store import InvalidDateError

log = structlog.get_logger()

HELP_TEXT = (
    "Commands:\n"
    "• add <text> [time HH:MM] [priority low|med|high] [tags a,b,c] [notes ...]\n"
    "• done <text>  | delete <text>\n"
    "• list | what's left | show done\n"
    "• clear done | carry forward\n"
    "• switch <YYYY-MM-DD> | today | tomorrow\n\n"
    "Or just talk naturally and I'll update tasks for you."
)

# add-command fields; time and priority are fixed-shape and may sit anywhere,
# tags run until "notes" or the end, notes run to the end.
TIME_FIELD = re.compile(r"(?:^|\s)time\s([0-9]{2}:[0-9]{2})(?=\s|$)", re.IGNORECASE)
PRIORITY_FIELD = re.compile(r"(?:^|\s)priority\s(low|med|high)(?=\s|$)", re.IGNORECASE)
TAGS_FIELD = re.compile(r"(?:^|\s)tags\s(.+?)(?=\snotes\s|$)", re.IGNORECASE)
NOTES_FIELD = re.compile(r"(?:^|\s)notes\s(.+)$", re.IGNORECASE)

GREETING = re.compile(r"^(hi|hello|hey)\b", re.IGNORECASE)

LIST_PHRASES = ("list", "what's left", "whats left", "what’s left")


@dataclass
class Command:
    name: str
    args: dict = field(default_factory=dict)


def normalize(raw: str) -> str:
    return " ".join((raw or "").split())


def _take(pattern: re.Pattern, text: str) -> tuple[Optional[str], str]:
    """Return (captured value, text with the match blanked out)."""
    match = pattern.search(text)
    if not match:
        return None, text
    return match.group(1), text[:match.start()] + " " + text[match.end():]


def parse_add(rest: str) -> Command:
    time, rest = _take(TIME_FIELD, rest)
    priority, rest = _take(PRIORITY_FIELD, rest)
    tags, rest = _take(TAGS_FIELD, rest)
    notes, rest = _take(NOTES_FIELD, rest)

    return Command("add", {
        "text": normalize(rest),
        "time": time or "",
        "priority": (priority or "med").lower(),
        "tags": [t.strip() for t in tags.split(",") if t.strip()] if tags else [],
        "notes": (notes or "").strip(),
    })


def parse_command(raw: str) -> Optional[Command]:
    """Match a line against the fixed command set; first match wins."""
    text = normalize(raw)
    if not text:
        return None
    lower = text.lower()

    if lower in ("help", "commands"):
        return Command("help")
    if lower in LIST_PHRASES:
        return Command("list", {"pending_only": "left" in lower})
    if lower == "show done":
        return Command("show_done")
    if lower == "clear done":
        return Command("clear_done")
    if lower == "carry forward":
        return Command("carry_forward")
    if lower.startswith("switch "):
        return Command("switch", {"date": text[7:].strip()})
    if lower in ("today", "tomorrow"):
        return Command(lower)
    if lower.startswith("done "):
        return Command("done", {"query": text[5:].strip()})
    if lower.startswith("delete "):
        return Command("delete", {"query": text[7:].strip()})
    if lower.startswith("add "):
        return parse_add(text[4:].strip())
    if GREETING.match(text):
        return Command("greeting")
    return None


def format_task(task: Task) -> str:
    bits = []
    if task.time:
        bits.append(task.time)
    bits.append(f"prio:{task.priority}")
    if task.tags:
        bits.append("#" + " #".join(task.tags))
    if task.notes:
        bits.append("notes")
    return f"{'[x]' if task.done else '[ ]'} {task.text} · " + " · ".join(bits)


def format_list(tasks: list[Task]) -> str:
    if not tasks:
        return "No tasks."
    return "\n".join(format_task(t) for t in tasks)


# Runners. Each takes the session plus the command's args and returns one Reply.

def _help(session) -> Reply:
    return Reply(text=HELP_TEXT)


def _list(session, pending_only: bool) -> Reply:
    tasks = session.tasks()
    if pending_only:
        tasks = [t for t in tasks if not t.done]
    return Reply(text=format_list(tasks))


def _show_done(session) -> Reply:
    return Reply(text=format_list([t for t in session.tasks() if t.done]))


def _clear_done(session) -> Reply:
    removed = session.store.clear_done(session.date_id)
    return Reply(text=f"Cleared {removed} completed task(s).")


def _carry_forward(session) -> Reply:
    try:
        count = session.store.carry_forward(session.date_id)
    except InvalidDateError:
        return Reply(text=f"Can't carry forward from {session.date_id}: not a calendar date.")
    return Reply(text=f"Carried forward {count} unfinished task(s) to the next day.")


def _switch(session, date: str) -> Reply:
    if not is_date_like(date):
        return Reply(text="Please provide a date as YYYY-MM-DD, e.g., switch 2025-09-28")
    session.switch_date(date)
    return Reply(text=f"Switched to {date}.")


def _today(session) -> Reply:
    date_id = session.today()
    session.switch_date(date_id)
    return Reply(text=f"Switched to today ({date_id}).")


def _tomorrow(session) -> Reply:
    date_id = session.today(offset_days=1)
    session.switch_date(date_id)
    return Reply(text=f"Switched to tomorrow ({date_id}).")


def _done(session, query: str) -> Reply:
    result = complete_task(CompleteCall(action="complete", match={"text": query}), session.tasks())
    session.commit(result)
    return Reply(text=result.message, celebrate=result.celebrate)


def _delete(session, query: str) -> Reply:
    result = delete_task(DeleteCall(action="delete", match={"text": query}), session.tasks())
    session.commit(result)
    return Reply(text=result.message)


def _add(session, text: str, time: str, priority: str, tags: list[str], notes: str) -> Reply:
    if not text:
        return Reply(text='Please include task text, e.g., "add buy milk time 17:00 priority high tags groceries"')
    task = Task.new(text=text, time=time, priority=priority, tags=tags, notes=notes)
    session.store.add_task(session.date_id, task)

    reply = f"Added: {task.text}"
    if task.time:
        reply += f" (at {task.time})"
    if task.tags:
        reply += " #" + " #".join(task.tags)
    return Reply(text=reply)


def _greeting(session) -> Reply:
    return Reply(text=f'Hello! Need to plan something for {session.date_id}? Try "add ..." or type "help".')


RUNNERS = {
    "help": _help,
    "list": _list,
    "show_done": _show_done,
    "clear_done": _clear_done,
    "carry_forward": _carry_forward,
    "switch": _switch,
    "today": _today,
    "tomorrow": _tomorrow,
    "done": _done,
    "delete": _delete,
    "add": _add,
    "greeting": _greeting,
}


def run_command(command: Command, session) -> Reply:
    log.info("command_matched", command=command.name, date=session.date_id)
    return RUNNERS[command.name](session, **command.args)
