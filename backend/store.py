from datetime import datetime, timedelta
from typing import Optional

from models import Task


class InvalidDateError(ValueError):
    """A date id has the YYYY-MM-DD shape but is not a calendar date."""


def next_day(date_id: str) -> str:
    """Return the calendar day after date_id (YYYY-MM-DD)."""
    try:
        current = datetime.strptime(date_id, "%Y-%m-%d")
    except ValueError as e:
        raise InvalidDateError(f"{date_id} is not a calendar date") from e
    return (current + timedelta(days=1)).strftime("%Y-%m-%d")


def filter_tasks(
    tasks: list[Task],
    status: str = "all",
    priority: str = "all",
    tag: str = "",
    search: str = "",
) -> list[Task]:
    """
    Narrow a day's list for display.
    status: all | active | done; priority: all | low | med | high;
    tag matches any tag containing it; search looks in text and notes.
    All comparisons are case-insensitive.
    """
    tag = tag.lower().strip()
    search = search.lower().strip()
    result = []
    for task in tasks:
        if status == "active" and task.done:
            continue
        if status == "done" and not task.done:
            continue
        if priority != "all" and task.priority != priority:
            continue
        if tag and not any(tag in t.lower() for t in task.tags):
            continue
        if search and search not in task.text.lower() and search not in task.notes.lower():
            continue
        result.append(task)
    return result


def progress(tasks: list[Task]) -> dict:
    """Done/total counts and a whole-number percentage (0 for an empty day)."""
    total = len(tasks)
    done = sum(1 for t in tasks if t.done)
    percent = int(done * 100 / total + 0.5) if total else 0
    return {"done": done, "total": total, "percent": percent}


class TaskStore:
    """
    Tasks keyed by date id (YYYY-MM-DD), each an ordered list.
    replace_tasks is the only mutation primitive; readers always get a copy,
    so callers compute a full replacement from a fresh snapshot.
    """

    def __init__(self, initial: dict[str, list[Task]] | None = None):
        self._by_date: dict[str, list[Task]] = {
            date_id: list(tasks) for date_id, tasks in (initial or {}).items()
        }

    def get_tasks(self, date_id: str) -> list[Task]:
        return list(self._by_date.get(date_id, []))

    def replace_tasks(self, date_id: str, tasks: list[Task]) -> None:
        self._by_date[date_id] = list(tasks)

    def add_task(self, date_id: str, task: Task) -> Task:
        self.replace_tasks(date_id, [task, *self.get_tasks(date_id)])
        return task

    def toggle_task(self, date_id: str, task_id: str) -> tuple[Optional[Task], bool]:
        """
        Flip a task's done flag.
        Returns (updated task, celebrate); celebrate is True only for undone -> done.
        (None, False) when the task is not on that date.
        """
        tasks = self.get_tasks(date_id)
        for i, task in enumerate(tasks):
            if task.id == task_id:
                tasks[i] = task.model_copy(update={"done": not task.done})
                self.replace_tasks(date_id, tasks)
                return tasks[i], not task.done
        return None, False

    def move_task(self, date_id: str, task_id: str, direction: str) -> bool:
        """
        Swap a task with its neighbour ("up" or "down").
        Moving past either end leaves the list as is. False when the task is absent.
        """
        tasks = self.get_tasks(date_id)
        index = next((i for i, t in enumerate(tasks) if t.id == task_id), None)
        if index is None:
            return False
        target = index - 1 if direction == "up" else index + 1
        if 0 <= target < len(tasks):
            tasks[index], tasks[target] = tasks[target], tasks[index]
            self.replace_tasks(date_id, tasks)
        return True

    def clear_done(self, date_id: str) -> int:
        """Drop completed tasks from date_id; returns how many were removed."""
        tasks = self.get_tasks(date_id)
        remaining = [t for t in tasks if not t.done]
        self.replace_tasks(date_id, remaining)
        return len(tasks) - len(remaining)

    def carry_forward(self, date_id: str) -> int:
        """
        Prepend the unfinished tasks of date_id onto the next day's list.
        The source date is left as is. Returns how many tasks were carried,
        counted from the same snapshot that is moved.
        """
        unfinished = [t for t in self.get_tasks(date_id) if not t.done]
        if not unfinished:
            return 0
        target = next_day(date_id)
        self.replace_tasks(target, [*unfinished, *self.get_tasks(target)])
        return len(unfinished)

    def dates(self) -> list[str]:
        return sorted(self._by_date)
