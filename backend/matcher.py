from typing import Optional

from models import Task


def find_task(tasks: list[Task], query: str) -> Optional[Task]:
    """
    Find a task by text (case-insensitive).
    Exact match beats prefix match beats substring match; within a tier the
    first task in list order wins. An empty query never matches.
    """
    q = (query or "").lower().strip()
    if not q:
        return None

    for matches in (
        lambda text: text == q,
        lambda text: text.startswith(q),
        lambda text: q in text,
    ):
        for task in tasks:
            if matches(task.text.lower()):
                return task
    return None
