# System prompt for the day-planning assistant
# The tool spec is sent with every fallback request so the model can answer
# with a JSON action when the user wants tasks changed.
SYSTEM_PROMPT = """You are Planner Bot. Be brief and helpful.
Suggest priorities, timeboxing, and next actions for a day plan.
Answer in plain text. Avoid very long lists unless asked."""

TOOL_SPEC = """If the user's request implies changing tasks, respond with a single JSON object
that matches one of these shapes exactly (no extra keys):

- {"action": "create", "task": {"text": string, "time"?: "HH:MM", "priority"?: "low" | "med" | "high", "tags"?: [string], "notes"?: string, "done"?: boolean}, "message"?: string}
- {"action": "update", "match": {"text": string}, "changes": {"text"?: string, "time"?: "HH:MM", "priority"?: "low" | "med" | "high", "tags"?: [string], "notes"?: string, "done"?: boolean}, "message"?: string}
- {"action": "delete", "match": {"text": string}, "message"?: string}
- {"action": "complete", "match": {"text": string}, "message"?: string}
- {"action": "uncomplete", "match": {"text": string}, "message"?: string}
- {"action": "switch_date", "date": "YYYY-MM-DD", "message"?: string}

Rules:
- When taking an action, put ONLY the JSON in a fenced block like:
  ```json
  { ... }
  ```
- "match.text" is the text of an existing task from the list above (a prefix or fragment is fine).
- Convert times to 24-hour HH:MM, e.g. "5:30pm" -> "17:30".
- Keep "message" short and practical (one or two lines).
- If no action is needed, do NOT produce JSON, just reply normally."""

CONTEXT_TEMPLATE = """Date: {date}
Tasks:
{summary}

User: {message}

Developer Tool Spec:
{tool_spec}
"""


def summarize_task(task) -> str:
    line = f"{'[x]' if task.done else '[ ]'} {task.text}"
    if task.time:
        line += f" @{task.time}"
    if task.priority:
        line += f" [{task.priority}]"
    return line


def build_context(date_id: str, tasks: list, message: str, limit: int = 10) -> str:
    """Context block for one fallback request: date, first `limit` tasks, the user line, the tool spec."""
    summary = "\n".join(summarize_task(t) for t in tasks[:limit])
    return CONTEXT_TEMPLATE.format(
        date=date_id,
        summary=summary or "(none)",
        message=message,
        tool_spec=TOOL_SPEC,
    )
