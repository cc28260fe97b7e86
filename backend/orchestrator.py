from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from bridge import BridgeError
from commands import parse_command, run_command
from executor import apply_tool_call
from extractor import extract_tool_call
from models import ActionResult, Reply, Task, TranscriptEntry
from prompts import build_context
from store import TaskStore

log = structlog.get_logger()

WELCOME = (
    "Hi! I'm your planner bot. Try:\n"
    "• add buy milk time 17:00 priority high tags groceries,errand\n"
    "• done buy milk / delete buy milk\n"
    "• list / what's left / show done\n"
    "• clear done / carry forward\n"
    "• switch 2025-09-28 / today / tomorrow\n"
    "• help\n\n"
    'You can also talk naturally, e.g., "Add 30-min review at 17:30, high priority".'
)


class Transcript:
    """Append-only list of chat entries."""

    def __init__(self, entries: Optional[list[TranscriptEntry]] = None):
        self._entries: list[TranscriptEntry] = list(entries or [])

    def append(self, role: str, text: str) -> TranscriptEntry:
        entry = TranscriptEntry(role=role, text=text)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def recent(self, n: int) -> list[TranscriptEntry]:
        return self._entries[-n:] if n > 0 else []

    def __len__(self) -> int:
        return len(self._entries)


class PlannerSession:
    """
    One chat session over a TaskStore.
    Deterministic commands run synchronously; anything else goes to the
    completion bridge, whose reply may carry a JSON tool-call to apply.
    """

    def __init__(
        self,
        store: TaskStore,
        bridge,
        date_id: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
        history_turns: int = 6,
        summary_limit: int = 10,
    ):
        self.store = store
        self.bridge = bridge
        self.clock = clock
        self.date_id = date_id or self.today()
        self.history_turns = history_turns
        self.summary_limit = summary_limit
        self.transcript = Transcript()
        self.transcript.append("assistant", WELCOME)

    def today(self, offset_days: int = 0) -> str:
        return (self.clock() + timedelta(days=offset_days)).strftime("%Y-%m-%d")

    def tasks(self) -> list[Task]:
        return self.store.get_tasks(self.date_id)

    def switch_date(self, date_id: str) -> None:
        self.date_id = date_id

    def commit(self, result: ActionResult) -> None:
        """Write an executor result back: replacement list first, then any date switch."""
        if result.tasks is not None:
            self.store.replace_tasks(self.date_id, result.tasks)
        if result.date:
            self.switch_date(result.date)

    def _reply(self, reply: Reply) -> Reply:
        self.transcript.append("assistant", reply.text)
        return reply

    async def submit(self, text: str) -> Optional[Reply]:
        """Handle one user line. Blank input is ignored and returns None."""
        value = (text or "").strip()
        if not value:
            return None
        self.transcript.append("user", value)

        command = parse_command(value)
        if command is not None:
            return self._reply(run_command(command, self))
        return self._reply(await self.ask_model(value))

    async def ask_model(self, text: str) -> Reply:
        # History includes the user line just echoed, as the chat panel shows it.
        history = self.transcript.recent(self.history_turns)
        context = build_context(self.date_id, self.tasks(), text, limit=self.summary_limit)

        try:
            full = await self.bridge.complete(history, context)
        except BridgeError as e:
            label = "Network error" if e.kind == "network" else "AI error"
            return Reply(text=f"({label}) {e.detail}")

        payload, remainder = extract_tool_call(full)
        if payload is None:
            log.info("tool_call_absent", date=self.date_id)
            return Reply(text=remainder or "…")

        # Re-read after the await: another submission may have changed the list.
        result = apply_tool_call(payload, self.tasks())
        if result.ok:
            self.commit(result)
        message = result.message + (f"\n\n{remainder}" if remainder else "")
        return Reply(text=message, celebrate=result.ok and result.celebrate)
