import anthropic
import structlog

from config import Settings
from models import TranscriptEntry
from prompts import SYSTEM_PROMPT

log = structlog.get_logger()

EMPTY_REPLY = "Sorry, I could not generate a reply."


class BridgeError(Exception):
    """The completion service could not produce a reply.

    kind is "network" for connection/timeout failures and "api" for
    non-success responses or missing configuration.
    """

    def __init__(self, detail: str, kind: str = "api"):
        super().__init__(detail)
        self.detail = detail
        self.kind = kind


def to_api_messages(history: list[TranscriptEntry], context: str) -> list[dict]:
    """
    Convert transcript history plus the context block to Claude API messages.
    The API wants a leading user turn and alternating roles, so leading
    assistant turns are dropped and consecutive same-role turns are merged.
    """
    messages: list[dict] = []
    for entry in [*history, TranscriptEntry(role="user", text=context)]:
        if not messages and entry.role == "assistant":
            continue
        if messages and messages[-1]["role"] == entry.role:
            messages[-1]["content"] += "\n\n" + entry.text
        else:
            messages.append({"role": entry.role, "content": entry.text})
    return messages


class CompletionBridge:
    """Single-shot text completion against Claude. No retries."""

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.settings.anthropic_api_key.get_secret_value()
            )
        return self._client

    async def complete(self, history: list[TranscriptEntry], context: str) -> str:
        if not self.settings.has_api_key:
            raise BridgeError("API key not configured")

        try:
            response = await self.client.messages.create(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                system=SYSTEM_PROMPT,
                messages=to_api_messages(history, context),
            )
        except (anthropic.APIConnectionError, anthropic.APITimeoutError) as e:
            log.warning("bridge_call_failed", kind="network", error=str(e))
            raise BridgeError(str(e) or "Please try again.", kind="network") from e
        except anthropic.APIStatusError as e:
            log.warning("bridge_call_failed", kind="api", status=e.status_code)
            raise BridgeError(f"{e.status_code} {e.message}") from e
        except anthropic.APIError as e:
            log.warning("bridge_call_failed", kind="api", error=str(e))
            raise BridgeError(str(e)) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        log.debug("bridge_reply", chars=len(text))
        return text or EMPTY_REPLY
