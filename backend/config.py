import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration, read from the environment (and .env)."""

    anthropic_api_key: SecretStr = SecretStr("")
    model: str = "claude-sonnet-4-5"
    max_tokens: int = Field(default=1024, ge=1)
    history_turns: int = Field(default=6, ge=0)
    summary_limit: int = Field(default=10, ge=0)
    cors_origins: list[str] = ["http://localhost:5173"]
    log_format: str = "dev"
    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        key = self.anthropic_api_key.get_secret_value()
        return bool(key) and key != "your-api-key-here"


def load_settings() -> Settings:
    """
    Build Settings from environment variables:
        ANTHROPIC_API_KEY, PLANNER_MODEL, PLANNER_MAX_TOKENS,
        PLANNER_HISTORY_TURNS, PLANNER_SUMMARY_LIMIT, PLANNER_CORS_ORIGINS,
        PLANNER_LOG_FORMAT, PLANNER_LOG_LEVEL
    Unset variables keep the model defaults.
    """
    kwargs: dict = {}

    if val := os.getenv("ANTHROPIC_API_KEY"):
        kwargs["anthropic_api_key"] = val
    if val := os.getenv("PLANNER_MODEL"):
        kwargs["model"] = val
    if val := os.getenv("PLANNER_MAX_TOKENS"):
        kwargs["max_tokens"] = int(val)
    if val := os.getenv("PLANNER_HISTORY_TURNS"):
        kwargs["history_turns"] = int(val)
    if val := os.getenv("PLANNER_SUMMARY_LIMIT"):
        kwargs["summary_limit"] = int(val)
    if val := os.getenv("PLANNER_CORS_ORIGINS"):
        kwargs["cors_origins"] = [o.strip() for o in val.split(",") if o.strip()]
    if val := os.getenv("PLANNER_LOG_FORMAT"):
        kwargs["log_format"] = val
    if val := os.getenv("PLANNER_LOG_LEVEL"):
        kwargs["log_level"] = val

    return Settings(**kwargs)
