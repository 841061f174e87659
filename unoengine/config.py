"""Runtime settings read from the environment (and a .env file, loaded by the CLI)."""

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

T = TypeVar("T")


def _parse(env: Mapping[str, str], key: str, cast: Callable[[str], T], default: T) -> T:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    store: str = "uno.db"  # "memory" or a SQLite file path
    ai_delay: float = 0.0  # seconds a computer player "thinks"
    log_level: str = "INFO"
    seed: Optional[int] = None
    llm_provider: Optional[str] = None  # openrouter, groq, ollama, huggingface; None = heuristic
    llm_model: str = "openai/gpt-4o-mini"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from `env` (default os.environ).

        Raises:
            ValueError: UNO_AI_DELAY or UNO_SEED is not a number.
        """
        env = os.environ if env is None else env
        ai_delay = _parse(env, "UNO_AI_DELAY", float, cls.ai_delay)
        if ai_delay < 0:
            raise ValueError(f"UNO_AI_DELAY must not be negative, got {ai_delay}")
        return cls(
            store=env.get("UNO_STORE", cls.store),
            ai_delay=ai_delay,
            log_level=env.get("UNO_LOG_LEVEL", cls.log_level).upper(),
            seed=_parse(env, "UNO_SEED", int, None),
            llm_provider=env.get("UNO_LLM_PROVIDER") or None,
            llm_model=env.get("UNO_LLM_MODEL", cls.llm_model),
        )
