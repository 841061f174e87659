"""LLM strategist using the OpenAI client against OpenRouter, Groq, Ollama or HuggingFace."""

import json
import logging
import os
import re
import time
from collections import deque
from typing import Deque, List, Optional

from openai import OpenAI

from unoengine.agent.protocol import Decision
from unoengine.agents.strategist import decide, pick_color
from unoengine.engine import PLAYABLE_COLORS, Card, Color, GameStatus

logger = logging.getLogger(__name__)

# provider -> (OpenAI-compatible base URL, env var holding the API key)
PROVIDERS = {
    "openrouter": ("https://openrouter.ai/api/v1", "OPENROUTER_API_KEY"),
    "groq": ("https://api.groq.com/openai/v1", "GROQ_API_KEY"),
    "ollama": ("http://localhost:11434/v1", None),
    "huggingface": ("https://router.huggingface.co/v1", "HUGGINGFACE_API_KEY"),
}
RATE_WINDOW = 60.0
MAX_ATTEMPTS = 3


def _format_status(status: GameStatus, hand: List[Card]) -> str:
    """Format the visible game state as text for the LLM."""
    lines = [
        "=== Your hand ===",
        " ".join(str(c) for c in hand),
        "",
        "=== Top card on discard ===",
        str(status.top_card) if status.top_card else "None",
        "",
        "=== Current color to match ===",
        status.active_color.value.upper() if status.active_color else "any",
        "",
        "=== Direction ===",
        status.direction.value,
        "",
        "=== Pending draws ===",
        str(status.pending_draws),
    ]
    return "\n".join(lines)


def _format_legal_moves(cards: List[Card]) -> str:
    return "\n".join(f"{i}: PLAY {card}" for i, card in enumerate(cards))


def _parse_color(raw) -> Optional[Color]:
    if not isinstance(raw, str):
        return None
    try:
        color = Color(raw.strip().lower())
    except ValueError:
        return None
    return color if color in PLAYABLE_COLORS else None


def _parse_move_response(response: str, cards: List[Card]) -> Optional[tuple[Card, Optional[Color]]]:
    """Parse an LLM reply into (card, color). Color is None when not given or invalid."""
    json_match = re.search(r"(\{.*?\})", response, re.DOTALL)
    if json_match:
        json_str = json_match.group(1)
        for candidate in (json_str, json_str.replace("'", '"')):
            try:
                data = json.loads(candidate)
            except (json.JSONDecodeError, ValueError):
                continue
            if isinstance(data, dict) and isinstance(data.get("card_index"), int):
                idx = data["card_index"]
                if 0 <= idx < len(cards):
                    return cards[idx], _parse_color(data.get("color"))
                logger.debug("Index %s out of range (0-%d)", idx, len(cards) - 1)
            break

    match = re.search(r"[\"']?card_index[\"']?\s*:\s*(\d+)", response, re.IGNORECASE)
    if match:
        idx = int(match.group(1))
        if 0 <= idx < len(cards):
            color_match = re.search(r"\b(red|green|blue|yellow)\b", response, re.IGNORECASE)
            return cards[idx], _parse_color(color_match.group(1)) if color_match else None

    return None


class LLMStrategist:
    """Computer player that asks an LLM which legal card to play.

    Falls back to the heuristic strategist whenever the model cannot be
    reached or its answer cannot be parsed.
    """

    def __init__(
        self,
        provider: str = "openrouter",
        model: str = "openai/gpt-4o-mini",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        rate_limit: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ):
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider} (expected one of {', '.join(PROVIDERS)})")
        base_url, key_var = PROVIDERS[provider]
        if provider == "ollama":
            base_url = os.environ.get("OLLAMA_BASE_URL", base_url)

        if client is None:
            key = api_key or (os.environ.get(key_var) if key_var else "ollama")
            if not key:
                raise ValueError(f"No API key for {provider}: set {key_var} or pass api_key")
            client = OpenAI(api_key=key, base_url=base_url)

        self._client = client
        self._model = model
        self._provider = provider
        self._timeout = timeout
        self._max_per_window = rate_limit
        self._sent: Deque[float] = deque()

        logger.info("[%s] using %s at %s", self.name, provider, base_url)

    @property
    def name(self) -> str:
        return f"llm-{self._model}"

    def _throttle(self) -> None:
        """Sleep until another request fits in the rolling one-minute window."""
        if not self._max_per_window:
            return
        now = time.monotonic()
        while self._sent and now - self._sent[0] >= RATE_WINDOW:
            self._sent.popleft()
        if len(self._sent) >= self._max_per_window:
            pause = RATE_WINDOW - (now - self._sent[0])
            logger.info("[%s] %d requests in the last minute, pausing %.1fs", self.name, len(self._sent), pause)
            time.sleep(max(pause, 0.0))
            self._sent.popleft()
        self._sent.append(time.monotonic())

    def choose_move(
        self,
        status: GameStatus,
        hand: List[Card],
        legal_moves: List[Card],
    ) -> Optional[Decision]:
        if not legal_moves:
            return None

        prompt = f"""You are playing UNO.
Objective: empty your hand first. A card matches the top discard by color or value; wild cards match anything.
While draws are pending you may only stack the same penalty card (draw2 on draw2, wild4 on wild4).

{_format_status(status, hand)}

=== Legal moves ===
{_format_legal_moves(legal_moves)}

INSTRUCTIONS:
Respond with a JSON object holding the index of the card to play and, for a wild card, the color to continue with.
Example: {{"card_index": 1, "color": "blue"}}
"""

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                content = self._ask(prompt)
            except Exception as e:
                logger.warning("[%s] Attempt %d failed: %s: %s", self.name, attempt, type(e).__name__, e)
                continue
            parsed = _parse_move_response(content, legal_moves)
            if parsed is None:
                logger.warning("[%s] Attempt %d gave no usable move: %r", self.name, attempt, content)
                continue
            card, color = parsed
            if card.is_wild:
                return Decision(card=card, color=color or pick_color(hand))
            return Decision(card=card)

        logger.warning("[%s] Giving up after %d attempts, using the heuristic", self.name, MAX_ATTEMPTS)
        return decide(legal_moves, hand)

    def _ask(self, prompt: str) -> str:
        self._throttle()
        request = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": self._timeout,
        }
        # JSON mode is only known to work on these
        if self._provider in ("openrouter", "groq") and "gpt" in self._model:
            request["response_format"] = {"type": "json_object"}
        started = time.monotonic()
        reply = self._client.chat.completions.create(**request)
        content = reply.choices[0].message.content or ""
        logger.debug("[%s] Reply after %.2fs: %s", self.name, time.monotonic() - started, content)
        return content
