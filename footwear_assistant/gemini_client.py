from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import google.generativeai as genai

from .config import Settings

logger = logging.getLogger("footwear_assistant.gemini")

GEMINI_ROLES = {"user": "user", "assistant": "model"}


class ModelCallError(Exception):
    """Raised when the model call fails or returns no usable text."""


@dataclass(frozen=True)
class CallStats:
    """Latency, token counts, and cost of a single model call."""
    time: float
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float
    total_cost: float


@dataclass(frozen=True)
class ChatResult:
    """Raw reply text plus usage metrics when the SDK reports them."""
    text: str
    stats: Optional[CallStats] = None


class GeminiClient:
    """Thin wrapper around the Gemini SDK with model caching and cost accounting."""

    def __init__(self, settings: Settings) -> None:
        """Purpose: Configure the Gemini SDK and initialize the model cache.
        Inputs/Outputs: Input is Settings; no return value.
        Side Effects / State: Configures the SDK global API key.
        Dependencies: Uses google.generativeai and Settings from config.
        Failure Modes: Raises ValueError if the API key or model name is missing.
        If Removed: Chat turns cannot reach the model and every submit fails.
        Testing Notes: Validate missing key raises ValueError and models are cached.
        """
        # Configure API key and keep call parameters fixed for the process.
        if not settings.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required")
        self._model_name = _normalize_model_name(settings.gemini_model)
        if not self._model_name:
            raise ValueError("Gemini model name is required")
        genai.configure(api_key=settings.gemini_api_key)
        self._settings = settings
        self._models: Dict[Tuple[str, str], genai.GenerativeModel] = {}

    async def chat(self, messages: List[Dict[str, str]]) -> ChatResult:
        """Purpose: Send a role/content transcript to Gemini and return the reply.
        Inputs/Outputs: Input is the ordered transcript; returns ChatResult with text and stats.
        Side Effects / State: May add a model to the internal cache; logs latency and cost.
        Dependencies: Uses to_gemini_contents, GenerativeModel.generate_content_async,
            and compute_call_stats.
        Failure Modes: SDK errors and empty/blocked responses raise ModelCallError.
        If Removed: The conversation store has no way to get assistant replies.
        Testing Notes: Patch GenerativeModel and check contents mapping and stats.
        """
        # Split the system turn into the model instruction and time the call.
        system_instruction, contents = to_gemini_contents(messages)
        model = self._get_model(system_instruction)
        start = time.perf_counter()
        try:
            response = await model.generate_content_async(
                contents,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_output_tokens,
                },
            )
        except Exception as exc:
            logger.error("model=%s call failed: %s", self._model_name, exc)
            raise ModelCallError(f"API request failed: {exc}") from exc
        elapsed = time.perf_counter() - start

        try:
            text = response.text
        except ValueError as exc:
            raise ModelCallError(f"API response had no text: {exc}") from exc
        text = text or ""
        if not text.strip():
            logger.warning("model=%s returned an empty reply", self._model_name)
            raise ModelCallError("API response had no text")

        stats = compute_call_stats(
            getattr(response, "usage_metadata", None),
            elapsed,
            self._settings.input_cost_per_mtok,
            self._settings.output_cost_per_mtok,
        )
        if stats:
            logger.info("model=%s response in %.2fs", self._model_name, stats.time)
            logger.info(
                "cost=$%.6f (input=$%.6f output=$%.6f)",
                stats.total_cost,
                stats.input_cost,
                stats.output_cost,
            )
        return ChatResult(text=text, stats=stats)

    def _get_model(self, system_instruction: str) -> genai.GenerativeModel:
        key = (self._model_name, system_instruction)
        if key not in self._models:
            self._models[key] = genai.GenerativeModel(
                self._model_name,
                system_instruction=system_instruction or None,
            )
        return self._models[key]


def to_gemini_contents(messages: List[Dict[str, str]]) -> Tuple[str, List[Dict[str, Any]]]:
    """Purpose: Convert a role/content transcript into Gemini chat contents.
    Inputs/Outputs: Input is a list of {role, content} dicts; output is
        (system_instruction, contents).
    Side Effects / State: None.
    Dependencies: Uses GEMINI_ROLES for the assistant -> model rename.
    Failure Modes: Unknown roles are skipped; a missing system turn yields "".
    If Removed: The transcript cannot be sent in the SDK's expected shape.
    Testing Notes: Verify the system turn is lifted out and roles are renamed.
    """
    # Lift system turns into the instruction and map the rest to Gemini roles.
    system_parts: List[str] = []
    contents: List[Dict[str, Any]] = []
    for message in messages:
        role = message.get("role", "")
        content = message.get("content", "")
        if role == "system":
            system_parts.append(content)
            continue
        gemini_role = GEMINI_ROLES.get(role)
        if not gemini_role:
            continue
        contents.append({"role": gemini_role, "parts": [{"text": content}]})
    return "\n\n".join(system_parts), contents


def compute_call_stats(
    usage: Any,
    elapsed: float,
    input_cost_per_mtok: float,
    output_cost_per_mtok: float,
) -> Optional[CallStats]:
    """Purpose: Turn SDK usage metadata into a CallStats snapshot.
    Inputs/Outputs: Inputs are usage metadata, elapsed seconds, and per-million-token
        prices; output is CallStats or None.
    Side Effects / State: None.
    Dependencies: Reads prompt_token_count/candidates_token_count from the SDK object.
    Failure Modes: Returns None when usage or its token counts are absent.
    If Removed: Cumulative cost tracking has nothing to add up.
    Testing Notes: Check cost arithmetic and the None path for missing usage.
    """
    # Token counts may be missing on some responses; report no stats then.
    if usage is None:
        return None
    input_tokens = getattr(usage, "prompt_token_count", None)
    output_tokens = getattr(usage, "candidates_token_count", None)
    if input_tokens is None and output_tokens is None:
        return None
    input_tokens = int(input_tokens or 0)
    output_tokens = int(output_tokens or 0)
    input_cost = input_tokens * input_cost_per_mtok / 1_000_000
    output_cost = output_tokens * output_cost_per_mtok / 1_000_000
    return CallStats(
        time=elapsed,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=input_cost + output_cost,
    )


def _normalize_model_name(name: Optional[str]) -> str:
    """Purpose: Normalize model names by stripping prefix and whitespace.
    Inputs/Outputs: Input is a model name string; output is normalized name.
    Side Effects / State: None.
    Dependencies: None; used by GeminiClient.
    Failure Modes: Returns empty string for falsy input.
    If Removed: Names like "models/gemini-2.5-flash" reach the SDK unnormalized.
    Testing Notes: Ensure "models/foo" becomes "foo" and whitespace is trimmed.
    """
    # Strip "models/" prefix and whitespace.
    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
