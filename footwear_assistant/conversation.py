"""Conversation state for one chat session.

Role:
    Owns the two logs of a chat session and is the only component that mutates
    them: the UI-facing message list (with rendering metadata such as resolved
    products) and the model-facing role/content transcript sent to the gateway.

Transcript contract:
    - index 0 holds the single system turn (the catalog prompt) when present;
    - after it, user/assistant turns strictly alternate in call order;
    - a user turn is committed together with its assistant reply, so a failed
      call leaves the transcript at its last successful state.

UI log contract:
    - append-only in submission order, never reordered or deleted;
    - every failure the user should see becomes an assistant message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .catalog_loader import Product
from .gemini_client import CallStats, GeminiClient
from .response_parser import parse_product_recommendations
from .utils import generate_message_id

logger = logging.getLogger("footwear_assistant.conversation")

WELCOME_TEXT = (
    "Hello! I'm your footwear shopping assistant. Tell me what kind of shoes you're looking for, "
    "and I'll recommend the best options for you!"
)
DEGRADED_WELCOME_TEXT = (
    "Hello! I'm your footwear shopping assistant. Note: I'm currently working with a limited "
    "product catalog. Some products may not be available."
)
NOT_READY_TEXT = "The system is still getting ready, please try again in a moment..."
ERROR_TEXT = "Sorry, I encountered an error. Please try again later."


@dataclass(frozen=True)
class ConversationTurn:
    """One role/content entry of the model-facing transcript."""
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class DisplayMessage:
    """UI-facing message with optional product recommendation metadata."""
    id: str
    role: str
    content: str
    intro_text: str = ""
    outro_text: str = ""
    products: List[Product] = field(default_factory=list)


@dataclass
class ApiUsageStats:
    """Running totals of model usage for a session."""
    total_cost: float = 0.0
    total_calls: int = 0
    last_call_stats: Optional[CallStats] = None

    def record(self, stats: CallStats) -> None:
        self.total_cost += stats.total_cost
        self.total_calls += 1
        self.last_call_stats = stats


def welcome_message() -> DisplayMessage:
    return DisplayMessage(id="welcome-message", role="assistant", content=WELCOME_TEXT)


def degraded_welcome_message() -> DisplayMessage:
    return DisplayMessage(id="error-message", role="assistant", content=DEGRADED_WELCOME_TEXT)


def format_error_message(exc: BaseException) -> str:
    """Build the visible error text, adding the failure's description when it has one."""
    detail = str(exc)
    if detail:
        return f"{ERROR_TEXT} Error: {detail}"
    return ERROR_TEXT


class ConversationStore:
    """Dual-log conversation state with a single-flight submit gate."""

    def __init__(
        self,
        products: Sequence[Product],
        system_prompt: str,
        gateway: GeminiClient,
        initial_messages: Optional[Sequence[DisplayMessage]] = None,
        session_id: str = "",
    ) -> None:
        """Purpose: Initialize both logs from the catalog prompt and welcome messages.
        Inputs/Outputs: Inputs are the catalog, system prompt, gateway, optional initial
            UI messages, and a session id for logging; no return value.
        Side Effects / State: Seeds the transcript with the system turn when the prompt
            is non-empty.
        Dependencies: Gateway must provide an async chat(messages) -> ChatResult.
        Failure Modes: None at init; an empty prompt leaves the store not ready.
        If Removed: Sessions have nowhere to keep their history.
        Testing Notes: Build with a fake gateway and check readiness and seeded logs.
        """
        # Keep catalog and gateway, seed the transcript with the system turn.
        self.session_id = session_id
        self.pending_input = ""
        self.is_busy = False
        self.usage = ApiUsageStats()
        self._products = tuple(products)
        self._gateway = gateway
        self._ui_messages: List[DisplayMessage] = list(initial_messages or [])
        self._transcript: List[ConversationTurn] = []
        if system_prompt and system_prompt.strip():
            self._transcript.append(ConversationTurn(role="system", content=system_prompt))

    @property
    def ui_messages(self) -> List[DisplayMessage]:
        return list(self._ui_messages)

    @property
    def transcript(self) -> List[ConversationTurn]:
        return list(self._transcript)

    @property
    def products(self) -> Sequence[Product]:
        return self._products

    def set_pending_input(self, text: str) -> None:
        self.pending_input = text

    def is_ready(self, warn: bool = False) -> bool:
        """Purpose: Check that the catalog and system turn are in place.
        Inputs/Outputs: Input is whether to log the reason; returns True when submit
            may call the model.
        Side Effects / State: Logs a warning when not ready and warn is set.
        Dependencies: Reads the catalog and transcript.
        Failure Modes: None.
        If Removed: Early input would reach the model without catalog context.
        Testing Notes: Empty catalog or missing prompt must return False.
        """
        if not self._products:
            if warn:
                logger.warning("session=%s no product data available yet", self.session_id)
            return False
        if not self._transcript or self._transcript[0].role != "system":
            if warn:
                logger.warning("session=%s system prompt not set up", self.session_id)
            return False
        return True

    async def submit(self, text: Optional[str] = None) -> bool:
        """Purpose: Send one user message through the gateway and record the reply.
        Inputs/Outputs: Input is the text to send (defaults to pending_input); returns
            True when a model call was made and succeeded.
        Side Effects / State: Appends to the UI log and, on success, to the transcript;
            updates usage stats; toggles is_busy around the call.
        Dependencies: Uses the gateway, parse_product_recommendations, generate_message_id.
        Failure Modes: Gateway errors become a visible assistant error message; nothing
            is raised to the caller and is_busy is always cleared.
        If Removed: The UI has no way to talk to the model.
        Testing Notes: Cover blank input, busy drop, not-ready, success, and failure.
        """
        # Ignore blank input and calls made while another submit is in flight.
        current_input = self.pending_input if text is None else text
        if not current_input.strip():
            return False
        if self.is_busy:
            logger.info("session=%s submit ignored: busy", self.session_id)
            return False
        if not self.is_ready(warn=True):
            self._append_message("assistant", NOT_READY_TEXT)
            return False

        self.pending_input = ""
        self._append_message("user", current_input)
        user_turn = ConversationTurn(role="user", content=current_input)
        outgoing = self._transcript + [user_turn]

        self.is_busy = True
        try:
            logger.debug("session=%s sending turns=%s", self.session_id, len(outgoing))
            result = await self._gateway.chat([turn.to_dict() for turn in outgoing])
        except Exception as exc:
            logger.error("session=%s model call failed: %s", self.session_id, exc)
            self._append_message("assistant", format_error_message(exc))
            return False
        finally:
            self.is_busy = False

        # Commit the exchange, then resolve product cards for display.
        self._transcript.extend([user_turn, ConversationTurn(role="assistant", content=result.text)])
        parsed = parse_product_recommendations(result.text, self._products)
        self._ui_messages.append(
            DisplayMessage(
                id=generate_message_id(),
                role="assistant",
                content=parsed.content,
                intro_text=parsed.intro_text,
                outro_text=parsed.outro_text,
                products=parsed.products,
            )
        )
        if result.stats:
            self.usage.record(result.stats)
        logger.info(
            "session=%s reply products=%s total_calls=%s",
            self.session_id,
            [product.id for product in parsed.products],
            self.usage.total_calls,
        )
        return True

    def _append_message(self, role: str, content: str) -> DisplayMessage:
        message = DisplayMessage(id=generate_message_id(), role=role, content=content)
        self._ui_messages.append(message)
        return message
