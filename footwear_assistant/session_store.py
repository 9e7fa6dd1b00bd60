from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from .conversation import ConversationStore
from .models import SessionSummary

logger = logging.getLogger("footwear_assistant.sessions")

DEFAULT_TITLE = "New Chat"


class SessionStore:
    """In-memory registry of conversation stores, summaries, and recency."""

    def __init__(self, factory: Callable[[str], ConversationStore], max_sessions: Optional[int] = None) -> None:
        """Purpose: Initialize the registry with a conversation factory and session cap.
        Inputs/Outputs: Inputs are a factory(session_id) -> ConversationStore and an
            optional max_sessions cap; no return.
        Side Effects / State: Creates empty session and summary caches.
        Dependencies: The factory carries catalog, prompt, and gateway wiring.
        Failure Modes: None at init.
        If Removed: The HTTP layer cannot keep separate conversations per browser.
        Testing Notes: Verify new sessions get a fresh store and respect max_sessions.
        """
        # Keep configuration; sessions are created on demand.
        self._factory = factory
        self._max_sessions = max_sessions
        self._sessions: Dict[str, ConversationStore] = {}
        self._summaries: Dict[str, SessionSummary] = {}

    def create_session(self) -> str:
        """Purpose: Create a new session with a random id.
        Inputs/Outputs: No inputs; returns the new session id.
        Side Effects / State: Adds a conversation store and summary; may prune.
        Dependencies: Uses ensure_session.
        Failure Modes: None.
        If Removed: Clients must invent their own session ids.
        Testing Notes: Ids are unique and immediately retrievable with get().
        """
        session_id = uuid.uuid4().hex
        self.ensure_session(session_id)
        return session_id

    def ensure_session(self, session_id: str) -> ConversationStore:
        """Purpose: Ensure a session exists and return its conversation store.
        Inputs/Outputs: Input is session_id; returns the ConversationStore.
        Side Effects / State: Creates cache entries when missing and prunes old sessions.
        Dependencies: Uses the factory, SessionSummary, and _prune_sessions.
        Failure Modes: Factory errors propagate to the caller.
        If Removed: First messages for a client-chosen session id have no store.
        Testing Notes: Calling twice with one id returns the same store.
        """
        # Initialize session structures when missing.
        if session_id not in self._sessions:
            self._sessions[session_id] = self._factory(session_id)
            self._summaries[session_id] = SessionSummary(
                session_id=session_id,
                title=DEFAULT_TITLE,
                updated_at=time.time(),
            )
            logger.info("session=%s created", session_id)
            self._prune_sessions(keep=session_id)
        return self._sessions[session_id]

    def get(self, session_id: str) -> Optional[ConversationStore]:
        return self._sessions.get(session_id)

    def touch(self, session_id: str, title_hint: str = "") -> None:
        """Purpose: Mark a session as recently used and title it from its first message.
        Inputs/Outputs: Inputs are session_id and the user text; no return value.
        Side Effects / State: Updates updated_at and possibly the title.
        Dependencies: Uses in-memory _summaries cache.
        Failure Modes: Unknown session ids are ignored.
        If Removed: Session list ordering and titles go stale.
        Testing Notes: First non-empty hint sets the title; later hints do not.
        """
        # Refresh recency and replace the placeholder title once.
        summary = self._summaries.get(session_id)
        if summary is None:
            return
        summary.updated_at = time.time()
        if summary.title == DEFAULT_TITLE and title_hint.strip():
            summary.title = title_hint.strip().splitlines()[0][:48]

    def list_sessions(self) -> List[SessionSummary]:
        """Purpose: Return session summaries sorted by most recent activity.
        Inputs/Outputs: No inputs; returns a list of SessionSummary instances.
        Side Effects / State: None.
        Dependencies: Uses in-memory _summaries cache.
        Failure Modes: None; returns empty list if no sessions.
        If Removed: UI cannot show the session list.
        Testing Notes: Ensure ordering by updated_at descending.
        """
        # Sort summaries by last update time.
        return sorted(self._summaries.values(), key=lambda s: s.updated_at, reverse=True)

    def _prune_sessions(self, keep: Optional[str] = None) -> bool:
        """Purpose: Enforce max_sessions by dropping least recently used sessions.
        Inputs/Outputs: Optional id that must survive; returns True if any were removed.
        Side Effects / State: Mutates _sessions/_summaries caches.
        Dependencies: Uses _max_sessions and updated_at ordering.
        Failure Modes: None; no-op when max_sessions is unset or not exceeded.
        If Removed: Memory grows with every browser that opens the page.
        Testing Notes: Set a low max_sessions and verify pruning order.
        """
        # Remove least-recent sessions when above the configured cap.
        if not self._max_sessions or self._max_sessions <= 0:
            return False
        if len(self._summaries) <= self._max_sessions:
            return False

        ordered = sorted(self._summaries.values(), key=lambda s: s.updated_at, reverse=True)
        keep_ids = {summary.session_id for summary in ordered[: self._max_sessions]}
        if keep and keep not in keep_ids:
            keep_ids.discard(ordered[self._max_sessions - 1].session_id)
            keep_ids.add(keep)
        removed = [session_id for session_id in list(self._summaries.keys()) if session_id not in keep_ids]
        for session_id in removed:
            self._summaries.pop(session_id, None)
            self._sessions.pop(session_id, None)
            logger.info("session=%s pruned", session_id)
        return bool(removed)
