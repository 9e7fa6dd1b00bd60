from __future__ import annotations

import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

from .catalog_loader import CatalogLoader, CatalogLoadError, Product
from .config import Settings, load_settings
from .conversation import ConversationStore, DisplayMessage, degraded_welcome_message, welcome_message
from .gemini_client import GeminiClient
from .models import (
    CallStatsView,
    ChatRequest,
    InputUpdate,
    ProductView,
    SessionState,
    SessionSummary,
    UsageView,
)
from .prompt_builder import build_system_prompt
from .render import ImageCache, render_messages
from .session_store import SessionStore

BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = BASE_DIR / ".env"

logger = logging.getLogger("footwear_assistant.app")


def configure_logging() -> None:
    """Configure root logging once from LOG_LEVEL."""
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("footwear_assistant").setLevel(log_level)


def load_catalog(settings: Settings) -> Tuple[List[Product], str, Callable[[], DisplayMessage]]:
    """Purpose: Load the catalog and derive the system prompt and welcome message.
    Inputs/Outputs: Input is Settings; returns (products, system_prompt, welcome factory).
    Side Effects / State: Reads the catalog source; logs the outcome.
    Dependencies: Uses CatalogLoader and build_system_prompt.
    Failure Modes: CatalogLoadError is absorbed into an empty catalog, no prompt, and
        the degraded welcome message.
    If Removed: Sessions start without catalog context.
    Testing Notes: Point CATALOG_SOURCE at a missing file and verify the fallback.
    """
    # Fall back to an empty catalog so the chat stays usable.
    loader = CatalogLoader(settings.catalog_source, timeout=settings.catalog_timeout)
    try:
        products, meta = loader.load()
    except CatalogLoadError as exc:
        logger.warning("Failed to load products: %s", exc)
        return [], "", degraded_welcome_message
    logger.info("Successfully loaded %s products from %s", meta.product_count, meta.source)
    return products, build_system_prompt(products), welcome_message


def create_app(settings: Optional[Settings] = None, gateway: Optional[GeminiClient] = None) -> FastAPI:
    """Purpose: Build the FastAPI app with catalog, gateway, and session wiring.
    Inputs/Outputs: Optional Settings and gateway overrides; returns a FastAPI app.
    Side Effects / State: Loads .env and the catalog; configures logging.
    Dependencies: Uses load_catalog, GeminiClient, SessionStore, and render helpers.
    Failure Modes: Missing GEMINI_API_KEY raises ValueError when no gateway is given.
    If Removed: There is no HTTP surface for the chat UI.
    Testing Notes: Pass a fake gateway and a temp catalog path, then use TestClient.
    """
    if ENV_PATH.exists():
        load_dotenv(ENV_PATH, override=True)
    configure_logging()

    settings = settings or load_settings()
    gateway = gateway or GeminiClient(settings)
    products, system_prompt, make_welcome = load_catalog(settings)
    image_cache = ImageCache()

    def new_conversation(session_id: str) -> ConversationStore:
        return ConversationStore(
            products=products,
            system_prompt=system_prompt,
            gateway=gateway,
            initial_messages=[make_welcome()],
            session_id=session_id,
        )

    sessions = SessionStore(new_conversation, max_sessions=settings.max_sessions)

    app = FastAPI(title="Footwear Shopping Assistant")
    app.state.settings = settings
    app.state.products = products
    app.state.system_prompt = system_prompt
    app.state.sessions = sessions
    app.state.image_cache = image_cache

    def get_store(session_id: str) -> ConversationStore:
        store = sessions.get(session_id)
        if store is None:
            raise HTTPException(status_code=404, detail="Unknown session")
        return store

    def session_state(store: ConversationStore) -> SessionState:
        usage = store.usage
        last = CallStatsView(**asdict(usage.last_call_stats)) if usage.last_call_stats else None
        return SessionState(
            session_id=store.session_id,
            messages=render_messages(store.ui_messages, image_cache),
            pending_input=store.pending_input,
            is_busy=store.is_busy,
            ready=store.is_ready(),
            usage=UsageView(
                total_cost=usage.total_cost,
                total_calls=usage.total_calls,
                last_call_stats=last,
            ),
        )

    def count_user_messages(store: ConversationStore) -> int:
        return sum(1 for message in store.ui_messages if message.role == "user")

    async def submit_pending(session_id: str, store: ConversationStore) -> SessionState:
        # Only a message that reached the UI log may name the session.
        text = store.pending_input
        sent_before = count_user_messages(store)
        await store.submit()
        if count_user_messages(store) > sent_before:
            sessions.touch(session_id, text)
        return session_state(store)

    @app.get("/api/catalog", response_model=List[ProductView])
    async def get_catalog() -> List[ProductView]:
        return [ProductView(**{**asdict(product), "keywords": list(product.keywords)}) for product in products]

    @app.post("/api/sessions", response_model=SessionState)
    async def create_session() -> SessionState:
        session_id = sessions.create_session()
        return session_state(get_store(session_id))

    @app.get("/api/sessions", response_model=List[SessionSummary])
    async def list_sessions() -> List[SessionSummary]:
        return sessions.list_sessions()

    @app.get("/api/sessions/{session_id}", response_model=SessionState)
    async def get_session(session_id: str) -> SessionState:
        return session_state(get_store(session_id))

    @app.put("/api/sessions/{session_id}/input", response_model=SessionState)
    async def update_input(session_id: str, update: InputUpdate) -> SessionState:
        store = get_store(session_id)
        store.set_pending_input(update.text)
        return session_state(store)

    @app.post("/api/sessions/{session_id}/submit", response_model=SessionState)
    async def submit(session_id: str) -> SessionState:
        """Submit the session's pending input; a busy session ignores the request."""
        return await submit_pending(session_id, get_store(session_id))

    @app.post("/api/chat", response_model=SessionState)
    async def chat(request: ChatRequest) -> SessionState:
        """Purpose: Set the input and submit it in one call.
        Inputs/Outputs: Input is ChatRequest; output is the updated SessionState.
        Side Effects / State: Creates the session if needed and appends messages.
        Dependencies: Uses SessionStore and ConversationStore.submit.
        Failure Modes: Model failures show up as assistant messages, not HTTP errors.
        If Removed: Simple clients must use the two-step input/submit routes.
        Testing Notes: Send a message without session_id and verify a new session.
        """
        # Resolve or create the session, then run the normal submit path.
        session_id = request.session_id or sessions.create_session()
        store = sessions.ensure_session(session_id)
        store.set_pending_input(request.message)
        return await submit_pending(session_id, store)

    return app
