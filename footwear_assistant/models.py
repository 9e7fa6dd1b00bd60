from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request payload for the one-shot chat API."""
    session_id: Optional[str] = Field(default=None)
    message: str


class InputUpdate(BaseModel):
    """Pending input text typed by the user but not yet sent."""
    text: str


class CallStatsView(BaseModel):
    """Latency, token, and cost figures of the most recent model call."""
    time: float
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float
    total_cost: float


class UsageView(BaseModel):
    """Cumulative model usage for a session."""
    total_cost: float
    total_calls: int
    last_call_stats: Optional[CallStatsView] = None


class SessionState(BaseModel):
    """Everything the chat UI needs to draw a session."""
    session_id: str
    messages: List[Dict[str, Any]]
    pending_input: str
    is_busy: bool
    ready: bool
    usage: UsageView


class ProductView(BaseModel):
    """Catalog product as exposed over HTTP."""
    id: str
    name: str
    brand: str
    description: str
    price: str
    gender: str
    product_link: str
    image_link: str
    keywords: List[str]


class SessionSummary(BaseModel):
    """Lightweight session summary for sidebar listing."""
    session_id: str
    title: str
    updated_at: float
