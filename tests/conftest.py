from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest

from footwear_assistant.catalog_loader import parse_product_table
from footwear_assistant.config import Settings
from footwear_assistant.gemini_client import CallStats, ChatResult
from footwear_assistant.prompt_builder import build_system_prompt

HEADER = (
    "# Footwear product data\n"
    "Exported listing table\n"
    "| Product Name | Brand | Input AI | Product Link | Gender | Image Link |\n"
    "|---|---|---|---|---|---|\n"
)

SAMPLE_TABLE = HEADER + (
    "| Trail Runner | Salomon | Price: £129.99 About this item Grippy trail shoe. Product details "
    "Material composition Gore-Tex with mesh Sole material Contagrip rubber "
    "| https://shop.test/trail | men | https://img.test/trail.jpg |\n"
    "| Broken row | Brand | only three cells |\n"
    "\n"
    "| Canvas Sneaker | Vans | Price: £49.99 About this item Light canvas sneaker. "
    "| https://shop.test/canvas | unisex | https://img.test/canvas.jpg |\n"
)

SAMPLE_STATS = CallStats(
    time=0.5,
    input_tokens=1000,
    output_tokens=200,
    input_cost=0.0003,
    output_cost=0.0005,
    total_cost=0.0008,
)


class FakeGateway:
    """Records transcripts and replays canned replies or errors."""

    def __init__(
        self,
        replies: Optional[List[str]] = None,
        error: Optional[Exception] = None,
        stats: Optional[CallStats] = SAMPLE_STATS,
    ) -> None:
        self.calls: List[List[Dict[str, str]]] = []
        self.replies = list(replies or [])
        self.error = error
        self.stats = stats
        self.release: Optional[asyncio.Event] = None

    async def chat(self, messages: List[Dict[str, str]]) -> ChatResult:
        self.calls.append(messages)
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        text = self.replies.pop(0) if self.replies else "Happy to help."
        return ChatResult(text=text, stats=self.stats)


@pytest.fixture
def make_gateway():
    return FakeGateway


@pytest.fixture
def sample_table() -> str:
    return SAMPLE_TABLE


@pytest.fixture
def products():
    return parse_product_table(SAMPLE_TABLE)


@pytest.fixture
def system_prompt(products) -> str:
    return build_system_prompt(products)


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "productData.md"
    path.write_text(SAMPLE_TABLE, encoding="utf-8")
    return path


@pytest.fixture
def settings(catalog_file) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        gemini_model="gemini-2.5-flash",
        max_output_tokens=1500,
        temperature=0.7,
        input_cost_per_mtok=0.30,
        output_cost_per_mtok=2.50,
        catalog_source=str(catalog_file),
        catalog_timeout=5.0,
        max_sessions=10,
    )
