from __future__ import annotations

"""View payloads for chat messages and product cards."""

from typing import Any, Dict, List

from .catalog_loader import Product
from .conversation import DisplayMessage
from .utils import clip_text

CARD_DESCRIPTION_CHARS = 100


class ImageCache:
    """Application-lifetime map of product id to image URL.

    Unbounded: the catalog is small and fixed once loaded, so every id is
    stored at most once and never evicted.
    """

    def __init__(self) -> None:
        self._urls: Dict[str, str] = {}

    def get(self, product: Product) -> str:
        if product.id not in self._urls:
            self._urls[product.id] = product.image_link
        return self._urls[product.id]

    def __len__(self) -> int:
        return len(self._urls)


def render_product_card(product: Product, image_cache: ImageCache) -> Dict[str, Any]:
    return {
        "id": product.id,
        "brand": product.brand,
        "name": product.name,
        "price": product.price or "",
        "description": clip_text(product.description, CARD_DESCRIPTION_CHARS),
        "image_url": image_cache.get(product),
        "product_link": product.product_link,
    }


def render_message(message: DisplayMessage, image_cache: ImageCache) -> Dict[str, Any]:
    """Purpose: Convert a DisplayMessage into the payload the chat UI draws.
    Inputs/Outputs: Inputs are the message and the shared ImageCache; output is a dict.
    Side Effects / State: May add image URLs to the cache.
    Dependencies: Uses render_product_card.
    Failure Modes: None.
    If Removed: The HTTP layer would leak raw tags instead of product cards.
    Testing Notes: Plain text vs recommendation shapes and description clipping.
    """
    # User messages and assistant messages without products render as plain text.
    if message.role == "user" or not message.products:
        return {"kind": "text", "id": message.id, "role": message.role, "text": message.content}
    return {
        "kind": "recommendation",
        "id": message.id,
        "role": message.role,
        "intro_text": message.intro_text,
        "outro_text": message.outro_text,
        "cards": [render_product_card(product, image_cache) for product in message.products],
    }


def render_messages(messages: List[DisplayMessage], image_cache: ImageCache) -> List[Dict[str, Any]]:
    return [render_message(message, image_cache) for message in messages]
