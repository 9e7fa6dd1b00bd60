from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from .catalog_loader import Product, find_product

PRODUCT_CARD_RE = re.compile(r'<product-card data-id="([^"]+)"></product-card>')
FIRST_SENTENCE_RE = re.compile(r"^([^.!?]+[.!?])")

INTRO_MAX_CHARS = 120
FIXED_OUTRO_TEXT = (
    "Would you like more specific recommendations? Feel free to ask for other styles or features."
)


@dataclass
class ParsedReply:
    """Structured view of a model reply with resolved product cards."""
    content: str
    intro_text: str = ""
    outro_text: str = ""
    products: List[Product] = field(default_factory=list)


def parse_product_recommendations(reply: str, products: Sequence[Product]) -> ParsedReply:
    """Purpose: Extract product-card tags from a reply and resolve them to Products.
    Inputs/Outputs: Inputs are the raw reply and the catalog; output is a ParsedReply.
    Side Effects / State: None; parsing the same reply twice gives equal results.
    Dependencies: Uses PRODUCT_CARD_RE, find_product, and shorten_intro.
    Failure Modes: Unknown ids are dropped silently; never raises on model output.
    If Removed: Replies render as plain text and product cards are lost.
    Testing Notes: Cover unknown ids, repeated tags, and replies without tags.
    """
    # Resolve tags in order of appearance; repeated tags resolve independently.
    matches = list(PRODUCT_CARD_RE.finditer(reply))
    resolved: List[Product] = []
    for match in matches:
        product = find_product(products, match.group(1))
        if product is not None:
            resolved.append(product)

    intro_text = ""
    if matches and matches[0].start() > 0:
        intro_text = shorten_intro(reply[: matches[0].start()])

    return ParsedReply(
        content=reply,
        intro_text=intro_text,
        outro_text=FIXED_OUTRO_TEXT if resolved else "",
        products=resolved,
    )


def shorten_intro(text: str) -> str:
    """Keep the first sentence of the lead-in, or clip it to INTRO_MAX_CHARS."""
    intro = text.strip()
    sentence = FIRST_SENTENCE_RE.match(intro)
    if sentence:
        return sentence.group(1).strip()
    if len(intro) > INTRO_MAX_CHARS:
        return intro[:INTRO_MAX_CHARS] + "..."
    return intro
