from __future__ import annotations

from typing import List, Sequence

from .catalog_loader import Product

PROMPT_PREAMBLE = (
    "You are a shopping assistant AI specializing in footwear recommendations. "
    "Your task is to recommend products based on user queries. "
    "You have access to a catalog of shoes and footwear products. "
    "Below is the product catalog you can recommend from:\n\n"
)

PROMPT_INSTRUCTIONS = [
    "1. When the user asks about products, recommend the most relevant ones based on their query.",
    "2. Consider the user's preferences for brand, style, price range, and any specific features they mention.",
    "3. For each recommendation, explain why it matches their needs.",
    "4. Highlight key features and benefits of the recommended products.",
    '5. For each recommended product, include a product card tag in this format: '
    '<product-card data-id="PRODUCT_ID"></product-card>',
    "   where PRODUCT_ID is the ID of the product (e.g., product_1, product_2, etc.).",
    "6. Recommend at most 2-3 products per response to avoid overwhelming the user.",
    "7. If you cannot find a suitable product, suggest what information the user could provide "
    "to help you find better matches.",
]


def build_system_prompt(products: Sequence[Product]) -> str:
    """Purpose: Render the catalog and recommendation rules into one system prompt.
    Inputs/Outputs: Input is the ordered product list; output is the prompt string.
    Side Effects / State: None; deterministic for a given catalog.
    Dependencies: Uses PROMPT_PREAMBLE, PROMPT_INSTRUCTIONS, and format_product_block.
    Failure Modes: None; an empty catalog still yields preamble and instructions.
    If Removed: The model has no catalog context and cannot emit product-card tags.
    Testing Notes: Check fallbacks for empty fields and the display numbering.
    """
    # Number products for display independently of their ids.
    parts: List[str] = [PROMPT_PREAMBLE]
    for index, product in enumerate(products, start=1):
        parts.append(format_product_block(index, product))
    parts.append("Instructions:\n")
    parts.extend(f"{line}\n" for line in PROMPT_INSTRUCTIONS)
    return "".join(parts)


def format_product_block(index: int, product: Product) -> str:
    lines = [
        f"Product {index} (ID: {product.id}):",
        f"Name: {product.name}",
        f"Brand: {product.brand}",
        f"Description: {product.description or 'Not provided'}",
        f"Price: {product.price or 'Not specified'}",
        f"Gender: {product.gender or 'unisex'}",
    ]
    if product.keywords:
        lines.append(f"Keywords: {', '.join(product.keywords)}")
    return "\n".join(lines) + "\n\n"
