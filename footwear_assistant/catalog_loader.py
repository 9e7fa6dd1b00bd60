from __future__ import annotations

"""Catalog loader for the footwear product table.

This module fetches the pipe-delimited product document (a markdown-style table)
and turns each usable row into an immutable Product with derived keywords.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import requests

logger = logging.getLogger("footwear_assistant.catalog")

HEADER_ROWS = 4
MIN_COLUMNS = 6
MAX_NAME_KEYWORDS = 10

PRICE_RE = re.compile(r"Price:\s*(£[0-9.]+\s*-\s*£?[0-9.]+|£[0-9.]+)")
ABOUT_RE = re.compile(r"About this item(.*?)(?:Product description|Product details|\Z)", re.DOTALL)
MATERIAL_RE = re.compile(r"Material composition([^|]+)")
CARE_RE = re.compile(r"Care instructions([^|]+)")
SOLE_RE = re.compile(r"Sole material([^|]+)")
OUTER_RE = re.compile(r"Outer material([^|]+)")

MATERIAL_STOP_WORDS = {"composition", "with", "and", "the"}
TEXT_STOP_WORDS = {"Price", "Product", "details", "About", "this", "item"}


class CatalogLoadError(Exception):
    """Raised when the product source cannot be fetched or decoded."""


@dataclass(frozen=True)
class Product:
    """Immutable catalog record parsed from one table row."""
    id: str
    name: str
    brand: str
    description: str
    price: str
    gender: str
    product_link: str
    image_link: str
    keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CatalogMeta:
    """Metadata describing the loaded catalog source for logging."""
    source: str
    sha256: str
    product_count: int


class CatalogLoader:
    def __init__(self, source: str, timeout: float = 30.0) -> None:
        """Purpose: Configure the loader with a catalog path or URL.
        Inputs/Outputs: Inputs are the source location and HTTP timeout; no return value.
        Side Effects / State: Stores the source for later load calls.
        Dependencies: None at init.
        Failure Modes: None at init; load() reports fetch errors.
        If Removed: The app cannot locate the product table and runs with no catalog.
        Testing Notes: Instantiate with a temp file path and call load().
        """
        # Keep the catalog location for subsequent loads.
        self._source = source
        self._timeout = timeout

    def load(self) -> Tuple[List[Product], CatalogMeta]:
        """Purpose: Fetch and parse the catalog document into Products.
        Inputs/Outputs: No inputs; returns the product list and CatalogMeta.
        Side Effects / State: Reads the file or performs an HTTP GET.
        Dependencies: Uses _fetch_bytes, hashlib, and parse_product_table.
        Failure Modes: Raises CatalogLoadError when the source is unreachable or undecodable.
        If Removed: Prompt building and tag resolution have no products.
        Testing Notes: Load a small table and verify ids, prices, and meta counts.
        """
        # Read raw bytes for hashing, then parse the decoded text.
        raw_bytes = self._fetch_bytes()
        try:
            text = raw_bytes.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CatalogLoadError(f"Catalog {self._source} is not valid UTF-8") from exc

        products = parse_product_table(text)
        meta = CatalogMeta(
            source=self._source,
            sha256=hashlib.sha256(raw_bytes).hexdigest(),
            product_count=len(products),
        )
        logger.info("catalog source=%s products=%s sha256=%s", meta.source, meta.product_count, meta.sha256[:12])
        return products, meta

    def _fetch_bytes(self) -> bytes:
        # URLs go through requests; anything else is a filesystem path.
        if self._source.startswith(("http://", "https://")):
            try:
                resp = requests.get(self._source, timeout=self._timeout)
                resp.raise_for_status()
            except requests.RequestException as exc:
                raise CatalogLoadError(f"Failed to load product data: {exc}") from exc
            return resp.content
        try:
            return Path(self._source).read_bytes()
        except OSError as exc:
            raise CatalogLoadError(f"Failed to load product data: {exc}") from exc


def parse_product_table(text: str) -> List[Product]:
    """Purpose: Parse the pipe-delimited product document into Products.
    Inputs/Outputs: Input is the document text; output is the ordered product list.
    Side Effects / State: None; pure function.
    Dependencies: Uses split_row and build_product.
    Failure Modes: Rows with fewer than six non-empty cells are skipped, never raised.
    If Removed: The catalog cannot be built from the source document.
    Testing Notes: Mix valid and short rows and check ids stay dense from product_1.
    """
    # Drop blank lines, then the header/separator rows, then parse the data rows.
    rows = [row for row in text.split("\n") if row.strip()]
    products: List[Product] = []
    skipped = 0
    for row in rows[HEADER_ROWS:]:
        columns = split_row(row)
        if len(columns) < MIN_COLUMNS:
            skipped += 1
            continue
        products.append(build_product(f"product_{len(products) + 1}", columns))
    logger.debug("parsed products=%s skipped_rows=%s", len(products), skipped)
    return products


def split_row(row: str) -> List[str]:
    """Split a table row on pipes, trimming cells and dropping empty ones."""
    return [cell.strip() for cell in row.split("|") if cell.strip()]


def build_product(product_id: str, columns: List[str]) -> Product:
    """Purpose: Build a Product from the first six cells of a data row.
    Inputs/Outputs: Inputs are the id and trimmed cells; output is a Product.
    Side Effects / State: None.
    Dependencies: Uses extract_price, extract_description, extract_keywords.
    Failure Modes: Assumes at least six cells; the caller filters short rows.
    If Removed: Row-to-record mapping must be duplicated by callers.
    Testing Notes: Verify column order name, brand, text, link, gender, image.
    """
    # Unpack the fixed column layout and derive fields from the descriptive text.
    name, brand, ai_text, product_link, gender, image_link = columns[:MIN_COLUMNS]
    return Product(
        id=product_id,
        name=name,
        brand=brand,
        description=extract_description(ai_text),
        price=extract_price(ai_text),
        gender=gender,
        product_link=product_link,
        image_link=image_link,
        keywords=extract_keywords(ai_text),
    )


def extract_price(ai_text: str) -> str:
    """Return the first pound price or price range after "Price:", or ""."""
    match = PRICE_RE.search(ai_text)
    return match.group(1) if match else ""


def extract_description(ai_text: str) -> str:
    """Return the "About this item" section up to the next product heading, or ""."""
    match = ABOUT_RE.search(ai_text)
    return match.group(1).strip() if match else ""


def extract_keywords(ai_text: str) -> Tuple[str, ...]:
    """Purpose: Derive search keywords from a product's descriptive text.
    Inputs/Outputs: Input is the descriptive text; output is a deduplicated tuple.
    Side Effects / State: None; pure function.
    Dependencies: Uses the material/care/sole/outer regexes and stop-word sets.
    Failure Modes: Returns an empty tuple when nothing qualifies.
    If Removed: The system prompt loses keyword hints for matching.
    Testing Notes: Check material tokens, section captures, and the ten-word cap.
    """
    keywords: List[str] = []

    material = MATERIAL_RE.search(ai_text)
    if material:
        keywords.extend(
            word
            for word in material.group(1).split(" ")
            if len(word) > 3 and word.lower() not in MATERIAL_STOP_WORDS
        )

    for pattern in (CARE_RE, SOLE_RE, OUTER_RE):
        match = pattern.search(ai_text)
        if match:
            keywords.append(match.group(1).strip())

    text_words = [word for word in ai_text.split(" ") if len(word) > 4 and word not in TEXT_STOP_WORDS]
    keywords.extend(text_words[:MAX_NAME_KEYWORDS])

    return _dedupe(keyword for keyword in keywords if keyword)


def find_product(products: Iterable[Product], product_id: str) -> Optional[Product]:
    """Return the product whose id equals product_id exactly, or None."""
    for product in products:
        if product.id == product_id:
            return product
    return None


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))
