from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    """Configuration container for the model, catalog source, and runtime limits."""
    gemini_api_key: str
    gemini_model: str
    max_output_tokens: int
    temperature: float
    input_cost_per_mtok: float
    output_cost_per_mtok: float
    catalog_source: str
    catalog_timeout: float
    max_sessions: int


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables.
    Dependencies: Uses os.getenv and BASE_DIR for the default catalog path.
    Failure Modes: Invalid numeric env values raise ValueError.
    If Removed: App cannot configure the model or find the catalog and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve the catalog source, then build Settings.
    catalog_source = os.getenv("CATALOG_SOURCE")
    if not catalog_source:
        catalog_source = str((BASE_DIR / ".." / "resources" / "productData.md").resolve())

    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        max_output_tokens=int(os.getenv("MAX_OUTPUT_TOKENS", "1500")),
        temperature=float(os.getenv("TEMPERATURE", "0.7")),
        input_cost_per_mtok=float(os.getenv("INPUT_COST_PER_MTOK", "0.30")),
        output_cost_per_mtok=float(os.getenv("OUTPUT_COST_PER_MTOK", "2.50")),
        catalog_source=catalog_source,
        catalog_timeout=float(os.getenv("CATALOG_TIMEOUT", "30")),
        max_sessions=int(os.getenv("MAX_SESSIONS", "50")),
    )
