import pytest

from footwear_assistant.config import load_settings

ENV_KEYS = [
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "MAX_OUTPUT_TOKENS",
    "TEMPERATURE",
    "INPUT_COST_PER_MTOK",
    "OUTPUT_COST_PER_MTOK",
    "CATALOG_SOURCE",
    "CATALOG_TIMEOUT",
    "MAX_SESSIONS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.gemini_api_key == ""
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.max_output_tokens == 1500
    assert settings.temperature == 0.7
    assert settings.catalog_source.endswith("productData.md")
    assert settings.max_sessions == 50


def test_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-pro")
    monkeypatch.setenv("TEMPERATURE", "0.2")
    monkeypatch.setenv("CATALOG_SOURCE", "https://cdn.test/products.md")
    monkeypatch.setenv("MAX_SESSIONS", "3")

    settings = load_settings()

    assert settings.gemini_api_key == "k"
    assert settings.gemini_model == "gemini-2.5-pro"
    assert settings.temperature == 0.2
    assert settings.catalog_source == "https://cdn.test/products.md"
    assert settings.max_sessions == 3


def test_invalid_number_raises(monkeypatch):
    monkeypatch.setenv("MAX_OUTPUT_TOKENS", "lots")

    with pytest.raises(ValueError):
        load_settings()
