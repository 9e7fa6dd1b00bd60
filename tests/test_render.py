from dataclasses import replace

from footwear_assistant.conversation import DisplayMessage
from footwear_assistant.render import ImageCache, render_message, render_messages, render_product_card


def test_user_message_renders_as_text():
    message = DisplayMessage(id="m1", role="user", content="boots")

    assert render_message(message, ImageCache()) == {
        "kind": "text",
        "id": "m1",
        "role": "user",
        "text": "boots",
    }


def test_assistant_without_products_renders_raw_content():
    message = DisplayMessage(id="m2", role="assistant", content="What size are you?")

    rendered = render_message(message, ImageCache())

    assert rendered["kind"] == "text"
    assert rendered["text"] == "What size are you?"


def test_recommendation_renders_cards(products):
    message = DisplayMessage(
        id="m3",
        role="assistant",
        content="raw with tags",
        intro_text="Two picks.",
        outro_text="More?",
        products=list(products),
    )

    rendered = render_message(message, ImageCache())

    assert rendered["kind"] == "recommendation"
    assert rendered["intro_text"] == "Two picks."
    assert rendered["outro_text"] == "More?"
    assert [card["id"] for card in rendered["cards"]] == ["product_1", "product_2"]
    assert "text" not in rendered


def test_card_clips_description_and_blank_price(products):
    product = replace(products[0], description="x" * 150, price="")

    card = render_product_card(product, ImageCache())

    assert card["description"] == "x" * 100 + "..."
    assert card["price"] == ""
    assert card["image_url"] == product.image_link
    assert card["product_link"] == product.product_link


def test_card_without_description(products):
    card = render_product_card(replace(products[0], description=""), ImageCache())

    assert card["description"] == ""


def test_image_cache_keeps_first_url(products):
    cache = ImageCache()
    first = products[0]

    assert cache.get(first) == first.image_link
    assert cache.get(replace(first, image_link="https://img.test/other.jpg")) == first.image_link
    assert len(cache) == 1


def test_render_messages_shares_cache(products):
    cache = ImageCache()
    messages = [
        DisplayMessage(id=f"m{i}", role="assistant", content="", products=[products[1]]) for i in range(3)
    ]

    rendered = render_messages(messages, cache)

    assert len(rendered) == 3
    assert len(cache) == 1
