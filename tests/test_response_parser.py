from footwear_assistant.response_parser import (
    FIXED_OUTRO_TEXT,
    parse_product_recommendations,
    shorten_intro,
)


def _tag(product_id):
    return f'<product-card data-id="{product_id}"></product-card>'


def test_known_and_unknown_ids(products):
    reply = f"Here are two options. {_tag('product_1')}{_tag('product_9')}"

    parsed = parse_product_recommendations(reply, products)

    assert parsed.products == [products[0]]
    assert parsed.intro_text == "Here are two options."
    assert parsed.outro_text == FIXED_OUTRO_TEXT
    assert parsed.content == reply


def test_single_known_tag_round_trip(products):
    parsed = parse_product_recommendations(f"Try this: {_tag('product_2')}", products)

    assert len(parsed.products) == 1
    assert parsed.products[0] is products[1]


def test_unknown_id_only(products):
    parsed = parse_product_recommendations(f"Try these. {_tag('product_9')}", products)

    assert parsed.products == []
    assert parsed.intro_text == "Try these."
    assert parsed.outro_text == ""


def test_reply_without_tags(products):
    parsed = parse_product_recommendations("Could you tell me your shoe size?", products)

    assert parsed.products == []
    assert parsed.intro_text == ""
    assert parsed.outro_text == ""
    assert parsed.content == "Could you tell me your shoe size?"


def test_repeated_tags_yield_repeated_products(products):
    reply = f"{_tag('product_2')} and again {_tag('product_1')}{_tag('product_2')}"

    parsed = parse_product_recommendations(reply, products)

    assert [product.id for product in parsed.products] == ["product_2", "product_1", "product_2"]


def test_tag_at_start_has_no_intro(products):
    parsed = parse_product_recommendations(f"{_tag('product_1')} Great for trails.", products)

    assert parsed.intro_text == ""
    assert parsed.products == [products[0]]


def test_other_tag_shapes_are_ignored(products):
    reply = (
        "<product-card data-id='product_1'></product-card>"
        '<product-card data-id="product_1"/>'
        '<product-card  data-id="product_1"></product-card>'
    )

    parsed = parse_product_recommendations(reply, products)

    assert parsed.products == []


def test_parsing_is_idempotent(products):
    reply = f"Two picks! {_tag('product_1')} {_tag('product_2')}"

    assert parse_product_recommendations(reply, products) == parse_product_recommendations(reply, products)


def test_intro_keeps_first_sentence_only():
    assert shorten_intro("  Great choice! These suit wet trails. ") == "Great choice!"
    assert shorten_intro("Is it for running? Here goes.") == "Is it for running?"


def test_long_intro_without_punctuation_is_clipped():
    intro = "a" * 130

    assert shorten_intro(intro) == "a" * 120 + "..."
    assert shorten_intro("short lead in") == "short lead in"
