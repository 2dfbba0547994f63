"""Tests for Telegram message rendering."""

from __future__ import annotations

from finder.bot_service.rendering import (
    MESSAGE_LIMIT,
    build_share_text,
    pack_blocks,
    render_analysis,
    render_error,
    render_similar_items,
    render_sources,
)
from finder.schemas import GroundingChunk, OutfitAnalysisResult, SimilarItemsSearchResult

ANALYSIS = OutfitAnalysisResult.model_validate(
    {
        "identified_clothing": [
            {
                "item_name": "Trench <coat>",
                "type": "outerwear",
                "color": "beige",
                "exact_shop_link": "https://shop.test/trench",
                "exact_price": "€199",
            },
        ],
        "overall_impression": "Classic & clean.",
    },
)

SEARCH = SimilarItemsSearchResult.model_validate(
    {
        "similar_items_suggestions": [
            {
                "original_item_query": "beige Trench <coat>",
                "suggestions": [{"product_name": "Belted trench", "shop_link": "https://shop.test/belted"}],
            },
            {"original_item_query": "white sneakers", "suggestions": []},
        ],
    },
)


def test_render_analysis_escapes_html() -> None:
    blocks = render_analysis(ANALYSIS)

    text = "\n".join(blocks)
    assert "Trench &lt;coat&gt;" in text
    assert "Classic &amp; clean." in text
    assert 'href="https://shop.test/trench"' in text
    assert "€199" in text


def test_render_similar_items_marks_empty_groups() -> None:
    text = "\n".join(render_similar_items(SEARCH))

    assert "Belted trench" in text
    assert "Ничего похожего не нашлось." in text


def test_render_sources_skips_duplicates_and_empty() -> None:
    chunk = GroundingChunk.model_validate({"web": {"uri": "https://a.test", "title": "A"}})

    text = render_sources([chunk, chunk, GroundingChunk()])

    assert text is not None
    assert text.count("https://a.test") == 1
    assert render_sources(None) is None


def test_render_error_mentions_dismiss() -> None:
    assert "/dismiss" in render_error("network error")


def test_share_text_lists_items_and_first_suggestion() -> None:
    text = build_share_text(ANALYSIS, SEARCH)

    assert "Trench <coat> (beige, outerwear)" in text
    assert "Belted trench https://shop.test/belted" in text
    assert "white sneakers" not in text


def test_pack_blocks_respects_limit() -> None:
    messages = pack_blocks(["a" * 6, "b" * 6, "c" * 6], limit=14)

    assert messages == ["a" * 6 + "\n\n" + "b" * 6, "c" * 6]


def test_pack_blocks_splits_long_source_list_between_links() -> None:
    sources = [
        GroundingChunk.model_validate(
            {"web": {"uri": f"https://redirect.test/grounding-api-redirect/{index:03d}/" + "x" * 130, "title": f"Shop {index}"}},
        )
        for index in range(30)
    ]
    block = render_sources(sources)
    assert len(block) > MESSAGE_LIMIT

    messages = pack_blocks(["header", block])

    assert len(messages) > 1
    for text in messages:
        assert len(text) <= MESSAGE_LIMIT
        assert text.count("<a ") == text.count("</a>")
    assert sum(text.count("</a>") for text in messages) == 30
    assert sum(text.count("<b>Источники</b>") for text in messages) == 1


def test_pack_blocks_drops_line_longer_than_limit() -> None:
    messages = pack_blocks(["short\n" + "y" * 20 + "\ntail"], limit=12)

    assert messages == ["short\ntail"]
