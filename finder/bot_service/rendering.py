"""Turns session data into Telegram messages."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from aiogram.utils.markdown import hbold, hitalic, hlink
from aiogram.utils.text_decorations import html_decoration

from finder.schemas import (
    AnalyzedItem,
    GroundingChunk,
    OutfitAnalysisResult,
    SimilarItemsSearchResult,
)

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 4096

CHOOSER_TEXT = (
    "Привет! Я помогу разобрать образ и найти похожие вещи.\n"
    "Выберите, как прислать фото: сделать снимок камерой или загрузить файл."
)
CAMERA_HINT = "Сделайте фото образа камерой и отправьте его сюда."
UPLOAD_HINT = "Загрузите изображение образа файлом (JPEG, PNG, WEBP)."
ANALYZING_MESSAGE = "Анализирую образ..."
SEARCHING_MESSAGE = "Ищу похожие вещи..."
NOTHING_FOUND_MESSAGE = "На фото не удалось распознать одежду, поэтому искать нечего."
SHARE_HINT = "Чтобы поделиться результатом, отправьте /share. Начать заново — /reset."


def _link(title: str, url: str | None) -> str:
    if url and url.startswith(("http://", "https://")):
        return hlink(title, url)
    return html_decoration.quote(title)


def render_error(message: str) -> str:
    return f"⚠️ {html_decoration.quote(message)}\nСкрыть сообщение: /dismiss"


def _item_lines(index: int, item: AnalyzedItem) -> list[str]:
    lines = [f"{index}. {hbold(item.item_name)} — {html_decoration.quote(item.type)}"]
    details = [("Цвет", item.color), ("Материал", item.material), ("Узор", item.pattern), ("Бренд", item.brand)]
    lines.extend(f"   {label}: {html_decoration.quote(value)}" for label, value in details if value)
    if item.style_description:
        lines.append(f"   {hitalic(item.style_description)}")
    if item.exact_shop_link:
        price = f" ({html_decoration.quote(item.exact_price)})" if item.exact_price else ""
        lines.append(f"   {_link('Купить эту вещь', item.exact_shop_link)}{price}")
    elif item.exact_price:
        lines.append(f"   Цена: {html_decoration.quote(item.exact_price)}")
    return lines


def render_analysis(analysis: OutfitAnalysisResult) -> list[str]:
    """One block for the overview and one per identified item."""

    blocks = [hbold("Анализ образа")]
    if analysis.overall_impression:
        blocks.append(html_decoration.quote(analysis.overall_impression))
    for index, item in enumerate(analysis.identified_clothing, start=1):
        blocks.append("\n".join(_item_lines(index, item)))
    return blocks


def render_similar_items(result: SimilarItemsSearchResult) -> list[str]:
    blocks = [hbold("Похожие вещи")]
    for group in result.similar_items_suggestions:
        lines = [hbold(group.original_item_query)]
        if not group.suggestions:
            lines.append("Ничего похожего не нашлось.")
        for suggestion in group.suggestions:
            price = f" — {html_decoration.quote(suggestion.price_estimate)}" if suggestion.price_estimate else ""
            lines.append(f"• {_link(suggestion.product_name, suggestion.shop_link)}{price}")
        blocks.append("\n".join(lines))
    return blocks


def render_sources(sources: Sequence[GroundingChunk] | None) -> str | None:
    """List of web sources the search relied on, or ``None`` if there are none."""

    seen: set[str] = set()
    lines: list[str] = []
    for chunk in sources or ():
        if chunk.web is None or chunk.web.uri in seen:
            continue
        seen.add(chunk.web.uri)
        lines.append(f"• {_link(chunk.web.title or chunk.web.uri, chunk.web.uri)}")
    if not lines:
        return None
    return "\n".join([hbold("Источники"), *lines])


def build_share_text(analysis: OutfitAnalysisResult, result: SimilarItemsSearchResult) -> str:
    """Plain-text summary suitable for forwarding."""

    lines = ["Мой образ по версии AI Fashion Finder:"]
    if analysis.overall_impression:
        lines.append(analysis.overall_impression)
    lines.append("")
    for item in analysis.identified_clothing:
        lines.append(f"- {item.item_name} ({item.color}, {item.type})")
    found = [
        (group.original_item_query, suggestion)
        for group in result.similar_items_suggestions
        for suggestion in group.suggestions[:1]
    ]
    if found:
        lines.append("")
        lines.append("Похожие вещи:")
        for query, suggestion in found:
            lines.append(f"- {query}: {suggestion.product_name} {suggestion.shop_link}")
    return "\n".join(lines).strip()


def _split_oversized(block: str, limit: int) -> list[str]:
    """Break a block on line boundaries so no HTML tag is cut in half."""

    pieces: list[str] = []
    current = ""
    for line in block.split("\n"):
        if len(line) > limit:
            logger.warning("Dropping a %d-character line that does not fit into one message", len(line))
            continue
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            pieces.append(current)
        current = line
    if current:
        pieces.append(current)
    return pieces


def pack_blocks(blocks: Iterable[str], limit: int = MESSAGE_LIMIT) -> list[str]:
    """Join blocks into as few messages as possible without exceeding ``limit``."""

    messages: list[str] = []
    current = ""
    for block in blocks:
        if not block:
            continue
        pieces = [block] if len(block) <= limit else _split_oversized(block, limit)
        for piece in pieces:
            candidate = f"{current}\n\n{piece}" if current else piece
            if len(candidate) <= limit:
                current = candidate
                continue
            if current:
                messages.append(current)
            current = piece
    if current:
        messages.append(current)
    return messages
