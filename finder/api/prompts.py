"""Prompt construction for the analysis and similar-items stages."""

from __future__ import annotations

import json
from typing import Any, Sequence

from finder.providers.base import ImagePayload
from finder.schemas import AnalyzedItem

ANALYSIS_SYSTEM_PROMPT = (
    "Ты — эксперт по моде. Определи все предметы одежды, обувь и аксессуары на фотографии. "
    "Ответ строго в JSON без Markdown: {\"identified_clothing\": [{\"item_name\": \"...\", "
    "\"type\": \"...\", \"color\": \"...\", \"material\": \"...\", \"pattern\": \"...\", "
    "\"style_description\": \"...\", \"brand\": \"...\", \"exact_shop_link\": \"...\", "
    "\"exact_price\": \"...\"}], \"overall_impression\": \"...\"}. "
    "Перечисляй вещи сверху вниз. Поля material, pattern, style_description, brand, "
    "exact_shop_link и exact_price заполняй только если уверен, иначе пропускай. "
    "Бренд и ссылку на точную модель указывай, только если вещь узнаваема. "
    "Тексты пиши на русском языке."
)

SEARCH_SYSTEM_PROMPT = (
    "Ты — помощник по покупкам. Для каждого запроса из списка найди в интернете 2–4 "
    "похожих товара, которые можно купить прямо сейчас. Используй только реальные ссылки "
    "на страницы товаров из результатов поиска. Ответ строго в JSON без Markdown: "
    "{\"similar_items_suggestions\": [{\"original_item_query\": \"...\", \"suggestions\": "
    "[{\"product_name\": \"...\", \"shop_link\": \"...\", \"image_url\": \"...\", "
    "\"price_estimate\": \"...\"}]}]}. Поле original_item_query повторяет запрос дословно, "
    "группы идут в том же порядке, что и запросы. Если ничего не найдено, верни пустой "
    "список suggestions для этого запроса."
)


def build_analysis_messages(payload: ImagePayload) -> list[dict[str, Any]]:
    """Chat messages asking the model to identify garments on the image."""

    return [
        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Проанализируй образ на фото."},
                {"type": "image_url", "image_url": {"url": payload.as_data_url()}},
            ],
        },
    ]


def unique_queries(items: Sequence[AnalyzedItem]) -> list[str]:
    """Search queries for the given items, duplicates removed, order kept."""

    queries: list[str] = []
    seen: set[str] = set()
    for item in items:
        query = item.search_query()
        key = query.casefold()
        if key in seen:
            continue
        seen.add(key)
        queries.append(query)
    return queries


def build_search_messages(queries: Sequence[str], items: Sequence[AnalyzedItem]) -> list[dict[str, Any]]:
    """Chat messages asking the model to look up purchasable look-alikes."""

    details = [
        {
            "query": item.search_query(),
            "type": item.type,
            "style": item.style_description,
        }
        for item in items
    ]
    user_payload = {"queries": list(queries), "details": details}
    return [
        {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(user_payload, ensure_ascii=False)},
    ]
