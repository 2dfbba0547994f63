"""Async gateway to the multimodal model behind the AITunnel proxy."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Mapping, Sequence

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI
from pydantic import ValidationError

from finder.api.prompts import build_analysis_messages, build_search_messages, unique_queries
from finder.config.settings import FinderSettings
from finder.providers.base import ImagePayload
from finder.schemas import (
    AnalyzedItem,
    GroundingChunk,
    OutfitAnalysisResult,
    SimilarItemsSearchResult,
    SimilarItemSuggestionGroup,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[\w-]*\s*(.*?)\s*```$", re.DOTALL)


class GatewayError(RuntimeError):
    """Base class for failures that are shown to the user as-is."""


class AnalysisError(GatewayError):
    """Raised when the outfit could not be analysed."""


class SearchError(GatewayError):
    """Raised when similar items could not be found."""


class AITunnelRequestError(RuntimeError):
    """Raised when AITunnel responds with an error status code."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class OutfitGateway:
    """Runs the analysis and similar-items requests against the model."""

    def __init__(
        self,
        settings: FinderSettings,
        *,
        http_client: httpx.AsyncClient | None = None,
        openai_client: AsyncOpenAI | None = None,
    ) -> None:
        base_url = settings.aitunnel_base_url.rstrip("/")
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=settings.request_timeout,
            headers={
                "Authorization": f"Bearer {settings.aitunnel_api_key}",
            },
        )
        self._openai = openai_client or AsyncOpenAI(
            api_key=settings.aitunnel_api_key,
            base_url=base_url,
            timeout=settings.request_timeout,
            max_retries=0,
        )

    async def close(self) -> None:
        """Close the underlying HTTP clients."""

        await self._client.aclose()
        await self._openai.close()

    async def ping(self) -> bool:
        """Return ``True`` if the proxy answers a model listing call."""

        models = await self._openai.models.list()
        return bool(models.data)

    async def available_models(self) -> set[str]:
        """Model ids the proxy currently serves for this key."""

        models = await self._openai.models.list()
        return {model.id for model in models.data}

    async def analyze(self, payload: ImagePayload) -> OutfitAnalysisResult:
        """Identify the garments on the image."""

        try:
            response = await self._openai.chat.completions.create(
                model=self._settings.analysis_model,
                messages=build_analysis_messages(payload),
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except APITimeoutError as exc:
            logger.error("Outfit analysis timed out: %s", exc)
            raise AnalysisError("Превышено время ожидания ответа от модели.") from exc
        except APIStatusError as exc:
            logger.error("Outfit analysis failed with status %s: %s", exc.status_code, exc)
            raise AnalysisError(f"Сервис анализа вернул ошибку {exc.status_code}.") from exc
        except APIConnectionError as exc:
            logger.error("Outfit analysis connection failed: %s", exc)
            raise AnalysisError("Не удалось связаться с сервисом анализа.") from exc

        choices = response.choices or []
        content = choices[0].message.content if choices else None
        if not content:
            raise AnalysisError("Модель не вернула ответ.")

        parsed = parse_json_reply(content, AnalysisError)
        try:
            return OutfitAnalysisResult.model_validate(parsed)
        except ValidationError as exc:
            logger.error("Invalid analysis payload: %s", parsed)
            raise AnalysisError("Модель вернула некорректный формат анализа.") from exc

    async def find_similar(
        self,
        items: Sequence[AnalyzedItem],
    ) -> tuple[SimilarItemsSearchResult, list[GroundingChunk]]:
        """Search the web for products similar to ``items``."""

        queries = unique_queries(items)
        if not queries:
            return SimilarItemsSearchResult(), []

        body = {
            "model": self._settings.search_model,
            "messages": build_search_messages(queries, items),
            "web_search_options": {},
        }
        try:
            response = await self._request_json("POST", "/chat/completions", json_body=body)
        except AITunnelRequestError as exc:
            logger.error("Similar items search failed: %s", exc)
            raise SearchError(str(exc)) from exc

        choices = response.get("choices") or []
        if not choices:
            raise SearchError("Модель не вернула результаты поиска.")
        choice = choices[0] or {}
        message = choice.get("message") or {}
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise SearchError("Модель не вернула результаты поиска.")

        parsed = parse_json_reply(content, SearchError)
        try:
            result = SimilarItemsSearchResult.model_validate(parsed)
        except ValidationError as exc:
            logger.error("Invalid search payload: %s", parsed)
            raise SearchError("Модель вернула некорректный формат результатов поиска.") from exc

        sources = extract_grounding_chunks(response, choice, message)
        return align_groups(result, queries), sources

    async def _request_json(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, endpoint, json=json_body)
            response.raise_for_status()
            if not response.content:
                return {}
            return response.json()
        except httpx.TimeoutException as exc:
            raise AITunnelRequestError("Превышено время ожидания ответа от AITunnel.") from exc
        except httpx.HTTPStatusError as exc:
            raise AITunnelRequestError(
                f"AITunnel вернул ошибку {exc.response.status_code}.",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TransportError as exc:
            raise AITunnelRequestError("Не удалось связаться с AITunnel.") from exc
        except ValueError as exc:
            raise AITunnelRequestError("AITunnel вернул ответ не в формате JSON.") from exc


def parse_json_reply(content: str, error_cls: type[GatewayError]) -> dict[str, Any]:
    """Decode a JSON object from a model reply, unwrapping Markdown code fences."""

    text = content.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise error_cls("Не удалось разобрать ответ модели.") from None
        try:
            parsed = json.loads(text[start : end + 1])
        except json.JSONDecodeError as exc:
            raise error_cls("Не удалось разобрать ответ модели.") from exc
    if not isinstance(parsed, dict):
        raise error_cls("Не удалось разобрать ответ модели.")
    return parsed


def extract_grounding_chunks(*containers: Mapping[str, Any]) -> list[GroundingChunk]:
    """Collect web citations from URL annotations or passed-through grounding metadata."""

    chunks: list[GroundingChunk] = []
    seen: set[str] = set()

    def _add(uri: Any, title: Any) -> None:
        if not isinstance(uri, str) or not uri or uri in seen:
            return
        if not isinstance(title, str):
            title = ""
        try:
            chunk = GroundingChunk.model_validate({"web": {"uri": uri, "title": title}})
        except ValidationError:
            logger.warning("Skipping malformed grounding citation for %s", uri)
            return
        seen.add(uri)
        chunks.append(chunk)

    for container in containers:
        for annotation in _as_list(container.get("annotations")):
            if annotation.get("type") != "url_citation":
                continue
            citation = annotation.get("url_citation") or {}
            _add(citation.get("url"), citation.get("title"))

        metadata = container.get("grounding_metadata") or container.get("groundingMetadata") or {}
        if isinstance(metadata, Mapping):
            raw_chunks = metadata.get("grounding_chunks") or metadata.get("groundingChunks")
            for raw in _as_list(raw_chunks):
                web = raw.get("web") or {}
                if isinstance(web, Mapping):
                    _add(web.get("uri"), web.get("title"))
    return chunks


def align_groups(result: SimilarItemsSearchResult, queries: Sequence[str]) -> SimilarItemsSearchResult:
    """Return exactly one group per query, in query order."""

    remaining = list(result.similar_items_suggestions)
    aligned: list[SimilarItemSuggestionGroup] = []
    for query in queries:
        key = query.casefold().strip()
        match = next(
            (group for group in remaining if group.original_item_query.casefold().strip() == key),
            None,
        )
        if match is None:
            match = next(
                (group for group in remaining if not _matches_any(group, queries)),
                None,
            )
        if match is None:
            aligned.append(SimilarItemSuggestionGroup(original_item_query=query))
            continue
        remaining.remove(match)
        aligned.append(match.model_copy(update={"original_item_query": query}))
    return SimilarItemsSearchResult(similar_items_suggestions=tuple(aligned))


def _matches_any(group: SimilarItemSuggestionGroup, queries: Iterable[str]) -> bool:
    key = group.original_item_query.casefold().strip()
    return any(key == query.casefold().strip() for query in queries)


def _as_list(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]
