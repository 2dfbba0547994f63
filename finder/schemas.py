"""Structured records returned by the outfit analysis and search stages."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    """Immutable model that tolerates extra keys sent by the model."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class AnalyzedItem(_Record):
    """One garment identified on the photo."""

    item_name: str
    type: str
    color: str
    material: str | None = None
    pattern: str | None = None
    style_description: str | None = None
    brand: str | None = None
    exact_shop_link: str | None = None
    exact_price: str | None = None

    @field_validator(
        "material",
        "pattern",
        "style_description",
        "brand",
        "exact_shop_link",
        "exact_price",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def search_query(self) -> str:
        """Human-readable description used to key the similar-items search."""

        parts = [self.color, self.material, self.pattern, self.item_name]
        query = " ".join(part for part in parts if part)
        if self.brand:
            query = f"{query} ({self.brand})"
        return query


class OutfitAnalysisResult(_Record):
    """Outcome of the analysis stage; item order follows detection order."""

    identified_clothing: tuple[AnalyzedItem, ...] = ()
    overall_impression: str = ""

    @property
    def has_items(self) -> bool:
        return bool(self.identified_clothing)


class ProductSuggestion(_Record):
    """A purchasable product similar to one of the analysed items."""

    product_name: str
    shop_link: str
    image_url: str | None = None
    price_estimate: str | None = None


class SimilarItemSuggestionGroup(_Record):
    """Suggestions grouped under the query item they were found for."""

    original_item_query: str
    suggestions: tuple[ProductSuggestion, ...] = ()


class SimilarItemsSearchResult(_Record):
    """Ordered suggestion groups, one per queried item."""

    similar_items_suggestions: tuple[SimilarItemSuggestionGroup, ...] = ()


class WebGroundingSource(_Record):
    uri: str
    title: str = ""


class GroundingChunk(_Record):
    """Citation returned alongside search results; passed through untouched."""

    web: WebGroundingSource | None = Field(default=None)
