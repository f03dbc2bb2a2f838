from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class FeedItem(BaseModel):
    """A product card in a paginated feed. Only ``id`` is interpreted."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    id: str = Field(validation_alias=AliasChoices("id", "offerId"))

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None or v == "":
            raise ValueError("feed item id is required")
        return str(v)


class FeedPage(BaseModel):
    """One fetched page. ``received`` counts every row the server sent,
    including rows dropped for lacking an id."""

    items: list[FeedItem] = []
    received: int = Field(default=0, ge=0)


class FeedCriteria(BaseModel):
    """Query parameters of the "most reviewed" feed. A change means a reset."""

    model_config = ConfigDict(frozen=True)

    category_ids: tuple[int, ...] = ()
    type: str = "all"
    filter: str = "[]"
    rating_count: str = ""
    min_price: float = Field(default=0.0, ge=0)
    max_price: float = 9999999999.0
    search: str = ""

    def to_params(self, offset: int, page_size: int) -> dict[str, str]:
        return {
            "categoryIds": ",".join(str(c) for c in self.category_ids),
            "offset": str(offset),
            "limit": str(page_size),
            "type": self.type,
            "filter": self.filter,
            "ratingCount": self.rating_count,
            "minPrice": str(self.min_price),
            "maxPrice": str(self.max_price),
            "search": self.search,
        }
