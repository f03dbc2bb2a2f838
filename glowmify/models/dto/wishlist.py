from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class WishlistItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    external_id: str = Field(default="", validation_alias=AliasChoices("external_id", "externalId"))
    title: str = ""
    price: float = 0.0
    image_url: str = Field(default="", validation_alias=AliasChoices("image_url", "imageUrl"))

    @field_validator("id", "external_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v)


class WishlistAdd(BaseModel):
    external_id: str = Field(serialization_alias="externalId")
    source: str = "1688"
    country: str = "en"
    image_url: str = Field(default="", serialization_alias="imageUrl")
    price: float = 0.0
    title: str = ""
