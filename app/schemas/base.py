from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

ItemT = TypeVar("ItemT")


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=False)


class BasePaginatedSchema(BaseSchema, Generic[ItemT]):
    total: int
    limit: int
    offset: int
    items: list[ItemT]
