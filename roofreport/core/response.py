"""The `{"data": ...}` envelope every /api/v1 endpoint answers with."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from roofreport.core.pagination import PageMeta, PaginationParams

T = TypeVar("T")


class _Envelope(BaseModel):
    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class DataResponse(_Envelope, Generic[T]):
    """`{ data: {...} }`"""

    data: T


class ListResponse(_Envelope, Generic[T]):
    """`{ data: [...], meta: {total, page, limit, pages} }`"""

    data: list[T]
    meta: PageMeta


def paginated(items: list, total: int, params: PaginationParams) -> dict:
    return {"data": items, "meta": params.meta(total)}


def wrap(item: Any) -> dict:
    return {"data": item}
