"""
Response envelopes shared by every router.

- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error:   { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }

Routers build payloads from the Pydantic models in models.py and pass them
through dump() so field names come out camelCase and money as strings.
"""
from typing import Any, Iterable

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Error code (e.g. 'notfound', 'conflict')")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


class StandardErrorResponse(BaseModel):
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail


class PaginationMeta(BaseModel):
    limit: int
    offset: int
    skip: int
    total: int
    has_more: bool = Field(..., alias="hasMore")


def dump(model: BaseModel | Iterable[BaseModel] | None) -> Any:
    """Serialize one model (or a list of them) using aliases and JSON-safe types."""
    if model is None:
        return None
    if isinstance(model, BaseModel):
        return model.model_dump(by_alias=True, mode="json")
    return [m.model_dump(by_alias=True, mode="json") for m in model]


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def paginated_response(
    items: list[Any],
    limit: int,
    offset: int = 0,
    total: int | None = None,
) -> dict[str, Any]:
    """
    Wrap one page of items in the success envelope.

    Args:
        items: Items for this page (already serialized)
        limit: Page size that was requested
        offset: Offset that was requested
        total: Total matching rows; falls back to len(items)
    """
    if total is None:
        total = len(items)

    meta = PaginationMeta(
        limit=limit,
        offset=offset,
        skip=offset,
        total=total,
        hasMore=(offset + limit) < total,
    )
    return success_response(data=items, meta=meta.model_dump(by_alias=True))
