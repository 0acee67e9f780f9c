from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """The `{success, message, data}` envelope every endpoint answers with."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[Dict[str, List[str]]] = None


class ConflictData(BaseModel):
    client_version: int
    server_version: int
    current_data: Dict[str, Any]


class ConflictResponse(BaseModel):
    success: bool = False
    message: str = "Version conflict detected"
    error: str = "The record has been modified by another user"
    conflict: bool = True
    data: ConflictData


class Deleted(BaseModel):
    id: Any


def ok(data: Any = None, message: Optional[str] = None) -> ApiResponse:
    return ApiResponse(data=data, message=message)


# Documented on every update route
CONFLICT_RESPONSES = {
    409: {"model": ConflictResponse, "description": "Version conflict - resource was modified by another user"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}

# Documented on create routes with a unique business key
DUPLICATE_RESPONSES = {
    409: {"model": ErrorResponse, "description": "A record with the same unique value already exists"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}
