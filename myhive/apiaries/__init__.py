"""Apiary management module."""

from myhive.apiaries.router import router
from myhive.apiaries.schemas import (
    ApiaryCreate,
    ApiaryEnvelope,
    ApiaryListResponse,
    ApiaryResponse,
    ApiaryUpdate,
)
from myhive.apiaries.service import ApiaryService, get_apiary_service

__all__ = [
    "router",
    "ApiaryCreate",
    "ApiaryEnvelope",
    "ApiaryListResponse",
    "ApiaryResponse",
    "ApiaryUpdate",
    "ApiaryService",
    "get_apiary_service",
]
