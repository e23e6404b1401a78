"""Hive management module."""

from myhive.hives.router import router
from myhive.hives.schemas import (
    HiveCreate,
    HiveDetailResponse,
    HiveEnvelope,
    HiveListResponse,
    HivePublicResponse,
    HiveResponse,
    HiveUpdate,
)
from myhive.hives.service import HiveService, get_hive_service, public_hive_exists

__all__ = [
    "router",
    "HiveCreate",
    "HiveDetailResponse",
    "HiveEnvelope",
    "HiveListResponse",
    "HivePublicResponse",
    "HiveResponse",
    "HiveUpdate",
    "HiveService",
    "get_hive_service",
    "public_hive_exists",
]
