"""Inspection module: offline-safe creation and locking."""

from myhive.inspections.router import router
from myhive.inspections.schemas import (
    InspectionCreate,
    InspectionEnvelope,
    InspectionListResponse,
    InspectionResponse,
    InspectionSections,
    InspectionUpdate,
)
from myhive.inspections.service import InspectionService, get_inspection_service

__all__ = [
    "router",
    "InspectionCreate",
    "InspectionEnvelope",
    "InspectionListResponse",
    "InspectionResponse",
    "InspectionSections",
    "InspectionUpdate",
    "InspectionService",
    "get_inspection_service",
]
