"""
Request and response schemas for the electronic delivery API.

All schemas use camelCase on the wire, matching the delivery models.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from src.delivery.models import DeliveryModel, ExportMetadata, ProjectPhoto


class ExportRequestConfig(DeliveryModel):
    output_format: Literal["zip", "folder", "preview"] = "zip"
    standard_version: Optional[str] = None
    photo_ids: Optional[List[str]] = None
    include_report: bool = False


class ExportRequest(DeliveryModel):
    """
    Body of POST /projects/{id}/export/electronic-delivery.

    photos and metadata are optional here so that their absence is reported
    with a specific message instead of a generic schema error.
    """

    config: ExportRequestConfig = Field(default_factory=ExportRequestConfig)
    metadata: Optional[ExportMetadata] = None
    photos: Optional[List[ProjectPhoto]] = None
    # Base64 image bytes keyed by original file name (zip only)
    photo_data: Optional[Dict[str, str]] = None


class ValidateRequest(DeliveryModel):
    photos: Optional[List[ProjectPhoto]] = None


class ApiResponse(DeliveryModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    processing_time_ms: Optional[int] = None
