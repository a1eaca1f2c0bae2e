"""
Electronic delivery API endpoints.

Provides endpoints for:
- Exporting a delivery package (zip download, folder or preview JSON)
- Validating photos without exporting
- Listing export settings and report formats
"""

import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from src.delivery.archive import decode_photo_data
from src.delivery.exceptions import ExportRequestError
from src.delivery.exporter import OUTPUT_FORMATS, DeliveryExporter, ExportConfig
from src.delivery.folder_structure import (
    FolderStructureOptions,
    filter_photos_by_ids,
    generate_folder_structure,
)
from src.delivery.models import PhotoCategory, PhotoMajorCategory
from src.delivery.report import format_report_as_text
from src.delivery.settings import (
    DRA_FOLDER_NAME,
    INDEX_D_XML_NAME,
    MAX_FILE_SIZE_MB,
    PHOTO_XML_NAME,
    PIC_FOLDER_NAME,
    ROOT_FOLDER_NAME,
    STANDARD_VERSION,
    SUPPORTED_STANDARD_VERSIONS,
)
from src.delivery.validator import DeliveryValidator, format_validation_result
from src.web.schemas import ApiResponse, ExportRequest, ValidateRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects/{project_id}/export/electronic-delivery",
    tags=["Electronic Delivery"],
)

REPORT_FORMATS = [
    {"id": "text", "name": "テキスト形式", "extension": ".txt"},
    {"id": "json", "name": "JSON形式", "extension": ".json"},
    {"id": "csv", "name": "CSV形式（写真一覧）", "extension": ".csv"},
]


# ============================================================================
# Dependencies
# ============================================================================

def get_exporter() -> DeliveryExporter:
    """Fresh exporter per request; exporters hold per-run state."""
    return DeliveryExporter()


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _json(status_code: int, start: float, **body: Any) -> JSONResponse:
    payload = ApiResponse(processing_time_ms=_elapsed_ms(start), **body)
    return JSONResponse(status_code=status_code, content=payload.to_dict())


def _error(status_code: int, message: str, start: float) -> JSONResponse:
    return _json(status_code, start, success=False, error=message)


# ============================================================================
# Export
# ============================================================================

@router.post("", summary="Generate an electronic delivery package")
async def export_electronic_delivery(
    project_id: str,
    body: ExportRequest,
    exporter: DeliveryExporter = Depends(get_exporter),
):
    """
    Build the delivery package for a project.

    zip returns the archive as a download. folder and preview return the
    folder structure, both XML documents and the validation result as JSON.
    A failed validation is reported with 200 and success=false so the
    client can show what to fix.
    """
    start = time.perf_counter()

    try:
        if not body.photos:
            return _error(400, "写真データが必要です", start)
        if body.metadata is None:
            return _error(400, "メタデータが必要です", start)

        photos = [p.model_copy(update={"project_id": project_id}) for p in body.photos]
        targets = filter_photos_by_ids(photos, body.config.photo_ids)
        if not targets:
            return _error(400, "エクスポート対象の写真がありません", start)

        config = ExportConfig(
            project_id=project_id,
            output_format=body.config.output_format,
            standard_version=body.config.standard_version or STANDARD_VERSION,
            photo_ids=body.config.photo_ids,
            include_report=body.config.include_report,
            folder_options=FolderStructureOptions(),
        )

        file_contents = None
        if config.output_format == "zip":
            if not body.photo_data:
                return _error(400, "ZIPエクスポートには写真データ(photoData)が必要です", start)
            folder = generate_folder_structure(targets, config.folder_options)
            file_contents = decode_photo_data(body.photo_data, folder)

        result = await exporter.export(targets, body.metadata, config, file_contents)

        if result.folder_structure is None:
            # Failed before anything was generated
            return _error(500, result.error or "エクスポート中にエラーが発生しました", start)

        validation = result.validation_result
        validation_report = format_validation_result(validation) if validation else None

        if config.output_format == "zip":
            if not result.success:
                if validation is not None and not validation.is_valid:
                    return _json(
                        200, start,
                        success=False,
                        error=result.error,
                        data={
                            "validationResult": validation.to_dict(),
                            "validationReport": validation_report,
                        },
                    )
                return _error(500, result.error or "ZIPアーカイブの生成に失敗しました", start)

            archive = result.archive
            file_name = f"electronic_delivery_{project_id}_{int(time.time() * 1000)}.zip"
            logger.info(f"Delivery archive for project {project_id}: {archive.file_count} file(s)")
            return Response(
                content=archive.buffer,
                media_type="application/zip",
                headers={
                    "Content-Disposition": f'attachment; filename="{file_name}"',
                    "Content-Length": str(len(archive.buffer)),
                    "X-Processing-Time-Ms": str(_elapsed_ms(start)),
                    "X-File-Count": str(archive.file_count),
                    "X-Missing-File-Count": str(len(archive.missing_files)),
                },
            )

        data: Dict[str, Any] = {
            "folderStructure": result.folder_structure.to_dict(),
            "photoXml": result.photo_xml,
            "indexDXml": result.index_xml,
            "validationResult": validation.to_dict() if validation else None,
            "validationReport": validation_report,
        }
        if result.report is not None:
            data["deliveryReport"] = result.report.to_dict()
            data["reportText"] = format_report_as_text(result.report)

        return _json(200, start, success=True, data=data)

    except ExportRequestError as e:
        return _error(400, str(e), start)
    except Exception as e:
        logger.error(f"Electronic delivery export failed: {e}", exc_info=True)
        return _error(500, str(e) or "エクスポート中にエラーが発生しました", start)


# ============================================================================
# Validation only
# ============================================================================

@router.put("", summary="Validate photos for electronic delivery")
async def validate_electronic_delivery(project_id: str, body: ValidateRequest):
    start = time.perf_counter()

    try:
        if not body.photos:
            return _error(400, "写真データが必要です", start)

        folder = generate_folder_structure(body.photos)
        result = DeliveryValidator().validate(folder)

        return _json(
            200, start,
            success=True,
            data={
                "validationResult": result.to_dict(),
                "validationReport": format_validation_result(result),
                "photoCount": len(body.photos),
                "isValid": result.is_valid,
                "errorCount": len(result.errors),
                "warningCount": len(result.warnings),
            },
        )

    except Exception as e:
        logger.error(f"Electronic delivery validation failed: {e}", exc_info=True)
        return _error(500, str(e) or "検証中にエラーが発生しました", start)


# ============================================================================
# Settings
# ============================================================================

@router.get("", summary="Get electronic delivery settings")
async def get_electronic_delivery_settings(
    project_id: str,
    format: Optional[str] = Query(None, description="report-formats to list report formats"),
):
    if format == "report-formats":
        return {"success": True, "data": {"formats": REPORT_FORMATS}}

    return {
        "success": True,
        "data": {
            "projectId": project_id,
            "availableFormats": list(OUTPUT_FORMATS),
            "standardVersions": SUPPORTED_STANDARD_VERSIONS,
            "photoCategories": [c.value for c in PhotoCategory],
            "majorCategories": [c.value for c in PhotoMajorCategory],
            "folderStructure": {
                "root": ROOT_FOLDER_NAME,
                "xmlFiles": [PHOTO_XML_NAME, INDEX_D_XML_NAME],
                "photoFolder": PIC_FOLDER_NAME,
                "drawingFolder": DRA_FOLDER_NAME,
            },
            "fileNaming": {
                "photoPattern": "P0000001.JPG",
                "drawingPattern": "D0000001.JPG",
                "description": "P + 7桁連番 + 拡張子",
            },
            "validation": {
                "requiredFields": [
                    "photoTitle",
                    "shootingDate",
                    "photoCategory",
                    "photoMajorCategory",
                ],
                "recommendedFields": ["shootingLocation", "constructionType", "location"],
                "maxFileSizeMB": MAX_FILE_SIZE_MB,
            },
        },
    }
