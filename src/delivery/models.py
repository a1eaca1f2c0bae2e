"""Data models for the electronic delivery export.

Field names are snake_case in Python and camelCase on the wire, so the same
models serve the web layer, the CLI manifests and the JSON reports.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .settings import GEODETIC_SYSTEM


class DeliveryModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FrozenDeliveryModel(DeliveryModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class PhotoMajorCategory(str, Enum):
    CONSTRUCTION = "工事写真"
    COMPLETION = "完成写真"
    OTHER = "その他写真"


class PhotoCategory(str, Enum):
    CONSTRUCTION = "工事"
    BEFORE_START = "着工前"
    COMPLETION = "完成"
    PROGRESS = "施工状況"
    SAFETY = "安全管理"
    MATERIALS = "使用材料"
    QUALITY = "品質管理"
    AS_BUILT = "出来形管理"
    OTHER = "その他"


# =============================================================================
# Input
# =============================================================================


class GeoPoint(DeliveryModel):
    """Decimal latitude/longitude as captured."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ProjectPhoto(DeliveryModel):
    """Photo record supplied by the caller for one export run."""

    id: str
    project_id: Optional[str] = None
    file_name: str
    file_path: str = ""
    file_size: int = Field(default=0, ge=0)
    mime_type: Optional[str] = None
    shooting_date: Optional[datetime] = None
    title: str = ""
    major_category: str = PhotoMajorCategory.CONSTRUCTION.value
    category: Optional[str] = None
    construction_type: Optional[str] = None
    work_type: Optional[str] = None
    detail_type: Optional[str] = None
    shooting_location: Optional[str] = None
    is_representative: bool = False
    remarks: Optional[str] = None
    location: Optional[GeoPoint] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExportMetadata(DeliveryModel):
    """Project-level information for INDEX_D.XML and the report."""

    construction_name: str = Field(min_length=1)
    contractor_name: str = Field(min_length=1)
    orderer_name: Optional[str] = None
    construction_start_date: Optional[str] = None
    construction_end_date: Optional[str] = None
    construction_number: Optional[str] = None
    orderer_code: Optional[str] = None
    construction_field: Optional[str] = None
    work_type: Optional[str] = None
    construction_summary: Optional[str] = None
    address_code: Optional[str] = None
    address: Optional[str] = None
    media_number: int = Field(default=1, ge=1)
    total_media_count: int = Field(default=1, ge=1)


class DeliveryManifest(DeliveryModel):
    """On-disk input for the CLI: metadata plus the photo list."""

    metadata: ExportMetadata
    photos: List[ProjectPhoto] = Field(default_factory=list)


# =============================================================================
# PHOTO.XML schema
# =============================================================================


class PhotoLocation(FrozenDeliveryModel):
    geodetic_system: str = GEODETIC_SYSTEM
    latitude: Optional[str] = None  # DMS, e.g. 35°41'22.15"N
    longitude: Optional[str] = None


class PhotoInfo(FrozenDeliveryModel):
    """Per-photo record of PHOTO.XML."""

    photo_number: int
    photo_file_name: str
    photo_file_japanese_name: Optional[str] = None
    media_number: Optional[int] = None
    photo_major_category: str
    photo_category: str = ""
    construction_type: Optional[str] = None
    work_type: Optional[str] = None
    detail_type: Optional[str] = None
    photo_title: str = ""
    shooting_location: Optional[str] = None
    shooting_date: str = ""  # YYYY-MM-DD
    is_representative_photo: bool = False
    is_submission_frequency_photo: bool = False
    construction_management_value: Optional[str] = None
    contractor_description: Optional[str] = None
    has_drawing: bool = False
    drawing_file_name: Optional[str] = None
    drawing_file_japanese_name: Optional[str] = None
    drawing_title: Optional[str] = None
    remarks: Optional[str] = None
    photographer_name: Optional[str] = None
    location: Optional[PhotoLocation] = None


class PhotoCommonInfo(DeliveryModel):
    applicable_standard: str
    photo_info_file_name: str
    photo_folder_name: str
    photo_file_folder_name: str
    drawing_folder_name: Optional[str] = None
    software_name: str
    software_version: str


class PhotoInfoFile(DeliveryModel):
    common_info: PhotoCommonInfo
    photo_info_list: List[PhotoInfo] = Field(default_factory=list)


# =============================================================================
# Folder structure
# =============================================================================


class PhotoFileEntry(DeliveryModel):
    original_file_name: str
    delivery_file_name: str
    file_path: str
    file_size: int = 0
    photo_info: PhotoInfo
    photo_id: Optional[str] = None


class DrawingFileEntry(DeliveryModel):
    original_file_name: str
    delivery_file_name: str
    file_path: str
    file_size: int = 0


class FolderStructure(DeliveryModel):
    """In-memory descriptor of the delivery package layout."""

    root_folder_name: str
    photo_xml_path: str
    pic_folder_path: str
    dra_folder_path: Optional[str] = None
    photo_files: List[PhotoFileEntry] = Field(default_factory=list)
    drawing_files: List[DrawingFileEntry] = Field(default_factory=list)


# =============================================================================
# Validation
# =============================================================================


class ValidationIssue(FrozenDeliveryModel):
    """A validation error or warning."""

    code: str
    message: str
    target_file: Optional[str] = None
    target_field: Optional[str] = None
    details: Optional[str] = None


class ValidationResult(FrozenDeliveryModel):
    is_valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    validated_at: str
    target_folder: str = ""


# =============================================================================
# Report
# =============================================================================


class ConstructionInfo(DeliveryModel):
    construction_name: str
    contractor_name: str
    orderer_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class FileStatistics(DeliveryModel):
    total_files: int
    photo_count: int
    drawing_count: int
    xml_count: int
    total_size: int
    total_size_formatted: str
    representative_photo_count: int


class FileInfo(DeliveryModel):
    path: str
    name: str
    size: int
    size_formatted: str


class FolderStructureInfo(DeliveryModel):
    root_folder: str
    folders: List[str] = Field(default_factory=list)
    files: List[FileInfo] = Field(default_factory=list)


class ValidationSummary(DeliveryModel):
    is_valid: bool
    error_count: int
    warning_count: int
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PhotoListItem(DeliveryModel):
    number: int
    delivery_file_name: str
    original_file_name: str
    title: str
    major_category: str
    category: str
    shooting_date: str
    shooting_location: Optional[str] = None
    is_representative: bool
    file_size: int
    file_size_formatted: str


class DeliveryReport(DeliveryModel):
    generated_at: datetime
    construction_info: ConstructionInfo
    file_statistics: FileStatistics
    folder_structure: FolderStructureInfo
    validation_summary: Optional[ValidationSummary] = None
    photo_list: List[PhotoListItem] = Field(default_factory=list)


# =============================================================================
# Export progress
# =============================================================================


class ExportStep(str, Enum):
    PREPARING = "preparing"
    CREATING_FOLDERS = "creating-folders"
    COPYING_PHOTOS = "copying-photos"
    GENERATING_XML = "generating-xml"
    VALIDATING = "validating"
    CREATING_ARCHIVE = "creating-archive"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportProgress(DeliveryModel):
    current_step: ExportStep
    total_steps: int = 6
    completed_steps: int
    progress_percent: int
    current_file: Optional[str] = None
    processed_files: int = 0
    total_files: int = 0
