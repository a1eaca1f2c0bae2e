"""Electronic Delivery Module

Builds government-standard photo delivery packages: renamed P0000001.JPG
files, PHOTO.XML and INDEX_D.XML, validation and a ZIP archive.
"""

from .archive import ArchiveResult, create_delivery_archive
from .exporter import DeliveryExporter, ExportConfig, ExportResult
from .file_naming import FileNameGenerator
from .folder_structure import FolderStructureOptions, generate_folder_structure
from .index_xml import generate_index_d_xml
from .models import (
    ExportMetadata,
    ExportProgress,
    ExportStep,
    FolderStructure,
    ProjectPhoto,
    ValidationIssue,
    ValidationResult,
)
from .photo_xml import generate_photo_xml
from .report import generate_delivery_report
from .validator import DeliveryValidator, ValidatorConfig, format_validation_result

__all__ = [
    "ArchiveResult",
    "create_delivery_archive",
    "DeliveryExporter",
    "ExportConfig",
    "ExportResult",
    "FileNameGenerator",
    "FolderStructureOptions",
    "generate_folder_structure",
    "generate_index_d_xml",
    "ExportMetadata",
    "ExportProgress",
    "ExportStep",
    "FolderStructure",
    "ProjectPhoto",
    "ValidationIssue",
    "ValidationResult",
    "generate_photo_xml",
    "generate_delivery_report",
    "DeliveryValidator",
    "ValidatorConfig",
    "format_validation_result",
]
