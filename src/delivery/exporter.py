"""Electronic delivery export orchestration."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional

from .archive import ArchiveResult, create_delivery_archive
from .exceptions import ExportRequestError
from .folder_structure import (
    FolderStructureOptions,
    filter_photos_by_ids,
    generate_folder_structure,
)
from .index_xml import generate_index_d_xml
from .models import (
    DeliveryReport,
    ExportMetadata,
    ExportProgress,
    ExportStep,
    FolderStructure,
    ProjectPhoto,
    ValidationResult,
)
from .photo_xml import generate_photo_xml
from .report import generate_delivery_report
from .settings import STANDARD_VERSION
from .validator import DeliveryValidator, format_validation_result, merge_validation_results
from .xml_writer import XmlConfig

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("zip", "folder", "preview")
TOTAL_STEPS = 6

ProgressCallback = Callable[[ExportProgress], None]


@dataclass
class ExportConfig:
    """Configuration for one export run."""

    project_id: str = ""
    output_format: str = "zip"
    standard_version: str = STANDARD_VERSION
    photo_ids: Optional[List[str]] = None  # None exports every photo
    include_report: bool = False
    folder_options: FolderStructureOptions = field(default_factory=FolderStructureOptions)

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ExportRequestError(f"不正な出力形式です: {self.output_format}")


@dataclass
class ExportResult:
    """Result from an export run."""

    success: bool
    processing_time_ms: int = 0
    folder_structure: Optional[FolderStructure] = None
    photo_xml: Optional[str] = None
    index_xml: Optional[str] = None
    validation_result: Optional[ValidationResult] = None
    report: Optional[DeliveryReport] = None
    archive: Optional[ArchiveResult] = None
    error: Optional[str] = None


class DeliveryExporter:
    """Runs the export steps in order and reports progress.

    preparing -> creating-folders -> copying-photos -> generating-xml ->
    validating -> creating-archive -> completed. A validation failure stops
    the run before any archive is built.
    """

    def __init__(self, validator: Optional[DeliveryValidator] = None):
        self.validator = validator or DeliveryValidator()
        self._progress_callback: Optional[ProgressCallback] = None

    def on_progress(self, callback: ProgressCallback):
        self._progress_callback = callback

    def _emit(
        self,
        step: ExportStep,
        completed: int,
        processed: int,
        total: int,
        current_file: Optional[str] = None,
    ):
        if self._progress_callback is None:
            return
        self._progress_callback(
            ExportProgress(
                current_step=step,
                total_steps=TOTAL_STEPS,
                completed_steps=completed,
                progress_percent=completed * 100 // TOTAL_STEPS,
                current_file=current_file,
                processed_files=processed,
                total_files=total,
            )
        )

    async def export(
        self,
        photos: List[ProjectPhoto],
        metadata: ExportMetadata,
        config: Optional[ExportConfig] = None,
        file_contents: Optional[Mapping[str, bytes]] = None,
    ) -> ExportResult:
        """Execute the full export.

        Args:
            photos: Candidate photos
            metadata: Project metadata for the XML documents and report
            config: Export configuration
            file_contents: Photo bytes for zip output, keyed by content_key()

        Returns:
            ExportResult; success is False on validation failure or error
        """
        config = config or ExportConfig()
        start = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start) * 1000)

        try:
            logger.info(
                f"Starting electronic delivery export ({config.output_format}, {len(photos)} photo(s))"
            )
            self._emit(ExportStep.PREPARING, 0, 0, len(photos))

            targets = filter_photos_by_ids(photos, config.photo_ids)
            if not targets:
                logger.warning("No photos selected for export")
                return ExportResult(
                    success=False,
                    error="エクスポート対象の写真がありません",
                    processing_time_ms=elapsed_ms(),
                )

            # 1. Folder structure
            self._emit(ExportStep.CREATING_FOLDERS, 1, 0, len(targets))
            folder = generate_folder_structure(targets, config.folder_options)
            total = len(folder.photo_files)

            # 2. Photo placement (bytes are only touched when archiving)
            self._emit(ExportStep.COPYING_PHOTOS, 2, 0, total)
            for index, entry in enumerate(folder.photo_files, start=1):
                self._emit(
                    ExportStep.COPYING_PHOTOS, 2, index, total,
                    current_file=entry.delivery_file_name,
                )

            # 3. XML documents
            self._emit(ExportStep.GENERATING_XML, 3, total, total)
            xml_config = XmlConfig(standard_version=config.standard_version)
            photo_xml = generate_photo_xml(folder, metadata, xml_config)
            index_xml = generate_index_d_xml(
                metadata, xml_config, photo_folder_name=folder.root_folder_name
            )

            # 4. Validation gate
            self._emit(ExportStep.VALIDATING, 4, total, total)
            validation = merge_validation_results(
                self.validator.validate(folder),
                self.validator.validate_xml(photo_xml),
                target_folder=folder.root_folder_name,
            )

            report = None
            if config.include_report:
                report = generate_delivery_report(folder, metadata, validation)

            if not validation.is_valid:
                logger.warning(
                    f"Validation failed with {len(validation.errors)} error(s); export stopped"
                )
                return ExportResult(
                    success=False,
                    error="検証エラーが発生しました",
                    folder_structure=folder,
                    photo_xml=photo_xml,
                    index_xml=index_xml,
                    validation_result=validation,
                    report=report,
                    processing_time_ms=elapsed_ms(),
                )

            # 5. Archive
            archive = None
            if config.output_format == "zip":
                self._emit(ExportStep.CREATING_ARCHIVE, 5, total, total)
                archive = await create_delivery_archive(
                    folder, metadata, file_contents or {}, xml_config
                )
                if not archive.success:
                    raise RuntimeError(archive.error or "ZIPアーカイブの生成に失敗しました")

            self._emit(ExportStep.COMPLETED, 6, total, total)
            logger.info(f"Export completed: {total} photo(s)")

            return ExportResult(
                success=True,
                folder_structure=folder,
                photo_xml=photo_xml,
                index_xml=index_xml,
                validation_result=validation,
                report=report,
                archive=archive,
                processing_time_ms=elapsed_ms(),
            )

        except Exception as e:
            logger.error(f"Export failed: {e}", exc_info=True)
            self._emit(ExportStep.FAILED, 0, 0, len(photos))
            return ExportResult(
                success=False,
                error=str(e) or "不明なエラー",
                processing_time_ms=elapsed_ms(),
            )

    def generate_folder(
        self, photos: List[ProjectPhoto], options: Optional[FolderStructureOptions] = None
    ) -> FolderStructure:
        return generate_folder_structure(photos, options)

    def generate_xml(self, folder: FolderStructure, metadata: ExportMetadata) -> str:
        return generate_photo_xml(folder, metadata)

    def validate(self, folder: FolderStructure) -> str:
        """Validate and return the formatted text report."""
        return format_validation_result(self.validator.validate(folder))
