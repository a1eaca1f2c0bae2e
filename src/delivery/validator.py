"""Delivery package validation.

A fixed, ordered set of rules (structure, file naming, metadata, sequence)
produces blocking errors; a separate warnings pass adds advisory notes.
Domain problems are always reported in the returned ValidationResult and
never raised.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from .file_naming import is_valid_drawing_file_name, is_valid_photo_file_name
from .index_xml import is_valid_index_d_xml
from .models import (
    FolderStructure,
    PhotoCommonInfo,
    PhotoInfoFile,
    ValidationIssue,
    ValidationResult,
)
from .photo_xml import is_valid_photo_xml
from .settings import (
    MAX_FILE_SIZE_MB,
    PHOTO_XML_NAME,
    PIC_FOLDER_NAME,
    SOFTWARE_NAME,
    SOFTWARE_VERSION,
)

logger = logging.getLogger(__name__)

ERROR_CODES = {
    "MISSING_ROOT_FOLDER": "E001",
    "MISSING_PHOTO_XML": "E002",
    "MISSING_PIC_FOLDER": "E003",
    "EMPTY_PHOTO_LIST": "E004",
    "INVALID_PHOTO_FILE_NAME": "E101",
    "INVALID_DRAWING_FILE_NAME": "E102",
    "DUPLICATE_FILE_NAME": "E103",
    "NON_SEQUENTIAL_NUMBER": "E104",
    "MISSING_PHOTO_TITLE": "E201",
    "MISSING_SHOOTING_DATE": "E202",
    "MISSING_PHOTO_CATEGORY": "E203",
    "INVALID_DATE_FORMAT": "E204",
    "INVALID_XML_STRUCTURE": "E301",
    "XML_ENCODING_ERROR": "E302",
}

WARNING_CODES = {
    "MISSING_SHOOTING_LOCATION": "W001",
    "MISSING_CONSTRUCTION_TYPE": "W002",
    "NO_REPRESENTATIVE_PHOTO": "W003",
    "MISSING_LOCATION_INFO": "W004",
    "LARGE_FILE_SIZE": "W005",
}

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass
class ValidatorConfig:
    """Configuration for DeliveryValidator."""

    strict_mode: bool = False  # Also report missing construction type (W002)
    max_file_size_mb: float = MAX_FILE_SIZE_MB


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_valid_date_format(value: str) -> bool:
    """True for YYYY-MM-DD strings naming a real calendar day."""
    if not _DATE_RE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


# =============================================================================
# Rules
# =============================================================================

RuleCheck = Callable[[PhotoInfoFile, FolderStructure], List[ValidationIssue]]


@dataclass(frozen=True)
class ValidationRule:
    id: str
    name: str
    description: str
    check: RuleCheck


def check_structure(_info: PhotoInfoFile, folder: FolderStructure) -> List[ValidationIssue]:
    errors = []
    if not folder.root_folder_name:
        errors.append(ValidationIssue(
            code=ERROR_CODES["MISSING_ROOT_FOLDER"],
            message="ルートフォルダが設定されていません",
        ))
    if not folder.photo_xml_path:
        errors.append(ValidationIssue(
            code=ERROR_CODES["MISSING_PHOTO_XML"],
            message="PHOTO.XMLパスが設定されていません",
        ))
    if not folder.pic_folder_path:
        errors.append(ValidationIssue(
            code=ERROR_CODES["MISSING_PIC_FOLDER"],
            message="PICフォルダパスが設定されていません",
        ))
    if not folder.photo_files:
        errors.append(ValidationIssue(
            code=ERROR_CODES["EMPTY_PHOTO_LIST"],
            message="写真ファイルが含まれていません",
        ))
    return errors


def check_file_naming(_info: PhotoInfoFile, folder: FolderStructure) -> List[ValidationIssue]:
    errors = []
    seen = set()

    for entry in folder.photo_files:
        name = entry.delivery_file_name
        if not is_valid_photo_file_name(name):
            errors.append(ValidationIssue(
                code=ERROR_CODES["INVALID_PHOTO_FILE_NAME"],
                message="ファイル名が規則に準拠していません",
                target_file=name,
                details="P + 7桁連番 + .JPG形式で指定してください",
            ))
        errors.extend(_check_duplicate(name, seen))

    for entry in folder.drawing_files:
        name = entry.delivery_file_name
        if not is_valid_drawing_file_name(name):
            errors.append(ValidationIssue(
                code=ERROR_CODES["INVALID_DRAWING_FILE_NAME"],
                message="参考図ファイル名が規則に準拠していません",
                target_file=name,
            ))
        errors.extend(_check_duplicate(name, seen))

    return errors


def _check_duplicate(name: str, seen: set) -> List[ValidationIssue]:
    # Delivery names are unique across photos and drawings
    if name not in seen:
        seen.add(name)
        return []
    return [ValidationIssue(
        code=ERROR_CODES["DUPLICATE_FILE_NAME"],
        message="ファイル名が重複しています",
        target_file=name,
    )]


def check_metadata(_info: PhotoInfoFile, folder: FolderStructure) -> List[ValidationIssue]:
    errors = []

    for entry in folder.photo_files:
        photo = entry.photo_info
        name = entry.delivery_file_name

        if not photo.photo_title or not photo.photo_title.strip():
            errors.append(ValidationIssue(
                code=ERROR_CODES["MISSING_PHOTO_TITLE"],
                message="写真タイトルが設定されていません",
                target_file=name,
                target_field="photoTitle",
            ))

        if not photo.shooting_date:
            errors.append(ValidationIssue(
                code=ERROR_CODES["MISSING_SHOOTING_DATE"],
                message="撮影日が設定されていません",
                target_file=name,
                target_field="shootingDate",
            ))
        elif not is_valid_date_format(photo.shooting_date):
            errors.append(ValidationIssue(
                code=ERROR_CODES["INVALID_DATE_FORMAT"],
                message="撮影日の形式が不正です",
                target_file=name,
                target_field="shootingDate",
                details="YYYY-MM-DD形式で指定してください",
            ))

        if not photo.photo_category:
            errors.append(ValidationIssue(
                code=ERROR_CODES["MISSING_PHOTO_CATEGORY"],
                message="写真区分が設定されていません",
                target_file=name,
                target_field="photoCategory",
            ))

    return errors


def check_sequence(_info: PhotoInfoFile, folder: FolderStructure) -> List[ValidationIssue]:
    # Re-checked here even though the builder numbers contiguously; the
    # folder may have been reconstructed elsewhere.
    numbers = sorted(entry.photo_info.photo_number for entry in folder.photo_files)
    for expected, number in enumerate(numbers, start=1):
        if number != expected:
            return [ValidationIssue(
                code=ERROR_CODES["NON_SEQUENTIAL_NUMBER"],
                message="写真番号が連続していません",
                details=f"番号 {number} (期待値: {expected})",
            )]
    return []


DEFAULT_RULES: Tuple[ValidationRule, ...] = (
    ValidationRule("structure", "フォルダ構造検証", "電子納品フォルダ構造の妥当性を検証", check_structure),
    ValidationRule("file-naming", "ファイル名規則検証", "ファイル名が電子納品規則に準拠しているか検証", check_file_naming),
    ValidationRule("metadata", "メタデータ検証", "必須メタデータが設定されているか検証", check_metadata),
    ValidationRule("sequence", "連番検証", "写真番号が連続しているか検証", check_sequence),
)


# =============================================================================
# Validator
# =============================================================================


class DeliveryValidator:
    """Runs the rule set and the warnings pass over a folder structure."""

    def __init__(self, config: Optional[ValidatorConfig] = None):
        self.config = config or ValidatorConfig()
        self.rules = DEFAULT_RULES

    def validate(
        self, folder: FolderStructure, photo_info_file: Optional[PhotoInfoFile] = None
    ) -> ValidationResult:
        """Validate a folder structure.

        Args:
            folder: Folder structure to check
            photo_info_file: PHOTO.XML content; derived from folder when omitted

        Returns:
            Fresh ValidationResult; is_valid is True when no rule reported an error
        """
        info = photo_info_file or self._build_photo_info_file(folder)

        errors: List[ValidationIssue] = []
        for rule in self.rules:
            errors.extend(rule.check(info, folder))

        warnings = self._check_warnings(folder)

        logger.debug(
            f"Validated {folder.root_folder_name}: {len(errors)} error(s), {len(warnings)} warning(s)"
        )
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            validated_at=utc_timestamp(),
            target_folder=folder.root_folder_name,
        )

    def validate_xml(self, xml: str) -> ValidationResult:
        """Structural check of a PHOTO.XML document only."""
        errors = []
        if not is_valid_photo_xml(xml):
            errors.append(ValidationIssue(
                code=ERROR_CODES["INVALID_XML_STRUCTURE"],
                message="XML構造が不正です",
                details="必要な要素が不足しているか、構造が正しくありません",
            ))
        return ValidationResult(
            is_valid=not errors, errors=errors, validated_at=utc_timestamp()
        )

    def validate_index_xml(self, xml: str) -> ValidationResult:
        """Structural check of an INDEX_D.XML document only."""
        errors = []
        if not is_valid_index_d_xml(xml):
            errors.append(ValidationIssue(
                code=ERROR_CODES["INVALID_XML_STRUCTURE"],
                message="XML構造が不正です",
                target_file="INDEX_D.XML",
                details="必要な要素が不足しているか、構造が正しくありません",
            ))
        return ValidationResult(
            is_valid=not errors, errors=errors, validated_at=utc_timestamp()
        )

    def _check_warnings(self, folder: FolderStructure) -> List[ValidationIssue]:
        warnings: List[ValidationIssue] = []

        if not any(entry.photo_info.is_representative_photo for entry in folder.photo_files):
            warnings.append(ValidationIssue(
                code=WARNING_CODES["NO_REPRESENTATIVE_PHOTO"],
                message="代表写真が設定されていません",
                details="代表写真を1枚以上設定することを推奨します",
            ))

        max_mb = self.config.max_file_size_mb
        for entry in folder.photo_files:
            photo = entry.photo_info
            name = entry.delivery_file_name

            if not photo.shooting_location:
                warnings.append(ValidationIssue(
                    code=WARNING_CODES["MISSING_SHOOTING_LOCATION"],
                    message="撮影箇所が設定されていません",
                    target_file=name,
                ))

            if self.config.strict_mode and not photo.construction_type:
                warnings.append(ValidationIssue(
                    code=WARNING_CODES["MISSING_CONSTRUCTION_TYPE"],
                    message="工種が設定されていません",
                    target_file=name,
                    target_field="constructionType",
                ))

            if photo.location is None:
                warnings.append(ValidationIssue(
                    code=WARNING_CODES["MISSING_LOCATION_INFO"],
                    message="位置情報が設定されていません",
                    target_file=name,
                ))

            size_mb = entry.file_size / (1024 * 1024)
            if size_mb > max_mb:
                warnings.append(ValidationIssue(
                    code=WARNING_CODES["LARGE_FILE_SIZE"],
                    message=f"ファイルサイズが大きいです ({size_mb:.2f}MB)",
                    target_file=name,
                    details=f"推奨: {max_mb:g}MB以下",
                ))

        return warnings

    @staticmethod
    def _build_photo_info_file(folder: FolderStructure) -> PhotoInfoFile:
        return PhotoInfoFile(
            common_info=PhotoCommonInfo(
                applicable_standard="",
                photo_info_file_name=PHOTO_XML_NAME,
                photo_folder_name=folder.root_folder_name,
                photo_file_folder_name=PIC_FOLDER_NAME,
                software_name=SOFTWARE_NAME,
                software_version=SOFTWARE_VERSION,
            ),
            photo_info_list=[entry.photo_info for entry in folder.photo_files],
        )


def merge_validation_results(
    *results: ValidationResult, target_folder: Optional[str] = None
) -> ValidationResult:
    """Combine several results into a new one, keeping issue order."""
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    for result in results:
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    if target_folder is None:
        target_folder = next((r.target_folder for r in results if r.target_folder), "")

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        validated_at=utc_timestamp(),
        target_folder=target_folder,
    )


# =============================================================================
# Formatting
# =============================================================================


def format_validation_result(result: ValidationResult) -> str:
    """Fixed-layout text report, displayed verbatim by the CLI and web UI."""
    lines = [
        "=" * 60,
        "電子納品検証結果",
        "=" * 60,
        f"検証日時: {result.validated_at}",
        f"対象フォルダ: {result.target_folder}",
        f"結果: {'合格' if result.is_valid else '不合格'}",
        "",
    ]

    if result.errors:
        lines.append(f"エラー ({len(result.errors)}件):")
        lines.append("-" * 40)
        for error in result.errors:
            lines.append(f"  [{error.code}] {error.message}")
            if error.target_file:
                lines.append(f"    ファイル: {error.target_file}")
            if error.target_field:
                lines.append(f"    項目: {error.target_field}")
            if error.details:
                lines.append(f"    詳細: {error.details}")
        lines.append("")

    if result.warnings:
        lines.append(f"警告 ({len(result.warnings)}件):")
        lines.append("-" * 40)
        for warning in result.warnings:
            lines.append(f"  [{warning.code}] {warning.message}")
            if warning.target_file:
                lines.append(f"    ファイル: {warning.target_file}")
            if warning.details:
                lines.append(f"    詳細: {warning.details}")

    lines.append("=" * 60)
    return "\n".join(lines)


def format_validation_result_as_json(result: ValidationResult) -> str:
    return result.to_json(indent=2)
