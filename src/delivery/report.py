"""Delivery report generation (text / JSON / CSV)."""

import math
import unicodedata
from datetime import datetime, timezone
from typing import List, Optional

from .folder_structure import FOLDER_NAMES
from .models import (
    ConstructionInfo,
    DeliveryReport,
    ExportMetadata,
    FileInfo,
    FileStatistics,
    FolderStructure,
    FolderStructureInfo,
    PhotoListItem,
    ValidationResult,
    ValidationSummary,
)
from .settings import INDEX_D_XML_NAME

SIZE_UNITS = ["B", "KB", "MB", "GB"]

CSV_HEADERS = [
    "番号",
    "納品ファイル名",
    "元ファイル名",
    "タイトル",
    "大分類",
    "区分",
    "撮影日",
    "撮影箇所",
    "代表写真",
    "ファイルサイズ",
]


def generate_delivery_report(
    folder: FolderStructure,
    metadata: ExportMetadata,
    validation_result: Optional[ValidationResult] = None,
) -> DeliveryReport:
    """Aggregate a folder structure into a DeliveryReport.

    Args:
        folder: Generated folder structure
        metadata: Project metadata
        validation_result: Included as a summary when given

    Returns:
        DeliveryReport stamped with the current UTC time
    """
    return DeliveryReport(
        generated_at=datetime.now(timezone.utc),
        construction_info=ConstructionInfo(
            construction_name=metadata.construction_name,
            contractor_name=metadata.contractor_name,
            orderer_name=metadata.orderer_name,
            start_date=metadata.construction_start_date,
            end_date=metadata.construction_end_date,
        ),
        file_statistics=_calculate_file_statistics(folder),
        folder_structure=_build_folder_structure_info(folder),
        validation_summary=(
            _build_validation_summary(validation_result) if validation_result else None
        ),
        photo_list=_build_photo_list(folder),
    )


def _build_photo_list(folder: FolderStructure) -> List[PhotoListItem]:
    return [
        PhotoListItem(
            number=entry.photo_info.photo_number,
            delivery_file_name=entry.delivery_file_name,
            original_file_name=entry.original_file_name,
            title=entry.photo_info.photo_title,
            major_category=entry.photo_info.photo_major_category,
            category=entry.photo_info.photo_category,
            shooting_date=entry.photo_info.shooting_date,
            shooting_location=entry.photo_info.shooting_location,
            is_representative=entry.photo_info.is_representative_photo,
            file_size=entry.file_size,
            file_size_formatted=format_file_size(entry.file_size),
        )
        for entry in folder.photo_files
    ]


def _calculate_file_statistics(folder: FolderStructure) -> FileStatistics:
    photo_count = len(folder.photo_files)
    drawing_count = len(folder.drawing_files)
    xml_count = 2  # PHOTO.XML + INDEX_D.XML
    total_size = sum(f.file_size for f in folder.photo_files) + sum(
        f.file_size for f in folder.drawing_files
    )
    return FileStatistics(
        total_files=photo_count + drawing_count + xml_count,
        photo_count=photo_count,
        drawing_count=drawing_count,
        xml_count=xml_count,
        total_size=total_size,
        total_size_formatted=format_file_size(total_size),
        representative_photo_count=sum(
            1 for f in folder.photo_files if f.photo_info.is_representative_photo
        ),
    )


def _build_folder_structure_info(folder: FolderStructure) -> FolderStructureInfo:
    root = folder.root_folder_name
    folders = [root, f"{root}/{FOLDER_NAMES['PIC']}"]
    if folder.dra_folder_path:
        folders.append(f"{root}/{FOLDER_NAMES['DRA']}")

    # XML sizes are only known once the documents are rendered
    files = [
        FileInfo(path=INDEX_D_XML_NAME, name=INDEX_D_XML_NAME, size=0, size_formatted="-"),
        FileInfo(
            path=f"{root}/{FOLDER_NAMES['PHOTO_XML']}",
            name=FOLDER_NAMES["PHOTO_XML"],
            size=0,
            size_formatted="-",
        ),
    ]
    for entry in folder.photo_files:
        files.append(FileInfo(
            path=f"{root}/{FOLDER_NAMES['PIC']}/{entry.delivery_file_name}",
            name=entry.delivery_file_name,
            size=entry.file_size,
            size_formatted=format_file_size(entry.file_size),
        ))
    for entry in folder.drawing_files:
        files.append(FileInfo(
            path=f"{root}/{FOLDER_NAMES['DRA']}/{entry.delivery_file_name}",
            name=entry.delivery_file_name,
            size=entry.file_size,
            size_formatted=format_file_size(entry.file_size),
        ))

    return FolderStructureInfo(root_folder=root, folders=folders, files=files)


def _summary_line(code: str, message: str, target_file: Optional[str]) -> str:
    suffix = f" ({target_file})" if target_file else ""
    return f"[{code}] {message}{suffix}"


def _build_validation_summary(result: ValidationResult) -> ValidationSummary:
    return ValidationSummary(
        is_valid=result.is_valid,
        error_count=len(result.errors),
        warning_count=len(result.warnings),
        errors=[_summary_line(e.code, e.message, e.target_file) for e in result.errors],
        warnings=[_summary_line(w.code, w.message, w.target_file) for w in result.warnings],
    )


def format_file_size(size: int) -> str:
    """Human-readable size in binary units, e.g. 1536 -> "1.50 KB"."""
    if size <= 0:
        return "0 B"
    unit_index = min(int(math.floor(math.log(size, 1024))), len(SIZE_UNITS) - 1)
    # log() can land just under an exact power of 1024
    if unit_index + 1 < len(SIZE_UNITS) and size >= 1024 ** (unit_index + 1):
        unit_index += 1
    value = size / (1024 ** unit_index)
    decimals = 2 if unit_index > 0 else 0
    return f"{value:.{decimals}f} {SIZE_UNITS[unit_index]}"


# =============================================================================
# Fixed-width text helpers
# =============================================================================


def char_width(char: str) -> int:
    """Terminal column width: 2 for East Asian wide/fullwidth characters."""
    return 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1


def display_width(text: str) -> int:
    return sum(char_width(c) for c in text)


def pad_right(text: str, width: int) -> str:
    return text + " " * max(0, width - display_width(text))


def truncate(text: str, max_width: int) -> str:
    """Cut text so it fits max_width columns including a trailing "..."."""
    used = 0
    result = []
    for char in text:
        w = char_width(char)
        if used + w > max_width - 3:
            return "".join(result) + "..."
        used += w
        result.append(char)
    return "".join(result)


def _format_local_time(value: datetime) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


# =============================================================================
# Renderers
# =============================================================================


def format_report_as_text(report: DeliveryReport) -> str:
    divider = "=" * 70
    sub_divider = "-" * 70
    info = report.construction_info
    stats = report.file_statistics

    lines = [divider, "電子納品レポート", divider, ""]
    lines.append(f"生成日時: {_format_local_time(report.generated_at)}")
    lines.append("")

    lines += [sub_divider, "工事情報", sub_divider]
    lines.append(f"工事件名: {info.construction_name}")
    lines.append(f"受注者名: {info.contractor_name}")
    if info.orderer_name:
        lines.append(f"発注者名: {info.orderer_name}")
    if info.start_date:
        lines.append(f"工期開始日: {info.start_date}")
    if info.end_date:
        lines.append(f"工期終了日: {info.end_date}")
    lines.append("")

    lines += [sub_divider, "ファイル統計", sub_divider]
    lines.append(f"総ファイル数: {stats.total_files}")
    lines.append(f"  - 写真ファイル: {stats.photo_count}")
    lines.append(f"  - 参考図ファイル: {stats.drawing_count}")
    lines.append(f"  - XMLファイル: {stats.xml_count}")
    lines.append(f"総ファイルサイズ: {stats.total_size_formatted}")
    lines.append(f"代表写真数: {stats.representative_photo_count}")
    lines.append("")

    lines += [sub_divider, "フォルダ構造", sub_divider]
    for folder in report.folder_structure.folders:
        lines.append(f"  {folder}/")
    lines.append("")

    summary = report.validation_summary
    if summary:
        lines += [sub_divider, "検証結果", sub_divider]
        lines.append(f"結果: {'合格' if summary.is_valid else '不合格'}")
        lines.append(f"エラー: {summary.error_count}件")
        lines.append(f"警告: {summary.warning_count}件")
        if summary.errors:
            lines += ["", "エラー一覧:"]
            lines += [f"  - {error}" for error in summary.errors]
        if summary.warnings:
            lines += ["", "警告一覧:"]
            lines += [f"  - {warning}" for warning in summary.warnings]
        lines.append("")

    lines += [sub_divider, "写真一覧", sub_divider, ""]
    lines.append(
        pad_right("No.", 6)
        + pad_right("ファイル名", 16)
        + pad_right("タイトル", 30)
        + pad_right("撮影日", 12)
        + "サイズ"
    )
    lines.append("-" * 80)
    for photo in report.photo_list:
        marker = "*" if photo.is_representative else " "
        lines.append(
            pad_right(f"{photo.number}{marker}", 6)
            + pad_right(photo.delivery_file_name, 16)
            + pad_right(truncate(photo.title, 28), 30)
            + pad_right(photo.shooting_date, 12)
            + photo.file_size_formatted
        )

    lines += ["", "* = 代表写真", "", divider]
    return "\n".join(lines)


def format_report_as_json(report: DeliveryReport) -> str:
    return report.to_json(indent=2)


def _csv_field(value: str) -> str:
    if any(c in value for c in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_photo_list_as_csv(report: DeliveryReport) -> str:
    """Photo list as CSV; the title column is always quoted."""
    rows = [",".join(CSV_HEADERS)]
    for photo in report.photo_list:
        title = '"' + photo.title.replace('"', '""') + '"'
        fields = [
            str(photo.number),
            _csv_field(photo.delivery_file_name),
            _csv_field(photo.original_file_name),
            title,
            _csv_field(photo.major_category),
            _csv_field(photo.category),
            photo.shooting_date,
            _csv_field(photo.shooting_location or ""),
            "Yes" if photo.is_representative else "No",
            photo.file_size_formatted,
        ]
        rows.append(",".join(fields))
    return "\n".join(rows)
