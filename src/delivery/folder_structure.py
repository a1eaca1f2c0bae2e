"""Builds the delivery folder descriptor from project photos."""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .file_naming import FileNameGenerator, get_extension, is_supported_photo_extension
from .models import (
    DrawingFileEntry,
    FolderStructure,
    PhotoFileEntry,
    PhotoInfo,
    PhotoLocation,
    ProjectPhoto,
)
from .settings import (
    DRA_FOLDER_NAME,
    GEODETIC_SYSTEM,
    PHOTO_XML_NAME,
    PIC_FOLDER_NAME,
    ROOT_FOLDER_NAME,
)

logger = logging.getLogger(__name__)

FOLDER_NAMES = {
    "ROOT": ROOT_FOLDER_NAME,
    "PIC": PIC_FOLDER_NAME,
    "DRA": DRA_FOLDER_NAME,
    "PHOTO_XML": PHOTO_XML_NAME,
}


@dataclass
class FolderStructureOptions:
    """Options for folder structure generation."""

    include_drawing_folder: bool = True
    custom_root_name: Optional[str] = None

    @property
    def root_name(self) -> str:
        return self.custom_root_name or FOLDER_NAMES["ROOT"]


def _join_path(*parts: str) -> str:
    return re.sub(r"/+", "/", "/".join(parts))


def generate_folder_paths(
    base_path: str, options: Optional[FolderStructureOptions] = None
) -> Dict[str, str]:
    """Absolute-style paths of the package folders under base_path.

    Returns:
        Dict with "root", "pic", "photo_xml" and, when drawings are enabled, "dra"
    """
    opts = options or FolderStructureOptions()
    root = _join_path(base_path, opts.root_name)
    paths = {
        "root": root,
        "pic": _join_path(root, FOLDER_NAMES["PIC"]),
        "photo_xml": _join_path(root, FOLDER_NAMES["PHOTO_XML"]),
    }
    if opts.include_drawing_folder:
        paths["dra"] = _join_path(root, FOLDER_NAMES["DRA"])
    return paths


def _shooting_sort_key(photo: ProjectPhoto):
    # Undated photos go after every dated one
    if photo.shooting_date is None:
        return (1, 0.0)
    return (0, photo.shooting_date.timestamp())


def generate_folder_structure(
    photos: Iterable[ProjectPhoto], options: Optional[FolderStructureOptions] = None
) -> FolderStructure:
    """Sort, filter and rename photos into a delivery folder descriptor.

    Photos are ordered by shooting date (stable for ties). Files whose
    extension is not a supported photo type are left out silently.

    Args:
        photos: Photos selected for the export
        options: Folder options (drawing folder, custom root name)

    Returns:
        FolderStructure with numbered PhotoFileEntry records
    """
    opts = options or FolderStructureOptions()
    root_name = opts.root_name

    generator = FileNameGenerator()
    photo_files: List[PhotoFileEntry] = []
    drawing_files: List[DrawingFileEntry] = []

    skipped = 0
    for photo in sorted(photos, key=_shooting_sort_key):
        if not is_supported_photo_extension(photo.file_name):
            skipped += 1
            continue

        number, delivery_name = generator.assign_photo(get_extension(photo.file_name))
        photo_files.append(
            PhotoFileEntry(
                original_file_name=photo.file_name,
                delivery_file_name=delivery_name,
                file_path=photo.file_path,
                file_size=photo.file_size,
                photo_info=convert_to_photo_info(photo, number, delivery_name),
                photo_id=photo.id,
            )
        )

    if skipped:
        logger.info(f"Skipped {skipped} photo(s) with unsupported extensions")
    logger.debug(f"Assigned {len(photo_files)} delivery file names under {root_name}/")

    return FolderStructure(
        root_folder_name=root_name,
        photo_xml_path=f"{root_name}/{FOLDER_NAMES['PHOTO_XML']}",
        pic_folder_path=f"{root_name}/{FOLDER_NAMES['PIC']}",
        dra_folder_path=(
            f"{root_name}/{FOLDER_NAMES['DRA']}" if opts.include_drawing_folder else None
        ),
        photo_files=photo_files,
        drawing_files=drawing_files,
    )


def convert_to_photo_info(
    photo: ProjectPhoto, photo_number: int, delivery_file_name: str
) -> PhotoInfo:
    location = None
    if photo.location is not None:
        location = PhotoLocation(
            geodetic_system=GEODETIC_SYSTEM,
            latitude=format_coordinate(photo.location.latitude, "lat"),
            longitude=format_coordinate(photo.location.longitude, "lon"),
        )

    return PhotoInfo(
        photo_number=photo_number,
        photo_file_name=delivery_file_name,
        photo_file_japanese_name=photo.title,
        photo_major_category=photo.major_category,
        photo_category=photo.category or "",
        construction_type=photo.construction_type,
        work_type=photo.work_type,
        detail_type=photo.detail_type,
        photo_title=photo.title,
        shooting_location=photo.shooting_location,
        shooting_date=(
            photo.shooting_date.strftime("%Y-%m-%d") if photo.shooting_date else ""
        ),
        is_representative_photo=photo.is_representative,
        is_submission_frequency_photo=False,
        has_drawing=False,
        remarks=photo.remarks,
        location=location,
    )


def format_coordinate(decimal: float, kind: str) -> str:
    """Decimal degrees to DMS with hemisphere, e.g. 35°41'22.15"N.

    Args:
        decimal: Signed decimal degrees
        kind: "lat" or "lon"
    """
    absolute = abs(decimal)
    degrees = math.floor(absolute)
    minutes_decimal = (absolute - degrees) * 60
    minutes = math.floor(minutes_decimal)
    seconds = (minutes_decimal - minutes) * 60

    if kind == "lat":
        direction = "N" if decimal >= 0 else "S"
    else:
        direction = "E" if decimal >= 0 else "W"

    return f"{degrees}°{minutes}'{seconds:.2f}\"{direction}"


def validate_folder_structure(folder: FolderStructure) -> List[str]:
    """Quick structural pre-check.

    Returns:
        Human-readable problems; empty when the structure looks sound
    """
    errors: List[str] = []

    if not folder.root_folder_name:
        errors.append("ルートフォルダ名が設定されていません")

    if not folder.photo_files:
        errors.append("写真ファイルが含まれていません")

    seen = set()
    for entry in [*folder.photo_files, *folder.drawing_files]:
        if entry.delivery_file_name in seen:
            errors.append(f"ファイル名が重複しています: {entry.delivery_file_name}")
        seen.add(entry.delivery_file_name)

    numbers = sorted(entry.photo_info.photo_number for entry in folder.photo_files)
    for index, number in enumerate(numbers, start=1):
        if number != index:
            errors.append(f"写真番号が連続していません: {number} (期待値: {index})")
            break

    return errors


def get_folder_tree_string(folder: FolderStructure) -> str:
    """Render the package layout as an indented ASCII tree."""
    lines = [
        f"{folder.root_folder_name}/",
        f"├── {FOLDER_NAMES['PHOTO_XML']}",
        f"├── {FOLDER_NAMES['PIC']}/",
    ]

    count = len(folder.photo_files)
    for i, entry in enumerate(folder.photo_files):
        is_last = i == count - 1 and not folder.dra_folder_path
        prefix = "│   └──" if is_last else "│   ├──"
        lines.append(f"{prefix} {entry.delivery_file_name}")

    if folder.dra_folder_path:
        lines.append(f"└── {FOLDER_NAMES['DRA']}/")
        count = len(folder.drawing_files)
        for i, entry in enumerate(folder.drawing_files):
            prefix = "    └──" if i == count - 1 else "    ├──"
            lines.append(f"{prefix} {entry.delivery_file_name}")

    return "\n".join(lines)


def filter_photos_by_ids(
    photos: Iterable[ProjectPhoto], photo_ids: Optional[Iterable[str]]
) -> List[ProjectPhoto]:
    """Keep only photos whose id is listed; None keeps everything."""
    photos = list(photos)
    if photo_ids is None:
        return photos
    wanted = set(photo_ids)
    return [photo for photo in photos if photo.id in wanted]
