"""ZIP packaging of a delivery folder."""

import asyncio
import base64
import binascii
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import ExportRequestError
from .folder_structure import FOLDER_NAMES
from .index_xml import generate_index_d_xml
from .models import DrawingFileEntry, ExportMetadata, FolderStructure, PhotoFileEntry
from .photo_xml import generate_photo_xml
from .settings import ERRORS_FILE_NAME, INDEX_D_XML_NAME, ZIP_COMPRESS_LEVEL
from .xml_writer import XmlConfig

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")

FileEntry = Union[PhotoFileEntry, DrawingFileEntry]


@dataclass
class ArchiveResult:
    """Result from delivery archive creation."""

    success: bool
    buffer: Optional[bytes] = None
    file_count: int = 0  # Embedded photos/drawings plus the two XML documents
    errors: List[str] = field(default_factory=list)
    missing_files: List[str] = field(default_factory=list)
    error: Optional[str] = None


def content_key(entry: FileEntry) -> str:
    """Key under which an entry's bytes are looked up.

    The file path when there is one, then the photo id, so two uploads that
    share an original file name never share bytes.
    """
    return entry.file_path or getattr(entry, "photo_id", None) or entry.original_file_name


async def create_delivery_archive(
    folder: FolderStructure,
    metadata: ExportMetadata,
    file_contents: Mapping[str, bytes],
    xml_config: Optional[XmlConfig] = None,
) -> ArchiveResult:
    """Package a folder structure into a ZIP archive.

    Both XML documents are regenerated from the folder so they always match
    the archive contents. Entries without bytes in file_contents are left
    out and listed in ERRORS.txt; the archive is still produced.

    Args:
        folder: Folder structure to package
        metadata: Project metadata for INDEX_D.XML
        file_contents: Bytes keyed by content_key(entry)
        xml_config: XML generation settings

    Returns:
        ArchiveResult with the ZIP bytes, or success=False and error text
    """
    try:
        cfg = xml_config or XmlConfig()
        photo_xml = generate_photo_xml(folder, metadata, cfg)
        index_xml = generate_index_d_xml(
            metadata, cfg, photo_folder_name=folder.root_folder_name
        )

        # zlib releases the GIL, so compress on a worker thread
        buffer, embedded, errors, missing = await asyncio.to_thread(
            _build_zip, folder, photo_xml, index_xml, file_contents
        )

        if missing:
            logger.warning(f"Archive built without {len(missing)} file(s): {', '.join(missing)}")
        logger.info(f"Archive created: {embedded} file(s), {len(buffer)} bytes")

        return ArchiveResult(
            success=True,
            buffer=buffer,
            file_count=embedded + 2,
            errors=errors,
            missing_files=missing,
        )

    except Exception as e:
        logger.error(f"Archive creation failed: {e}", exc_info=True)
        return ArchiveResult(success=False, error=str(e))


def _build_zip(
    folder: FolderStructure,
    photo_xml: str,
    index_xml: str,
    file_contents: Mapping[str, bytes],
) -> Tuple[bytes, int, List[str], List[str]]:
    root = folder.root_folder_name
    errors: List[str] = []
    missing: List[str] = []
    embedded = 0

    planned: List[Tuple[str, FileEntry]] = [
        (f"{root}/{FOLDER_NAMES['PIC']}/{entry.delivery_file_name}", entry)
        for entry in folder.photo_files
    ]
    planned += [
        (f"{root}/{FOLDER_NAMES['DRA']}/{entry.delivery_file_name}", entry)
        for entry in folder.drawing_files
    ]

    stream = io.BytesIO()
    with zipfile.ZipFile(
        stream, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=ZIP_COMPRESS_LEVEL
    ) as zf:
        zf.writestr(INDEX_D_XML_NAME, index_xml)
        zf.writestr(f"{root}/{FOLDER_NAMES['PHOTO_XML']}", photo_xml)

        for arcname, entry in planned:
            data = file_contents.get(content_key(entry))
            if data is None:
                missing.append(entry.original_file_name)
                errors.append(
                    f"{entry.delivery_file_name} ({entry.original_file_name}): 写真データがありません"
                )
                continue
            zf.writestr(arcname, data)
            embedded += 1

        if errors:
            zf.writestr(ERRORS_FILE_NAME, _errors_manifest(len(planned), embedded, errors))

    return stream.getvalue(), embedded, errors, missing


def _errors_manifest(total: int, embedded: int, errors: List[str]) -> str:
    lines = [
        "Electronic Delivery Export Errors",
        "=" * 50,
        "",
        f"Total files: {total}",
        f"Successfully included: {embedded}",
        f"Failed: {len(errors)}",
        "",
        "Error Details:",
        "-" * 30,
    ]
    lines += errors
    return "\n".join(lines)


def load_file_contents(folder: FolderStructure, base_dir: Optional[Path] = None) -> Dict[str, bytes]:
    """Read photo and drawing bytes from local disk.

    Relative file paths are resolved against base_dir. Files that do not
    exist are left out so the archive reports them as missing.
    """
    contents: Dict[str, bytes] = {}
    for entry in [*folder.photo_files, *folder.drawing_files]:
        if not entry.file_path:
            continue
        path = Path(entry.file_path)
        if base_dir is not None and not path.is_absolute():
            path = Path(base_dir) / path
        if not path.is_file():
            logger.warning(f"Source file not found: {path}")
            continue
        contents[content_key(entry)] = path.read_bytes()
    return contents


def decode_photo_data(photo_data: Mapping[str, str], folder: FolderStructure) -> Dict[str, bytes]:
    """Decode base64 payloads keyed by original file name.

    A leading data:image/...;base64, prefix is stripped. Photos with no
    payload are simply absent from the result.

    Raises:
        ExportRequestError: A payload is not valid base64
    """
    contents: Dict[str, bytes] = {}
    for entry in folder.photo_files:
        encoded = photo_data.get(entry.original_file_name)
        if not encoded:
            continue
        cleaned = _DATA_URL_PREFIX.sub("", encoded, count=1)
        try:
            contents[content_key(entry)] = base64.b64decode(cleaned, validate=True)
        except binascii.Error as e:
            raise ExportRequestError(
                f"写真データのデコードに失敗しました: {entry.original_file_name}"
            ) from e
    return contents
