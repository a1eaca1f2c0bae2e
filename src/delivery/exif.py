"""Builds ProjectPhoto records from a folder of images using EXIF data."""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from PIL import Image, UnidentifiedImageError

from .file_naming import is_supported_photo_extension
from .models import GeoPoint, PhotoMajorCategory, ProjectPhoto

logger = logging.getLogger(__name__)

# EXIF tags
TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867
IFD_EXIF = 0x8769
IFD_GPS = 0x8825
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def _parse_exif_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    text = str(value).strip().rstrip("\x00")
    try:
        return datetime.strptime(text, EXIF_DATETIME_FORMAT)
    except ValueError:
        logger.debug(f"Unparseable EXIF date: {text!r}")
        return None


def _dms_to_decimal(dms, ref) -> float:
    degrees, minutes, seconds = (float(part) for part in dms)
    value = degrees + minutes / 60 + seconds / 3600
    if str(ref).upper() in ("S", "W"):
        value = -value
    return value


def read_shooting_date(image: Image.Image) -> Optional[datetime]:
    """DateTimeOriginal from the Exif IFD, falling back to IFD0 DateTime."""
    exif = image.getexif()
    if not exif:
        return None
    original = exif.get_ifd(IFD_EXIF).get(TAG_DATETIME_ORIGINAL)
    return _parse_exif_datetime(original) or _parse_exif_datetime(exif.get(TAG_DATETIME))


def read_location(image: Image.Image) -> Optional[GeoPoint]:
    exif = image.getexif()
    if not exif:
        return None
    gps = exif.get_ifd(IFD_GPS)
    if GPS_LATITUDE not in gps or GPS_LONGITUDE not in gps:
        return None
    try:
        return GeoPoint(
            latitude=_dms_to_decimal(gps[GPS_LATITUDE], gps.get(GPS_LATITUDE_REF, "N")),
            longitude=_dms_to_decimal(gps[GPS_LONGITUDE], gps.get(GPS_LONGITUDE_REF, "E")),
        )
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.debug(f"Invalid GPS block: {e}")
        return None


def scan_photo(path: Path, category: Optional[str] = None) -> ProjectPhoto:
    """Describe one image file as a ProjectPhoto.

    The title defaults to the file stem; shooting date and location come
    from EXIF when present.
    """
    shooting_date = None
    location = None
    try:
        with Image.open(path) as img:
            shooting_date = read_shooting_date(img)
            location = read_location(img)
    except (OSError, UnidentifiedImageError) as e:
        logger.warning(f"Could not read EXIF from {path.name}: {e}")

    return ProjectPhoto(
        id=path.stem,
        file_name=path.name,
        file_path=str(path),
        file_size=path.stat().st_size,
        shooting_date=shooting_date,
        title=path.stem,
        major_category=PhotoMajorCategory.CONSTRUCTION.value,
        category=category,
        location=location,
    )


def scan_folder(folder: Path, category: Optional[str] = None) -> List[ProjectPhoto]:
    """Scan a folder (non-recursive) for supported photo files."""
    photos = []
    for path in sorted(folder.iterdir()):
        if not path.is_file() or not is_supported_photo_extension(path.name):
            continue
        photos.append(scan_photo(path, category))
    logger.info(f"Scanned {len(photos)} photo(s) in {folder}")
    return photos
