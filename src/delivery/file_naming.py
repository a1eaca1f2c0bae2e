"""Delivery file naming (P0000001.JPG / D0000001.PDF)."""

import re
from typing import List, Optional, Tuple

from .exceptions import SequenceNumberError, SequenceOverflowError
from .settings import (
    DRAWING_EXTENSIONS,
    MAX_SEQUENCE_NUMBER,
    MIN_SEQUENCE_NUMBER,
    PHOTO_EXTENSIONS,
    SEQUENCE_DIGITS,
)

PHOTO_PREFIX = "P"
DRAWING_PREFIX = "D"

# ASCII digits only; matched with fullmatch so a trailing newline is rejected
_PHOTO_NAME_RE = re.compile(r"P[0-9]{7}\.(JPG|JPEG|TIF|TIFF)")
_DRAWING_NAME_RE = re.compile(r"D[0-9]{7}\.(JPG|JPEG|TIF|TIFF|PDF)")
_SEQUENCE_RE = re.compile(r"[PD]([0-9]{7})\.")
_EXTENSION_RE = re.compile(r"\.([^.]+)$")

_EXTENSION_ALIASES = {"JPEG": "JPG", "TIFF": "TIF"}


def validate_sequence_number(sequence_number: int) -> None:
    """Raise if the number cannot be used in a delivery file name.

    Raises:
        SequenceNumberError: Not an integer
        SequenceOverflowError: Outside 1..9999999
    """
    if isinstance(sequence_number, bool) or not isinstance(sequence_number, int):
        raise SequenceNumberError("連番は整数である必要があります")
    if sequence_number < MIN_SEQUENCE_NUMBER:
        raise SequenceOverflowError("連番は1以上である必要があります")
    if sequence_number > MAX_SEQUENCE_NUMBER:
        raise SequenceOverflowError("連番は9999999以下である必要があります")


def normalize_extension(extension: str) -> str:
    """Strip a leading dot, upper-case, and fold JPEG/TIFF to JPG/TIF."""
    ext = extension[1:] if extension.startswith(".") else extension
    ext = ext.upper()
    return _EXTENSION_ALIASES.get(ext, ext)


def get_extension(file_name: str) -> str:
    """Normalized extension of a file name, or "" when it has none."""
    match = _EXTENSION_RE.search(file_name)
    if not match:
        return ""
    return normalize_extension(match.group(1))


def _format_name(prefix: str, sequence_number: int, extension: str) -> str:
    validate_sequence_number(sequence_number)
    return f"{prefix}{sequence_number:0{SEQUENCE_DIGITS}d}.{normalize_extension(extension)}"


def generate_photo_file_name(sequence_number: int, extension: str = "JPG") -> str:
    return _format_name(PHOTO_PREFIX, sequence_number, extension)


def generate_drawing_file_name(sequence_number: int, extension: str) -> str:
    return _format_name(DRAWING_PREFIX, sequence_number, extension)


def extract_sequence_number(file_name: str) -> Optional[int]:
    match = _SEQUENCE_RE.match(file_name)
    if not match:
        return None
    return int(match.group(1))


def is_valid_photo_file_name(file_name: str) -> bool:
    return bool(_PHOTO_NAME_RE.fullmatch(file_name))


def is_valid_drawing_file_name(file_name: str) -> bool:
    return bool(_DRAWING_NAME_RE.fullmatch(file_name))


def is_valid_delivery_file_name(file_name: str) -> bool:
    return is_valid_photo_file_name(file_name) or is_valid_drawing_file_name(file_name)


def is_supported_extension(file_name: str, allowed_extensions: Optional[List[str]] = None) -> bool:
    allowed = allowed_extensions if allowed_extensions is not None else PHOTO_EXTENSIONS
    ext = get_extension(file_name)
    return any(normalize_extension(candidate) == ext for candidate in allowed)


def is_supported_photo_extension(file_name: str) -> bool:
    return is_supported_extension(file_name, PHOTO_EXTENSIONS)


def is_supported_drawing_extension(file_name: str) -> bool:
    return is_supported_extension(file_name, DRAWING_EXTENSIONS)


class FileNameGenerator:
    """Allocates sequential delivery file names.

    Counters live on the instance, so concurrent exports must each use their
    own generator.
    """

    def __init__(self, start_photo: int = 1, start_drawing: int = 1):
        self.photo_counter = start_photo
        self.drawing_counter = start_drawing

    def next_photo_file_name(self, extension: str = "JPG") -> str:
        return self.assign_photo(extension)[1]

    def next_drawing_file_name(self, extension: str) -> str:
        return self.assign_drawing(extension)[1]

    def assign_photo(self, extension: str = "JPG") -> Tuple[int, str]:
        """Allocate the next photo number and its file name in one step.

        Returns:
            (sequence number, delivery file name)

        Raises:
            SequenceOverflowError: The counter left 1..9999999
        """
        number = self.photo_counter
        file_name = generate_photo_file_name(number, extension)
        self.photo_counter += 1
        return number, file_name

    def assign_drawing(self, extension: str) -> Tuple[int, str]:
        number = self.drawing_counter
        file_name = generate_drawing_file_name(number, extension)
        self.drawing_counter += 1
        return number, file_name

    @property
    def current_photo_number(self) -> int:
        """Number the next photo will receive."""
        return self.photo_counter

    @property
    def current_drawing_number(self) -> int:
        return self.drawing_counter

    def reset(self, start_photo: int = 1, start_drawing: int = 1) -> None:
        self.photo_counter = start_photo
        self.drawing_counter = start_drawing
