"""
Configuration settings for the electronic delivery export.

Values can be overridden through environment variables (a local .env file is
honoured).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Folder layout
ROOT_FOLDER_NAME = "PHOTO"
PIC_FOLDER_NAME = "PIC"
DRA_FOLDER_NAME = "DRA"
PHOTO_XML_NAME = "PHOTO.XML"
INDEX_D_XML_NAME = "INDEX_D.XML"
ERRORS_FILE_NAME = "ERRORS.txt"

# Applicable standard
STANDARD_VERSION = os.getenv("DELIVERY_STANDARD_VERSION", "令和5年3月")
SUPPORTED_STANDARD_VERSIONS = ["令和5年3月", "令和4年3月", "令和3年3月"]
GEODETIC_SYSTEM = "JGD2011"

# Software info embedded in the XML documents
SOFTWARE_NAME = os.getenv("DELIVERY_SOFTWARE_NAME", "PhotoManagement")
SOFTWARE_VERSION = "1.0.0"

# File naming
SEQUENCE_DIGITS = 7
MIN_SEQUENCE_NUMBER = 1
MAX_SEQUENCE_NUMBER = 9_999_999
PHOTO_EXTENSIONS = ["JPG", "JPEG", "TIF", "TIFF"]
DRAWING_EXTENSIONS = ["JPG", "JPEG", "TIF", "TIFF", "PDF"]

# Validation
MAX_FILE_SIZE_MB = float(os.getenv("DELIVERY_MAX_FILE_SIZE_MB", "10"))

# Archive
ZIP_COMPRESS_LEVEL = 9
