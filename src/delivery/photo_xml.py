"""PHOTO.XML generation."""

from typing import Optional

from .folder_structure import FOLDER_NAMES
from .models import ExportMetadata, FolderStructure, PhotoCommonInfo, PhotoInfo, PhotoInfoFile
from .settings import SOFTWARE_NAME, SOFTWARE_VERSION
from .xml_writer import XmlConfig, XmlWriter, is_valid_xml_structure

PHOTO_XML_COMMENT = "国土交通省 デジタル写真管理情報基準 準拠"
PHOTO_XML_REQUIRED_TAGS = ("photoInformation", "commonInformation", "photoList")


def generate_photo_xml(
    folder: FolderStructure,
    metadata: Optional[ExportMetadata] = None,
    config: Optional[XmlConfig] = None,
) -> str:
    """Render PHOTO.XML for a folder structure.

    Output depends only on the inputs, with no timestamps, so repeated
    calls give identical documents.
    """
    cfg = config or XmlConfig()
    return serialize_to_xml(build_photo_info_file(folder, metadata, cfg), cfg)


def build_photo_info_file(
    folder: FolderStructure,
    metadata: Optional[ExportMetadata] = None,
    config: Optional[XmlConfig] = None,
) -> PhotoInfoFile:
    cfg = config or XmlConfig()
    common_info = PhotoCommonInfo(
        applicable_standard=cfg.standard_version,
        photo_info_file_name=FOLDER_NAMES["PHOTO_XML"],
        photo_folder_name=folder.root_folder_name,
        photo_file_folder_name=FOLDER_NAMES["PIC"],
        drawing_folder_name=FOLDER_NAMES["DRA"] if folder.dra_folder_path else None,
        software_name=SOFTWARE_NAME,
        software_version=SOFTWARE_VERSION,
    )
    return PhotoInfoFile(
        common_info=common_info,
        photo_info_list=[entry.photo_info for entry in folder.photo_files],
    )


def serialize_to_xml(photo_info_file: PhotoInfoFile, config: Optional[XmlConfig] = None) -> str:
    cfg = config or XmlConfig()
    common = photo_info_file.common_info
    writer = XmlWriter(cfg.indent_spaces)

    writer.declaration(cfg.encoding)
    writer.comment(PHOTO_XML_COMMENT)
    writer.open("photoInformation")

    writer.open("commonInformation")
    writer.element("applicableStandard", common.applicable_standard)
    writer.element("photoInformationFileName", common.photo_info_file_name)
    writer.element("photoFolderName", common.photo_folder_name)
    writer.element("photoFileFolderName", common.photo_file_folder_name)
    writer.optional_element("drawingFolderName", common.drawing_folder_name)
    writer.element("softwareName", common.software_name)
    writer.element("softwareVersion", common.software_version)
    writer.close("commonInformation")

    writer.open("photoList")
    for photo in photo_info_file.photo_info_list:
        _write_photo(writer, photo)
    writer.close("photoList")

    writer.close("photoInformation")
    return writer.to_string()


def _write_photo(writer: XmlWriter, photo: PhotoInfo):
    writer.open("photo")
    writer.element("photoNumber", photo.photo_number)
    writer.element("photoFileName", photo.photo_file_name)
    writer.optional_element("photoFileJapaneseName", photo.photo_file_japanese_name)
    writer.element("photoMajorCategory", photo.photo_major_category)
    writer.element("photoCategory", photo.photo_category)
    writer.optional_element("constructionType", photo.construction_type)
    writer.element("photoTitle", photo.photo_title)
    writer.optional_element("shootingLocation", photo.shooting_location)
    writer.element("shootingDate", photo.shooting_date)
    writer.element("isRepresentativePhoto", photo.is_representative_photo)
    writer.element("isSubmissionFrequencyPhoto", photo.is_submission_frequency_photo)
    writer.element("hasDrawing", photo.has_drawing)
    writer.optional_element("remarks", photo.remarks)

    if photo.location is not None:
        writer.open("location")
        writer.element("geodeticSystem", photo.location.geodetic_system)
        writer.optional_element("latitude", photo.location.latitude)
        writer.optional_element("longitude", photo.location.longitude)
        writer.close("location")

    writer.close("photo")


def parse_photo_xml(xml: str) -> Optional[PhotoInfoFile]:
    """Reading PHOTO.XML back is not supported; always returns None."""
    return None


def is_valid_photo_xml(xml: str) -> bool:
    return is_valid_xml_structure(xml, PHOTO_XML_REQUIRED_TAGS)
