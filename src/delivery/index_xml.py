"""INDEX_D.XML generation.

INDEX_D.XML carries the package-level management information (construction
name, orderer, contractor, period, media) and points at the photo folder.
Element names are Japanese, as the delivery guideline defines them.
"""

from dataclasses import dataclass
from typing import Optional

from .models import ExportMetadata
from .settings import (
    PHOTO_XML_NAME,
    ROOT_FOLDER_NAME,
    SOFTWARE_NAME,
    SOFTWARE_VERSION,
)
from .xml_writer import XmlConfig, XmlWriter, is_valid_xml_structure

INDEX_D_XML_COMMENT = "国土交通省 工事完成図書の電子納品等要領 準拠"
INDEX_D_REQUIRED_TAGS = ("INDEX_D", "基礎情報", "工事件名等", "受注者情報", "写真情報")


@dataclass
class IndexDInfo:
    """Flattened INDEX_D.XML content."""

    applicable_standard: str
    construction_name: str
    contractor_name: str
    media_number: int = 1
    total_media_count: int = 1
    photo_folder_name: str = ROOT_FOLDER_NAME
    photo_info_file_name: str = PHOTO_XML_NAME
    software_name: str = SOFTWARE_NAME
    software_version: str = SOFTWARE_VERSION
    construction_number: Optional[str] = None
    orderer_name: Optional[str] = None
    orderer_code: Optional[str] = None
    construction_start_date: Optional[str] = None
    construction_end_date: Optional[str] = None
    construction_field: Optional[str] = None
    work_type: Optional[str] = None
    construction_summary: Optional[str] = None
    address_code: Optional[str] = None
    address: Optional[str] = None


def generate_index_d_xml(
    metadata: ExportMetadata,
    config: Optional[XmlConfig] = None,
    photo_folder_name: str = ROOT_FOLDER_NAME,
) -> str:
    cfg = config or XmlConfig()
    info = build_index_d_info(metadata, cfg, photo_folder_name)
    return serialize_index_d_to_xml(info, cfg)


def build_index_d_info(
    metadata: ExportMetadata,
    config: Optional[XmlConfig] = None,
    photo_folder_name: str = ROOT_FOLDER_NAME,
) -> IndexDInfo:
    cfg = config or XmlConfig()
    return IndexDInfo(
        applicable_standard=cfg.standard_version,
        construction_name=metadata.construction_name,
        contractor_name=metadata.contractor_name,
        media_number=metadata.media_number,
        total_media_count=metadata.total_media_count,
        photo_folder_name=photo_folder_name,
        construction_number=metadata.construction_number,
        orderer_name=metadata.orderer_name,
        orderer_code=metadata.orderer_code,
        construction_start_date=metadata.construction_start_date,
        construction_end_date=metadata.construction_end_date,
        construction_field=metadata.construction_field,
        work_type=metadata.work_type,
        construction_summary=metadata.construction_summary,
        address_code=metadata.address_code,
        address=metadata.address,
    )


def serialize_index_d_to_xml(info: IndexDInfo, config: Optional[XmlConfig] = None) -> str:
    cfg = config or XmlConfig()
    writer = XmlWriter(cfg.indent_spaces)

    writer.declaration(cfg.encoding)
    writer.comment(INDEX_D_XML_COMMENT)
    writer.open("INDEX_D")

    writer.open("基礎情報")
    writer.element("適用要領基準", info.applicable_standard)
    writer.close("基礎情報")

    writer.open("工事件名等")
    writer.element("工事件名", info.construction_name)
    writer.optional_element("工事番号", info.construction_number)
    writer.close("工事件名等")

    writer.open("場所情報")
    writer.optional_element("住所コード", info.address_code)
    writer.optional_element("住所", info.address)
    writer.close("場所情報")

    writer.empty("施設情報")

    writer.open("発注者情報")
    writer.optional_element("発注者コード", info.orderer_code)
    writer.optional_element("発注者名", info.orderer_name)
    writer.close("発注者情報")

    writer.open("受注者情報")
    writer.element("受注者名", info.contractor_name)
    writer.close("受注者情報")

    writer.open("工期")
    writer.optional_element("工期開始日", info.construction_start_date)
    writer.optional_element("工期終了日", info.construction_end_date)
    writer.close("工期")

    writer.open("工事分野情報")
    writer.optional_element("工事分野", info.construction_field)
    writer.optional_element("工種", info.work_type)
    writer.close("工事分野情報")

    writer.optional_element("工事概要", info.construction_summary)

    writer.open("メディア情報")
    writer.element("メディア番号", info.media_number)
    writer.element("メディア総数", info.total_media_count)
    writer.close("メディア情報")

    writer.open("写真情報")
    writer.element("写真フォルダ名", info.photo_folder_name)
    writer.element("写真情報ファイル名", info.photo_info_file_name)
    writer.close("写真情報")

    writer.open("ソフトウェア情報")
    writer.element("ソフトウェア名", info.software_name)
    writer.element("バージョン情報", info.software_version)
    writer.close("ソフトウェア情報")

    writer.close("INDEX_D")
    return writer.to_string()


def is_valid_index_d_xml(xml: str) -> bool:
    return is_valid_xml_structure(xml, INDEX_D_REQUIRED_TAGS)
