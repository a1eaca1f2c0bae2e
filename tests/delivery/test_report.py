"""Tests for delivery report generation."""

import json

from src.delivery.folder_structure import generate_folder_structure
from src.delivery.report import (
    display_width,
    format_file_size,
    format_photo_list_as_csv,
    format_report_as_json,
    format_report_as_text,
    generate_delivery_report,
    pad_right,
    truncate,
)
from src.delivery.validator import DeliveryValidator


def test_format_file_size():
    assert format_file_size(0) == "0 B"
    assert format_file_size(512) == "512 B"
    assert format_file_size(1024) == "1.00 KB"
    assert format_file_size(1536) == "1.50 KB"
    assert format_file_size(1048576) == "1.00 MB"
    assert format_file_size(3 * 1024 ** 3) == "3.00 GB"


def test_display_width():
    assert display_width("abc") == 3
    assert display_width("掘削") == 4
    assert display_width("ＡＢ") == 4
    assert pad_right("写真", 6) == "写真  "
    assert pad_right("too long", 3) == "too long"


def test_truncate():
    assert truncate("short", 28) == "short"
    assert truncate("あいうえお", 8) == "あい..."
    assert truncate("abcdefghij", 8) == "abcde..."


def test_statistics_and_folders(sample_photos, metadata):
    folder = generate_folder_structure(sample_photos)
    report = generate_delivery_report(folder, metadata)

    stats = report.file_statistics
    assert stats.photo_count == 3
    assert stats.drawing_count == 0
    assert stats.xml_count == 2
    assert stats.total_files == 5
    assert stats.total_size == 1024 + 2048 + 3072
    assert stats.total_size_formatted == "6.00 KB"
    assert stats.representative_photo_count == 1

    assert report.folder_structure.folders == ["PHOTO", "PHOTO/PIC", "PHOTO/DRA"]
    files = report.folder_structure.files
    assert [f.path for f in files[:3]] == ["INDEX_D.XML", "PHOTO/PHOTO.XML", "PHOTO/PIC/P0000001.JPG"]
    assert files[0].size_formatted == "-"
    assert report.validation_summary is None


def test_validation_summary(make_photo, metadata):
    folder = generate_folder_structure([make_photo(1, title="", location=None)])
    validation = DeliveryValidator().validate(folder)
    report = generate_delivery_report(folder, metadata, validation)

    summary = report.validation_summary
    assert summary.is_valid is False
    assert summary.error_count == 1
    assert summary.errors == ["[E201] 写真タイトルが設定されていません (P0000001.JPG)"]
    assert "[W004] 位置情報が設定されていません (P0000001.JPG)" in summary.warnings


def test_text_report(sample_photos, metadata):
    folder = generate_folder_structure(sample_photos)
    validation = DeliveryValidator().validate(folder)
    text = format_report_as_text(generate_delivery_report(folder, metadata, validation))
    lines = text.split("\n")

    assert lines[0] == "=" * 70
    assert lines[1] == "電子納品レポート"
    assert "工事件名: 国道1号 道路改良工事" in lines
    assert "発注者名: 国土交通省 関東地方整備局" in lines
    assert "総ファイル数: 5" in lines
    assert "  PHOTO/PIC/" in lines
    assert "結果: 合格" in lines
    assert "* = 代表写真" in lines
    assert lines[-1] == "=" * 70

    header = next(line for line in lines if line.startswith("No."))
    assert display_width(header[: header.index("撮影日")]) == 6 + 16 + 30

    row = next(line for line in lines if line.startswith("1*"))
    assert row.startswith("1*    P0000001.JPG    掘削状況 1")
    assert row.endswith("1.00 KB")
    assert display_width(row[: row.index("2025-05-01")]) == 6 + 16 + 30


def test_text_report_without_optional_sections(make_photo, metadata):
    minimal = metadata.model_copy(update={"orderer_name": None, "construction_start_date": None})
    folder = generate_folder_structure([make_photo(1)])
    text = format_report_as_text(generate_delivery_report(folder, minimal))

    assert "発注者名" not in text
    assert "工期開始日" not in text
    assert "検証結果" not in text


def test_json_report(sample_photos, metadata):
    folder = generate_folder_structure(sample_photos)
    data = json.loads(format_report_as_json(generate_delivery_report(folder, metadata)))

    assert data["constructionInfo"]["constructionName"] == "国道1号 道路改良工事"
    assert data["fileStatistics"]["totalFiles"] == 5
    assert data["photoList"][0]["deliveryFileName"] == "P0000001.JPG"
    assert "validationSummary" not in data


def test_csv_photo_list(make_photo, metadata):
    photos = [make_photo(1, title='杭打ち "A"工区'), make_photo(2, shooting_location=None)]
    folder = generate_folder_structure(photos)
    csv_text = format_photo_list_as_csv(generate_delivery_report(folder, metadata))
    lines = csv_text.split("\n")

    assert lines[0] == "番号,納品ファイル名,元ファイル名,タイトル,大分類,区分,撮影日,撮影箇所,代表写真,ファイルサイズ"
    assert lines[1] == '1,P0000001.JPG,IMG_0001.jpg,"杭打ち ""A""工区",工事写真,施工状況,2025-05-01,No.1+20,Yes,1.00 KB'
    assert lines[2] == '2,P0000002.JPG,IMG_0002.jpg,"掘削状況 2",工事写真,施工状況,2025-05-02,,No,2.00 KB'
