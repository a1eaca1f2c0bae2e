"""Tests for EXIF-based photo scanning."""

from datetime import datetime

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from src.delivery.exif import scan_folder, scan_photo


def _save_jpeg(path, exif=None):
    img = Image.new("RGB", (8, 8), color=(200, 120, 40))
    if exif is None:
        img.save(path, "JPEG")
    else:
        img.save(path, "JPEG", exif=exif)
    return path


@pytest.fixture
def dated_jpeg(tmp_path):
    exif = Image.Exif()
    exif[306] = "2025:05:02 10:00:00"
    exif[0x8769] = {36867: "2025:05:01 08:15:30"}
    return _save_jpeg(tmp_path / "IMG_0001.jpg", exif)


def test_prefers_date_time_original(dated_jpeg):
    photo = scan_photo(dated_jpeg, category="施工状況")

    assert photo.shooting_date == datetime(2025, 5, 1, 8, 15, 30)
    assert photo.title == "IMG_0001"
    assert photo.category == "施工状況"
    assert photo.major_category == "工事写真"
    assert photo.file_size == dated_jpeg.stat().st_size


def test_falls_back_to_ifd0_date(tmp_path):
    exif = Image.Exif()
    exif[306] = "2025:05:02 10:00:00"
    path = _save_jpeg(tmp_path / "IMG_0002.jpg", exif)

    assert scan_photo(path).shooting_date == datetime(2025, 5, 2, 10, 0, 0)


def test_gps_location(tmp_path):
    exif = Image.Exif()
    exif[0x8825] = {
        1: "N",
        2: (IFDRational(35, 1), IFDRational(30, 1), IFDRational(0, 1)),
        3: "W",
        4: (IFDRational(139, 1), IFDRational(45, 1), IFDRational(0, 1)),
    }
    path = _save_jpeg(tmp_path / "IMG_0003.jpg", exif)

    location = scan_photo(path).location
    assert location.latitude == pytest.approx(35.5)
    assert location.longitude == pytest.approx(-139.75)


def test_no_exif(tmp_path):
    photo = scan_photo(_save_jpeg(tmp_path / "plain.jpg"))
    assert photo.shooting_date is None
    assert photo.location is None


def test_unreadable_image_is_still_listed(tmp_path, caplog):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not an image")

    photo = scan_photo(path)

    assert photo.file_name == "broken.jpg"
    assert photo.shooting_date is None
    assert "Could not read EXIF" in caplog.text


def test_scan_folder(tmp_path, dated_jpeg):
    _save_jpeg(tmp_path / "A.JPG")
    (tmp_path / "notes.txt").write_text("memo")
    (tmp_path / "sub").mkdir()

    photos = scan_folder(tmp_path)

    assert [p.file_name for p in photos] == ["A.JPG", "IMG_0001.jpg"]
