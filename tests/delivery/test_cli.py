"""Tests for the delivery CLI."""

import json
import zipfile

import pytest
from PIL import Image
from typer.testing import CliRunner

from src.delivery.cli import app
from src.delivery.models import DeliveryManifest

runner = CliRunner()


@pytest.fixture
def manifest_path(tmp_path, sample_photos, metadata):
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    for photo in sample_photos:
        (uploads / photo.file_name).write_bytes(b"jpeg-" + photo.file_name.encode())

    path = tmp_path / "manifest.json"
    path.write_text(
        DeliveryManifest(metadata=metadata, photos=sample_photos).to_json(), encoding="utf-8"
    )
    return path


@pytest.fixture
def invalid_manifest(tmp_path, make_photo, metadata):
    path = tmp_path / "invalid.json"
    manifest = DeliveryManifest(metadata=metadata, photos=[make_photo(1, title="")])
    path.write_text(manifest.to_json(), encoding="utf-8")
    return path


def test_validate(manifest_path):
    result = runner.invoke(app, ["validate", str(manifest_path)])

    assert result.exit_code == 0
    assert "結果: 合格" in result.output


def test_validate_invalid_exits_1(invalid_manifest):
    result = runner.invoke(app, ["validate", str(invalid_manifest)])

    assert result.exit_code == 1
    assert "[E201]" in result.output


def test_validate_json(manifest_path):
    result = runner.invoke(app, ["validate", str(manifest_path), "--json"])

    assert result.exit_code == 0
    assert json.loads(result.output)["isValid"] is True


def test_missing_manifest(tmp_path):
    result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])
    assert result.exit_code == 1


def test_export_writes_archive(tmp_path, manifest_path):
    output = tmp_path / "out" / "delivery.zip"

    result = runner.invoke(app, ["export", str(manifest_path), "-o", str(output)])

    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(output) as zf:
        assert zf.read("PHOTO/PIC/P0000001.JPG") == b"jpeg-IMG_0001.jpg"
        assert "INDEX_D.XML" in zf.namelist()


def test_export_custom_root(tmp_path, manifest_path):
    output = tmp_path / "delivery.zip"

    result = runner.invoke(app, ["export", str(manifest_path), "-o", str(output), "--root", "PHOTO2"])

    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(output) as zf:
        assert "PHOTO2/PHOTO.XML" in zf.namelist()
        assert "<写真フォルダ名>PHOTO2</写真フォルダ名>" in zf.read("INDEX_D.XML").decode("utf-8")


def test_export_refuses_to_overwrite(tmp_path, manifest_path):
    output = tmp_path / "delivery.zip"
    output.write_bytes(b"existing")

    result = runner.invoke(app, ["export", str(manifest_path), "-o", str(output)])

    assert result.exit_code == 1
    assert output.read_bytes() == b"existing"


def test_export_stops_on_validation_errors(tmp_path, invalid_manifest):
    output = tmp_path / "delivery.zip"

    result = runner.invoke(app, ["export", str(invalid_manifest), "-o", str(output)])

    assert result.exit_code == 1
    assert not output.exists()


def test_preview(manifest_path):
    result = runner.invoke(app, ["preview", str(manifest_path), "--xml"])

    assert result.exit_code == 0
    assert "PHOTO/" in result.output
    assert "<photoInformation>" in result.output
    assert "<INDEX_D>" in result.output


def test_report_csv(tmp_path, manifest_path):
    output = tmp_path / "photos.csv"

    result = runner.invoke(app, ["report", str(manifest_path), "--format", "csv", "-o", str(output)])

    assert result.exit_code == 0
    lines = output.read_text(encoding="utf-8").split("\n")
    assert lines[0].startswith("番号,納品ファイル名")
    assert len(lines) == 4


def test_report_unknown_format(manifest_path):
    result = runner.invoke(app, ["report", str(manifest_path), "--format", "pdf"])
    assert result.exit_code == 1


def test_scan(tmp_path):
    photos_dir = tmp_path / "photos"
    photos_dir.mkdir()
    exif = Image.Exif()
    exif[306] = "2025:05:01 09:30:00"
    Image.new("RGB", (4, 4)).save(photos_dir / "site.jpg", "JPEG", exif=exif)
    output = tmp_path / "manifest.json"

    result = runner.invoke(app, [
        "scan", str(photos_dir),
        "--construction-name", "河川護岸工事",
        "--contractor-name", "鈴木土木",
        "--category", "施工状況",
        "-o", str(output),
    ])

    assert result.exit_code == 0, result.output
    manifest = DeliveryManifest.model_validate_json(output.read_text(encoding="utf-8"))
    assert manifest.metadata.construction_name == "河川護岸工事"
    assert [p.file_name for p in manifest.photos] == ["site.jpg"]
    assert manifest.photos[0].category == "施工状況"
    assert manifest.photos[0].shooting_date.year == 2025


def test_options_before_and_after_arguments(manifest_path):
    before = runner.invoke(app, ["validate", "--json", str(manifest_path)])
    after = runner.invoke(app, ["--verbose", "validate", str(manifest_path), "--strict", "--json"])

    assert before.exit_code == 0, before.output
    assert after.exit_code == 0, after.output
    assert json.loads(before.output)["isValid"] is True
