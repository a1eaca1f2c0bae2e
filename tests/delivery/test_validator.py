"""Tests for the delivery validator."""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.delivery.folder_structure import generate_folder_structure
from src.delivery.models import DrawingFileEntry, FolderStructure, ValidationIssue, ValidationResult
from src.delivery.validator import (
    DEFAULT_RULES,
    DeliveryValidator,
    ValidatorConfig,
    format_validation_result,
    format_validation_result_as_json,
    is_valid_date_format,
    merge_validation_results,
)


def _codes(issues):
    return [issue.code for issue in issues]


def _with_photo_info(folder: FolderStructure, index: int, **changes) -> FolderStructure:
    entries = list(folder.photo_files)
    entry = entries[index]
    entries[index] = entry.model_copy(
        update={"photo_info": entry.photo_info.model_copy(update=changes)}
    )
    return folder.model_copy(update={"photo_files": entries})


def test_valid_structure(sample_photos):
    result = DeliveryValidator().validate(generate_folder_structure(sample_photos))

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []
    assert result.target_folder == "PHOTO"
    assert result.validated_at.endswith("Z")


def test_rules_run_in_fixed_order():
    assert [rule.id for rule in DEFAULT_RULES] == ["structure", "file-naming", "metadata", "sequence"]


def test_empty_structure():
    folder = FolderStructure(root_folder_name="", photo_xml_path="", pic_folder_path="")
    result = DeliveryValidator().validate(folder)

    assert not result.is_valid
    assert _codes(result.errors) == ["E001", "E002", "E003", "E004"]


def test_duplicate_delivery_name(sample_photos):
    folder = generate_folder_structure(sample_photos)
    dup = folder.photo_files[1].model_copy(update={"delivery_file_name": "P0000001.JPG"})
    folder = folder.model_copy(update={"photo_files": [folder.photo_files[0], dup, folder.photo_files[2]]})

    result = DeliveryValidator().validate(folder)

    assert not result.is_valid
    assert "E103" in _codes(result.errors)
    e103 = next(e for e in result.errors if e.code == "E103")
    assert e103.target_file == "P0000001.JPG"


def test_invalid_photo_file_name(sample_photos):
    folder = generate_folder_structure(sample_photos)
    bad = folder.photo_files[0].model_copy(update={"delivery_file_name": "p0000001.jpg"})
    folder = folder.model_copy(update={"photo_files": [bad] + folder.photo_files[1:]})

    result = DeliveryValidator().validate(folder)

    error = result.errors[0]
    assert error.code == "E101"
    assert error.details == "P + 7桁連番 + .JPG形式で指定してください"


def test_missing_shooting_date(make_photo):
    folder = generate_folder_structure([make_photo(1, shooting_date=None)])
    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E202"]
    assert result.errors[0].target_field == "shootingDate"


def test_malformed_calendar_date(sample_photos):
    folder = _with_photo_info(generate_folder_structure(sample_photos), 0, shooting_date="2025-13-40")
    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E204"]


def test_date_format_check():
    assert is_valid_date_format("2024-02-29")
    assert not is_valid_date_format("2025-02-29")
    assert not is_valid_date_format("2025/05/01")
    assert not is_valid_date_format("2025-5-1")
    assert not is_valid_date_format("２０２５-01-01")
    assert not is_valid_date_format("2025-05-01\n")


def test_missing_title_and_category(make_photo):
    folder = generate_folder_structure([make_photo(1, title="   ", category=None)])
    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E201", "E203"]


def test_sequence_gap(sample_photos):
    folder = _with_photo_info(generate_folder_structure(sample_photos), 2, photo_number=7)
    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E104"]
    assert result.errors[0].details == "番号 7 (期待値: 3)"


def test_no_representative_photo_warns_once(make_photo):
    photos = [make_photo(i, is_representative=False) for i in range(1, 4)]
    result = DeliveryValidator().validate(generate_folder_structure(photos))

    assert result.is_valid
    assert _codes(result.warnings).count("W003") == 1


def test_per_photo_warnings(make_photo):
    photos = [
        make_photo(1, shooting_location=None),
        make_photo(2, location=None, file_size=12 * 1024 * 1024),
    ]
    result = DeliveryValidator().validate(generate_folder_structure(photos))

    assert result.is_valid
    assert _codes(result.warnings) == ["W001", "W004", "W005"]
    large = result.warnings[2]
    assert large.message == "ファイルサイズが大きいです (12.00MB)"
    assert large.details == "推奨: 10MB以下"
    assert large.target_file == "P0000002.JPG"


def test_max_file_size_is_configurable(make_photo):
    validator = DeliveryValidator(ValidatorConfig(max_file_size_mb=0.001))
    result = validator.validate(generate_folder_structure([make_photo(2)]))
    assert "W005" in _codes(result.warnings)


def test_strict_mode_reports_construction_type(make_photo):
    folder = generate_folder_structure([make_photo(1, construction_type=None)])

    assert "W002" not in _codes(DeliveryValidator().validate(folder).warnings)
    strict = DeliveryValidator(ValidatorConfig(strict_mode=True)).validate(folder)
    assert "W002" in _codes(strict.warnings)


def test_validate_xml():
    validator = DeliveryValidator()
    result = validator.validate_xml("<photoInformation></photoInformation>")
    assert not result.is_valid
    assert _codes(result.errors) == ["E301"]
    assert result.target_folder == ""


def test_validate_index_xml(metadata):
    from src.delivery.index_xml import generate_index_d_xml

    validator = DeliveryValidator()
    assert validator.validate_index_xml(generate_index_d_xml(metadata)).is_valid
    assert _codes(validator.validate_index_xml("<INDEX_D/>").errors) == ["E301"]


def test_merge_validation_results(sample_photos):
    validator = DeliveryValidator()
    folder_result = validator.validate(generate_folder_structure(sample_photos))
    xml_result = validator.validate_xml("")

    merged = merge_validation_results(folder_result, xml_result)

    assert not merged.is_valid
    assert _codes(merged.errors) == ["E301"]
    assert merged.target_folder == "PHOTO"
    assert merged is not folder_result


def test_result_is_immutable(sample_photos):
    result = DeliveryValidator().validate(generate_folder_structure(sample_photos))
    with pytest.raises(PydanticValidationError):
        result.is_valid = False
    assert result.is_valid


def test_format_validation_result_text():
    result = ValidationResult(
        is_valid=False,
        errors=[
            ValidationIssue(
                code="E201",
                message="写真タイトルが設定されていません",
                target_file="P0000001.JPG",
                target_field="photoTitle",
            )
        ],
        warnings=[
            ValidationIssue(
                code="W003",
                message="代表写真が設定されていません",
                target_field="ignored",
                details="代表写真を1枚以上設定することを推奨します",
            )
        ],
        validated_at="2025-06-01T00:00:00.000Z",
        target_folder="PHOTO",
    )

    assert format_validation_result(result) == "\n".join([
        "=" * 60,
        "電子納品検証結果",
        "=" * 60,
        "検証日時: 2025-06-01T00:00:00.000Z",
        "対象フォルダ: PHOTO",
        "結果: 不合格",
        "",
        "エラー (1件):",
        "-" * 40,
        "  [E201] 写真タイトルが設定されていません",
        "    ファイル: P0000001.JPG",
        "    項目: photoTitle",
        "",
        "警告 (1件):",
        "-" * 40,
        "  [W003] 代表写真が設定されていません",
        "    詳細: 代表写真を1枚以上設定することを推奨します",
        "=" * 60,
    ])


def test_format_passing_result():
    result = ValidationResult(is_valid=True, validated_at="2025-06-01T00:00:00.000Z", target_folder="PHOTO")
    text = format_validation_result(result)
    assert "結果: 合格" in text
    assert "エラー" not in text
    assert text.endswith("\n" + "=" * 60)


def test_json_round_trip(make_photo):
    photos = [make_photo(1, title="", shooting_location=None), make_photo(2, shooting_date=None)]
    result = DeliveryValidator().validate(generate_folder_structure(photos))

    text = format_validation_result_as_json(result)
    data = json.loads(text)

    assert data["isValid"] is False
    assert data["errors"][0]["targetFile"] == "P0000001.JPG"
    assert ValidationResult.model_validate_json(text) == result


@pytest.mark.parametrize("name", ["P００００００１.JPG", "P0000001.JPG\n"])
def test_delivery_name_must_be_ascii(sample_photos, name):
    folder = generate_folder_structure(sample_photos)
    bad = folder.photo_files[0].model_copy(update={"delivery_file_name": name})
    folder = folder.model_copy(update={"photo_files": [bad] + folder.photo_files[1:]})

    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E101"]


def test_fullwidth_shooting_date(sample_photos):
    folder = _with_photo_info(generate_folder_structure(sample_photos), 1, shooting_date="２０２５-05-02")
    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E204"]


def test_drawing_duplicating_photo_name(sample_photos):
    folder = generate_folder_structure(sample_photos)
    drawing = DrawingFileEntry(
        original_file_name="plan.jpg",
        delivery_file_name="P0000001.JPG",
        file_path="uploads/plan.jpg",
    )
    folder = folder.model_copy(update={"drawing_files": [drawing]})

    result = DeliveryValidator().validate(folder)

    assert _codes(result.errors) == ["E102", "E103"]
    assert result.errors[1].target_file == "P0000001.JPG"
