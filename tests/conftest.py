"""Shared fixtures for delivery tests."""

from datetime import datetime

import pytest

from src.delivery.models import ExportMetadata, GeoPoint, ProjectPhoto


@pytest.fixture
def metadata():
    return ExportMetadata(
        construction_name="国道1号 道路改良工事",
        contractor_name="山田建設株式会社",
        orderer_name="国土交通省 関東地方整備局",
        construction_start_date="2025-04-01",
        construction_end_date="2026-03-31",
    )


@pytest.fixture
def make_photo():
    """Factory for complete, valid photos; override any field by keyword."""

    def _make(index: int = 1, **overrides) -> ProjectPhoto:
        fields = dict(
            id=f"photo-{index}",
            file_name=f"IMG_{index:04d}.jpg",
            file_path=f"uploads/IMG_{index:04d}.jpg",
            file_size=1024 * index,
            shooting_date=datetime(2025, 5, index, 9, 30),
            title=f"掘削状況 {index}",
            major_category="工事写真",
            category="施工状況",
            construction_type="土工",
            shooting_location="No.1+20",
            is_representative=index == 1,
            location=GeoPoint(latitude=35.6895, longitude=139.6917),
        )
        fields.update(overrides)
        return ProjectPhoto(**fields)

    return _make


@pytest.fixture
def sample_photos(make_photo):
    return [make_photo(i) for i in range(1, 4)]
