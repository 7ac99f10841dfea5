"""Required versus submitted versus verified document aggregation."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from services.documents import summarize_verification, validate_file_for_certificate
from services.errors import ValidationFailed


def _requirement(type_id: int, *, required: bool = True, active: bool = True):
    return SimpleNamespace(
        id=100 + type_id,
        certificate_type_id=type_id,
        is_required=required,
        is_active=active,
        special_instructions=None,
        certificate_type=SimpleNamespace(name=f"Type {type_id}", description=None),
    )


def _document(type_id: int, verified: bool = False):
    return SimpleNamespace(certificate_type_id=type_id, is_verified=verified)


def test_nothing_required_counts_as_complete():
    summary = summarize_verification([], [])
    assert summary["completionPercentage"] == 100
    assert summary["verificationPercentage"] == 0
    assert summary["missingDocuments"] == []


def test_percentages_round_half_up():
    requirements = [_requirement(1), _requirement(2), _requirement(3)]
    documents = [_document(1, verified=True), _document(2)]

    summary = summarize_verification(requirements, documents)

    assert summary["totalRequired"] == 3
    assert summary["totalSubmitted"] == 2
    assert summary["totalVerified"] == 1
    assert summary["completionPercentage"] == 67
    assert summary["verificationPercentage"] == 50
    assert [item["certificateTypeId"] for item in summary["missingDocuments"]] == [3]
    assert len(summary["verifiedDocuments"]) == 1
    assert len(summary["unverifiedDocuments"]) == 1


def test_completion_is_not_capped():
    requirements = [_requirement(1)]
    documents = [_document(1), _document(2)]
    summary = summarize_verification(requirements, documents)
    assert summary["completionPercentage"] == 200


def test_optional_and_inactive_requirements_are_ignored():
    requirements = [_requirement(1), _requirement(2, required=False), _requirement(3, active=False)]
    summary = summarize_verification(requirements, [_document(1, verified=True)])
    assert summary["totalRequired"] == 1
    assert summary["completionPercentage"] == 100
    assert summary["verificationPercentage"] == 100


def _certificate_type(**fields):
    values = {
        "name": "Marks Memo",
        "allowed_extensions": {"pdf", "jpg", "jpeg"},
        "max_file_size_bytes": 1024,
        "max_file_size_mb": 0.0009765625,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def test_file_type_outside_certificate_whitelist_is_rejected():
    upload = SimpleNamespace(extension="png", file_size=10)
    with pytest.raises(ValidationFailed, match="File type not allowed"):
        validate_file_for_certificate(upload, _certificate_type())


def test_file_over_certificate_size_is_rejected():
    upload = SimpleNamespace(extension="pdf", file_size=4096)
    with pytest.raises(ValidationFailed, match="maximum size"):
        validate_file_for_certificate(upload, _certificate_type())


def test_matching_file_passes():
    upload = SimpleNamespace(extension="jpeg", file_size=512)
    validate_file_for_certificate(upload, _certificate_type())
