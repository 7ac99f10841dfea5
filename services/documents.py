"""Document requirement aggregation and attachment rules."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from .errors import ValidationFailed


def _percent(numerator: int, denominator: int) -> int:
    """Half-up rounded percentage; the result is not capped at 100."""

    return (numerator * 200 + denominator) // (denominator * 2)


def required_requirements(requirements: Iterable[Any]) -> list[Any]:
    return [req for req in requirements if req.is_required and req.is_active]


def summarize_verification(
    requirements: Sequence[Any], documents: Sequence[Any]
) -> dict:
    """Compare a program's required certificates with submitted documents.

    ``requirements`` are program certificate requirements (inactive and
    optional ones are ignored). ``documents`` are every document attached
    to the application. With nothing required the application counts as
    complete. ``completionPercentage`` is submitted over required and is
    deliberately left uncapped, so extra documents can push it past 100.
    """

    required = required_requirements(requirements)
    submitted_type_ids = {doc.certificate_type_id for doc in documents}

    verified = [doc for doc in documents if doc.is_verified]
    unverified = [doc for doc in documents if not doc.is_verified]

    missing = []
    for requirement in required:
        if requirement.certificate_type_id in submitted_type_ids:
            continue
        certificate_type = requirement.certificate_type
        missing.append(
            {
                "requirementId": requirement.id,
                "certificateTypeId": requirement.certificate_type_id,
                "name": certificate_type.name if certificate_type else None,
                "description": certificate_type.description if certificate_type else None,
                "specialInstructions": requirement.special_instructions,
            }
        )

    total_required = len(required)
    total_submitted = len(documents)
    total_verified = len(verified)

    completion = 100 if total_required == 0 else _percent(total_submitted, total_required)
    verification = 0 if total_submitted == 0 else _percent(total_verified, total_submitted)

    return {
        "totalRequired": total_required,
        "totalSubmitted": total_submitted,
        "totalVerified": total_verified,
        "missingDocuments": missing,
        "verifiedDocuments": verified,
        "unverifiedDocuments": unverified,
        "completionPercentage": completion,
        "verificationPercentage": verification,
    }


def validate_file_for_certificate(file_upload: Any, certificate_type: Any) -> None:
    """Check an uploaded file against a certificate type's type and size limits."""

    allowed = certificate_type.allowed_extensions
    if allowed and file_upload.extension not in allowed:
        raise ValidationFailed(
            "File type not allowed for {}. Allowed types: {}.".format(
                certificate_type.name, ", ".join(sorted(allowed))
            )
        )
    if file_upload.file_size > certificate_type.max_file_size_bytes:
        raise ValidationFailed(
            "File exceeds the maximum size of {:g}MB for {}.".format(
                certificate_type.max_file_size_mb, certificate_type.name
            )
        )
