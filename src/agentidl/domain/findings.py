"""Validation findings.

Findings are values, not exceptions: validators accumulate every finding
for a unit and return the full list so callers can report all of them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class FindingCode(StrEnum):
    """Closed set of conformance finding kinds."""

    # Definition conformance
    UNKNOWN_EXTENSION_ATTRIBUTE = "UnknownExtensionAttribute"
    MISSING_REQUIRED_ATTRIBUTE = "MissingRequiredAttribute"
    MISSING_DELEGATION_PARAMETER = "MissingDelegationParameter"
    DUPLICATE_OPERATION = "DuplicateOperation"
    MISSING_PROFILE_RULE = "MissingProfileRule"

    # Document conformance
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_TIMESTAMP = "InvalidTimestamp"
    INVALID_PROOF_TYPE = "InvalidProofType"
    REVOKED_DELEGATION = "RevokedDelegation"


class Finding(BaseModel):
    """One rule violation."""

    model_config = {"frozen": True}

    code: FindingCode
    message: str
    location: str | None = None

    def __str__(self) -> str:
        return self.message


def summarize(findings: list[Finding]) -> str:
    """Join finding messages the way batch reports display them."""
    return "; ".join(finding.message for finding in findings)
