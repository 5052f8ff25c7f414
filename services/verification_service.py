"""
Account verification.

There is no token issuance here, so there is nothing to look a token up
against: any non-empty token is accepted. This is a placeholder policy and
must not be mistaken for real verification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

ERROR_INVALID_TOKEN = "Invalid or expired verification token"


@dataclass(frozen=True, slots=True)
class VerificationResult:
    success: bool
    error: Optional[str] = None


def verify_token(token: Any) -> VerificationResult:
    """Accept any non-empty string token."""

    if isinstance(token, str) and len(token) > 0:
        return VerificationResult(success=True)
    return VerificationResult(success=False, error=ERROR_INVALID_TOKEN)


__all__ = ["ERROR_INVALID_TOKEN", "VerificationResult", "verify_token"]
