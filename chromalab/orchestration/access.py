"""
Access guard for the professional tools.
"""

from chromalab.core.exceptions import VerificationRequiredError
from chromalab.models.session import StylistSession


def require_verified(session: StylistSession) -> StylistSession:
    """
    Ensure a verified stylist is signed in.

    Raises:
        VerificationRequiredError: Nobody signed in, or license not verified
    """
    if session is None or not session.is_authenticated:
        raise VerificationRequiredError(
            "Sign-in required",
            details={"reason": "unauthenticated"},
        )
    if not session.is_verified:
        raise VerificationRequiredError(
            "License verification required",
            details={"reason": "unverified", "uid": session.user_id},
        )
    return session
