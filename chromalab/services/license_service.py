"""
License Service.

Professional license submission and review. A submitted license marks the
stylist as pending (is_verified=False) until a reviewer approves it.
"""

from typing import Dict, Optional
import mimetypes
import uuid

from chromalab.core.config import LicenseConfig, get_config
from chromalab.core.exceptions import LicenseSubmissionError
from chromalab.models.session import StylistRecord, StylistSession
from chromalab.services.identity_service import IdentityProvider
from chromalab.services.photo_ingestion_service import PhotoUpload, read_upload_bytes
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class LicenseService:
    """
    Service for license verification.

    Usage:
        licenses = LicenseService(provider)
        record = await licenses.submit_license(session, upload)
        record = await licenses.approve_license(record.uid)
    """

    def __init__(
        self,
        provider: IdentityProvider,
        config: Optional[LicenseConfig] = None,
    ):
        self.provider = provider
        self.config = config or get_config().license
        self._documents: Dict[str, bytes] = {}

    def get_document(self, license_ref: str) -> Optional[bytes]:
        """Submitted license image for a reference, for review."""
        return self._documents.get(license_ref)

    async def submit_license(
        self,
        session: StylistSession,
        upload: Optional[PhotoUpload],
    ) -> StylistRecord:
        """
        Submit a license image for review.

        Raises:
            LicenseSubmissionError: Not signed in, no file, wrong type,
                unreadable or too large
        """
        if not session.is_authenticated:
            raise LicenseSubmissionError("Please sign in to submit your license.")
        if upload is None:
            raise LicenseSubmissionError("Please select a file to upload.")

        content_type = (getattr(upload, "content_type", None) or "").strip().lower()
        if not content_type.startswith(self.config.allowed_type_prefix):
            raise LicenseSubmissionError(
                "Please upload an image file.",
                details={"content_type": content_type or None},
            )

        try:
            payload = await read_upload_bytes(upload)
        except OSError as e:
            raise LicenseSubmissionError("Failed to upload license.") from e
        except TypeError as e:
            raise LicenseSubmissionError("Please select a file to upload.") from e

        if not payload:
            raise LicenseSubmissionError("Please select a file to upload.")

        if len(payload) > self.config.max_license_bytes:
            limit_mb = self.config.max_license_bytes // (1024 * 1024)
            raise LicenseSubmissionError(
                f"File is too large. Please upload an image under {limit_mb}MB.",
                details={"size": len(payload), "limit": self.config.max_license_bytes},
            )

        uid = session.user_id
        extension = mimetypes.guess_extension(content_type) or ""
        license_ref = f"licenses/{uid}/{uuid.uuid4().hex}{extension}"

        previous = await self.provider.get_user_record(uid)
        record = await self.provider.update_license_status(uid, license_ref, is_verified=False)
        self._documents[license_ref] = payload
        # A resubmission replaces the document under review
        if previous is not None and previous.license_ref:
            self._documents.pop(previous.license_ref, None)

        logger.info("License submitted for review", user_id=uid, license_ref=license_ref)
        return record

    async def approve_license(self, uid: str) -> StylistRecord:
        """
        Mark a submitted license as verified.

        Raises:
            LicenseSubmissionError: The stylist has no submitted license
        """
        record = await self.provider.get_user_record(uid)
        if record is None or not record.license_ref:
            raise LicenseSubmissionError(
                "No license has been submitted for this stylist.",
                details={"uid": uid},
            )
        record = await self.provider.update_license_status(
            uid, record.license_ref, is_verified=True
        )
        logger.info("License approved", user_id=uid)
        return record
