"""
Identity Service.

Identity and stylist-record store interface, an in-memory implementation,
and the SessionTracker that turns auth-state changes into explicit
StylistSession values.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional
import uuid

import bcrypt
from pydantic import BaseModel, EmailStr, Field, ValidationError

from chromalab.core.exceptions import (
    AccountExistsError,
    AuthenticationError,
    InvalidRequestError,
    UserRecordNotFoundError,
)
from chromalab.models.enums import StylistRole
from chromalab.models.session import StylistRecord, StylistSession
from chromalab.utils.logger import (
    clear_correlation_context,
    get_logger,
    set_correlation_context,
)

logger = get_logger(__name__)

# Receives the signed-in uid, or None on sign-out
AuthStateListener = Callable[[Optional[str]], Awaitable[None]]
SessionListener = Callable[[StylistSession], None]

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes
MAX_PASSWORD_BYTES = 72


class SignUpRequest(BaseModel):
    """Sign-up form fields."""

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    display_name: str = ""


class IdentityProvider(ABC):
    """
    Identity and record store.

    Sign-up creates an unverified Stylist record. License status is only
    changed through update_license_status.
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str, display_name: str) -> StylistRecord:
        """Create an account and its record, and sign it in."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> StylistRecord:
        """Sign in with email and password."""

    @abstractmethod
    async def sign_out(self) -> None:
        """Sign out the current account."""

    @abstractmethod
    async def get_user_record(self, uid: str) -> Optional[StylistRecord]:
        """Fetch a stylist record, or None if it does not exist."""

    @abstractmethod
    async def update_license_status(
        self,
        uid: str,
        license_ref: str,
        is_verified: bool = False,
    ) -> StylistRecord:
        """Record a license reference and verification flag."""

    @abstractmethod
    def on_auth_state_changed(self, listener: AuthStateListener) -> Callable[[], None]:
        """Subscribe to sign-in/sign-out. Returns an unsubscribe callable."""


@dataclass
class _Account:
    uid: str
    email: str
    password_hash: str


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))


class InMemoryIdentityProvider(IdentityProvider):
    """
    IdentityProvider kept in process memory.

    Used by tests and local runs. Passwords are stored as bcrypt hashes.
    """

    def __init__(self, bcrypt_rounds: int = 12):
        """
        Initialize InMemoryIdentityProvider.

        Args:
            bcrypt_rounds: bcrypt cost factor (log2 of the iteration count)
        """
        self.bcrypt_rounds = bcrypt_rounds
        self._accounts: Dict[str, _Account] = {}  # keyed by normalized email
        self._records: Dict[str, StylistRecord] = {}
        self._listeners: List[AuthStateListener] = []
        self._current_uid: Optional[str] = None

    @property
    def current_uid(self) -> Optional[str]:
        """Currently signed-in uid."""
        return self._current_uid

    async def sign_up(self, email: str, password: str, display_name: str) -> StylistRecord:
        """
        Create an account with an unverified Stylist record.

        Raises:
            InvalidRequestError: Bad email or password length
            AccountExistsError: Email already registered
        """
        request = self._parse_sign_up(email, password, display_name)
        key = self._normalize_email(request.email)
        if key in self._accounts:
            raise AccountExistsError(f"Account already exists for {key}")

        uid = uuid.uuid4().hex
        self._accounts[key] = _Account(
            uid=uid,
            email=key,
            password_hash=hash_password(request.password, self.bcrypt_rounds),
        )
        record = StylistRecord(
            uid=uid,
            email=key,
            display_name=request.display_name.strip() or None,
            role=StylistRole.STYLIST,
            is_verified=False,
        )
        self._records[uid] = record
        logger.info("Stylist account created", user_id=uid)

        await self._set_current(uid)
        return record

    async def sign_in(self, email: str, password: str) -> StylistRecord:
        """
        Sign in.

        Raises:
            AuthenticationError: Unknown email or wrong password
            UserRecordNotFoundError: Account exists without a record
        """
        account = self._accounts.get(self._normalize_email(email))
        if account is None or not verify_password(password or "", account.password_hash):
            raise AuthenticationError("Invalid email or password")

        record = self._records.get(account.uid)
        if record is None:
            raise UserRecordNotFoundError(
                f"No stylist record for {account.uid}",
                details={"uid": account.uid},
            )

        await self._set_current(account.uid)
        return record

    async def sign_out(self) -> None:
        await self._set_current(None)

    async def get_user_record(self, uid: str) -> Optional[StylistRecord]:
        return self._records.get(uid)

    async def update_license_status(
        self,
        uid: str,
        license_ref: str,
        is_verified: bool = False,
    ) -> StylistRecord:
        """
        Update license reference and verification.

        Raises:
            UserRecordNotFoundError: No record for uid
        """
        record = self._records.get(uid)
        if record is None:
            raise UserRecordNotFoundError(
                f"No stylist record for {uid}",
                details={"uid": uid},
            )
        updated = record.with_license(license_ref, is_verified)
        self._records[uid] = updated
        logger.info(
            "License status updated",
            user_id=uid,
            is_verified=is_verified,
        )
        return updated

    def on_auth_state_changed(self, listener: AuthStateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def delete_record(self, uid: str) -> None:
        """Drop a stylist record while keeping the account."""
        self._records.pop(uid, None)

    async def _set_current(self, uid: Optional[str]) -> None:
        self._current_uid = uid
        for listener in list(self._listeners):
            await listener(uid)

    @staticmethod
    def _normalize_email(email: Optional[str]) -> str:
        return (email or "").strip().lower()

    @staticmethod
    def _parse_sign_up(email: str, password: str, display_name: str) -> SignUpRequest:
        try:
            request = SignUpRequest(
                email=(email or "").strip(),
                password=password or "",
                display_name=display_name or "",
            )
        except ValidationError as e:
            fields = {error["loc"][0] for error in e.errors() if error["loc"]}
            if "email" in fields:
                raise InvalidRequestError("Please enter a valid email address.") from e
            raise InvalidRequestError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            ) from e

        if len(request.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidRequestError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes."
            )
        return request


class SessionTracker:
    """
    Follows the identity provider and holds the current StylistSession.

    Usage:
        tracker = SessionTracker(provider)
        tracker.start()
        await provider.sign_in(email, password)
        session = tracker.session
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._session = StylistSession.anonymous()
        self._listeners: List[SessionListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def session(self) -> StylistSession:
        """Current session value."""
        return self._session

    def start(self) -> None:
        """Subscribe to auth-state changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_auth_state_changed(self._on_auth_state)

    def stop(self) -> None:
        """Unsubscribe from auth-state changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a session-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self) -> StylistSession:
        """Re-read the current stylist's record (e.g. after a license update)."""
        uid = self._session.user_id
        if uid is None:
            return self._session
        record = await self.provider.get_user_record(uid)
        self._set_session(self._session_for(uid, record))
        return self._session

    async def _on_auth_state(self, uid: Optional[str]) -> None:
        if uid is None:
            self._set_session(StylistSession.anonymous())
            return
        record = await self.provider.get_user_record(uid)
        self._set_session(self._session_for(uid, record, new=True))

    def _session_for(
        self,
        uid: str,
        record: Optional[StylistRecord],
        new: bool = False,
    ) -> StylistSession:
        if record is None:
            logger.error("No stylist record found for signed-in user", user_id=uid)
            return StylistSession.anonymous()
        session_id = self._session.session_id
        if new or session_id is None:
            session_id = uuid.uuid4().hex
        return StylistSession(record=record, session_id=session_id)

    def _set_session(self, session: StylistSession) -> None:
        self._session = session
        if session.is_authenticated:
            set_correlation_context(session_id=session.session_id, user_id=session.user_id)
        else:
            clear_correlation_context()
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener failed")
