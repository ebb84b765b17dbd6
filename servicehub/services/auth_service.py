# servicehub/services/auth_service.py
"""
Authentication Service for the ServiceHub Platform

Handles registration, credential checks, token issuing and profile
updates. Follows the service layer pattern to keep business logic out of
routes.
"""

from enum import Enum
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..auth import create_access_token, get_password_hash, verify_password
from ..core.enums import RoleName
from ..core.exceptions import ConflictException, UnauthorizedException, ValidationException
from ..database import get_db_session
from ..models.user import User, default_availability
from ..repositories.factory import RepositoryFactory
from ..schemas.auth import ProfileUpdateRequest, RegisterRequest
from .base import BaseService

logger = logging.getLogger(__name__)

COMMON_PROFILE_FIELDS = ("name", "email", "phone_number", "profile_image")
CUSTOMER_PROFILE_FIELDS = ("address", "city", "pincode")
PROVIDER_PROFILE_FIELDS = (
    "service_type",
    "location",
    "hourly_rate",
    "experience",
    "description",
    "skills",
    "certifications",
)
PROVIDER_REQUIRED_FIELDS = ("service_type", "location", "hourly_rate")


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class AuthService(BaseService):
    """Service for handling authentication operations."""

    def __init__(self, db: Session, user_repository: Any | None = None) -> None:
        """Initialize authentication service."""
        super().__init__(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.user_repository.get_by_email(email)

    @BaseService.measure_operation("register_user")
    def register_user(self, data: RegisterRequest) -> User:
        """
        Register a new customer or provider.

        Args:
            data: Validated registration payload

        Returns:
            Created user object

        Raises:
            ConflictException: If email already exists
        """
        email = data.email.lower()
        self.log_operation("register_user", email=email, role=data.role.value)

        if self.get_user_by_email(email):
            self.logger.warning(f"Registration failed - email already exists: {email}")
            raise ConflictException("User with this email already exists")

        fields: Dict[str, Any] = {
            "email": email,
            "hashed_password": get_password_hash(data.password),
            "name": data.name,
            "phone_number": data.phone_number,
            "role": data.role.value,
        }
        if data.role == RoleName.CUSTOMER:
            fields.update(address=data.address, city=data.city, pincode=data.pincode)
        else:
            fields.update(
                service_type=_plain(data.service_type),
                location=data.location,
                hourly_rate=data.hourly_rate,
                experience=data.experience or 0,
                description=data.description,
                skills=data.skills or [],
                certifications=data.certifications or [],
                availability=default_availability(),
            )

        with self.transaction():
            user: User = self.user_repository.create(**fields)

        self.logger.info(f"Successfully registered user: {email} with role: {data.role.value}")
        return user

    @BaseService.measure_operation("authenticate_user")
    def authenticate_user(self, email: str, password: str, role: Optional[str] = None) -> User:
        """
        Check credentials.

        Unknown email, wrong password, role mismatch and inactive accounts all
        fail with the same 401 so callers cannot tell which one applied.

        Raises:
            UnauthorizedException: If authentication fails
        """
        self.logger.info(f"Authentication attempt for user: {email}")

        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            self.logger.warning(f"Authentication failed - bad credentials: {email}")
            raise UnauthorizedException("Invalid credentials")

        if role and user.role != _plain(role):
            self.logger.warning(f"Authentication failed - role mismatch for {email}")
            raise UnauthorizedException("Invalid credentials")

        if not user.is_active:
            self.logger.warning(f"Authentication failed - account deactivated: {email}")
            raise UnauthorizedException("Account is deactivated")

        self.logger.info(f"Successful authentication for user: {email}")
        return user

    def issue_token(self, user: User) -> str:
        """JWT for ``user``: sub is the email, plus user_id and role claims."""
        return create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role})

    @BaseService.measure_operation("update_profile")
    def update_profile(self, user: User, data: ProfileUpdateRequest) -> User:
        """
        Apply a partial profile update.

        Only fields relevant to the user's role are applied; the role itself
        never changes.

        Raises:
            ConflictException: If the new email belongs to another account
            ValidationException: If a provider clears a required offering field
        """
        changes = data.model_dump(exclude_unset=True)
        allowed = COMMON_PROFILE_FIELDS + (
            PROVIDER_PROFILE_FIELDS if user.is_provider else CUSTOMER_PROFILE_FIELDS
        )
        updates = {key: _plain(value) for key, value in changes.items() if key in allowed}

        for required in ("name", "email", "phone_number"):
            if required in updates and not updates[required]:
                raise ValidationException(f"{required} cannot be empty")

        if "email" in updates and self.user_repository.email_taken_by_other(
            updates["email"], user.id
        ):
            raise ConflictException("Email is already in use by another account")

        if user.is_provider:
            missing = [
                f
                for f in PROVIDER_REQUIRED_FIELDS
                if not (updates[f] if f in updates else getattr(user, f))
            ]
            if missing:
                raise ValidationException(
                    f"Providers must keep: {', '.join(missing)}",
                    details={"missing": missing},
                )
            for list_field in ("skills", "certifications"):
                if list_field in updates and updates[list_field] is None:
                    updates[list_field] = []

        with self.transaction():
            for key, value in updates.items():
                setattr(user, key, value)
            self.db.flush()

        self.log_operation("update_profile", user_id=user.id, fields=sorted(updates))
        return user


def load_token_user(claims: Dict[str, Any]) -> Optional[User]:
    """
    Resolve a token's user in a session of its own.

    The returned instance is detached with its columns loaded, so streaming
    connections can keep it without pinning a pooled connection.
    """
    with get_db_session() as db:
        user_repository = RepositoryFactory.create_user_repository(db)
        return user_repository.get_by_token_claims(claims)
