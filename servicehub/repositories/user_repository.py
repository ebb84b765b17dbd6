# servicehub/repositories/user_repository.py
"""
User Repository for the ServiceHub Platform

Handles User data access: lookups by email, provider discovery with
filters and paging, and the account counts behind the stats endpoints.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    # ==========================================
    # Basic Lookups
    # ==========================================

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (emails are stored lowercased)."""
        try:
            normalized = (email or "").strip().lower()
            return cast(
                Optional[User],
                self.db.query(User).filter(User.email == normalized).first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by email {email}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve user by email: {str(e)}")

    def get_by_token_claims(self, claims: Dict[str, Any]) -> Optional[User]:
        """Resolve a token's user by ``user_id``, falling back to the ``sub`` email."""
        user_id = claims.get("user_id")
        if isinstance(user_id, str) and user_id:
            return self.get_by_id(user_id, load_relationships=False)
        email = claims.get("sub")
        if isinstance(email, str) and email:
            return self.get_by_email(email)
        return None

    def email_taken_by_other(self, email: str, user_id: str) -> bool:
        """True when another account already uses ``email``."""
        try:
            normalized = (email or "").strip().lower()
            return (
                self.db.query(User.id)
                .filter(User.email == normalized, User.id != user_id)
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking email ownership: {str(e)}")
            raise RepositoryException(f"Failed to check email: {str(e)}")

    # ==========================================
    # Provider discovery
    # ==========================================

    def get_active_provider(self, provider_id: str) -> Optional[User]:
        """Get an active provider by id."""
        try:
            return cast(
                Optional[User],
                self.db.query(User)
                .filter(
                    User.id == provider_id,
                    User.role == RoleName.PROVIDER.value,
                    User.is_active.is_(True),
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve provider: {str(e)}")

    def search_providers(
        self,
        service_type: Optional[str] = None,
        location: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        """
        Active providers, newest first.

        Args:
            service_type: Exact service type match
            location: Case-insensitive substring of the provider location
            skip: Rows to skip
            limit: Page size

        Returns:
            Tuple of (page of providers, total matching)
        """
        try:
            query = self.db.query(User).filter(
                User.role == RoleName.PROVIDER.value, User.is_active.is_(True)
            )
            if service_type:
                query = query.filter(User.service_type == service_type)
            if location:
                query = query.filter(
                    func.lower(User.location).contains(location.strip().lower(), autoescape=True)
                )

            total = query.count()
            providers = (
                query.order_by(User.created_at.desc(), User.id.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )
            return cast(List[User], providers), total
        except SQLAlchemyError as e:
            self.logger.error(f"Error searching providers: {str(e)}")
            raise RepositoryException(f"Failed to search providers: {str(e)}")

    # ==========================================
    # Counts
    # ==========================================

    def count_all(self) -> int:
        try:
            return self.db.query(func.count(User.id)).scalar() or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting users: {str(e)}")
            raise RepositoryException(f"Failed to count users: {str(e)}")

    def count_by_role(self, role: RoleName) -> int:
        return self.count(role=role.value)

    def count_active(self) -> int:
        return self.count(is_active=True)
