# servicehub/services/stats_service.py
"""Platform-wide account counts for the admin dashboard and public stats."""

import logging
from typing import Dict

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class StatsService(BaseService):
    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("platform_stats")
    def platform_stats(self) -> Dict[str, int]:
        return {
            "total_users": self.user_repository.count_all(),
            "total_customers": self.user_repository.count_by_role(RoleName.CUSTOMER),
            "total_providers": self.user_repository.count_by_role(RoleName.PROVIDER),
            "active_users": self.user_repository.count_active(),
        }
