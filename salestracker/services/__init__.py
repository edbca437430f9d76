from .data_service import DataService, create_backend, create_data_service
from .analytics_service import AnalyticsService

__all__ = ["DataService", "create_backend", "create_data_service", "AnalyticsService"]
