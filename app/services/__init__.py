from app.services.access_request_service import AccessRequestService
from app.services.report_service import ReportService
from app.services.search_service import SearchService

__all__ = ["AccessRequestService", "ReportService", "SearchService"]
