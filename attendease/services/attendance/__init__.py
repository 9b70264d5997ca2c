"""
Attendance service layer.

Provides business logic for:
- Session lifecycle (create/delete/list)
- Marking and audited corrections
- Attendance statistics
- Teacher and student reports
"""

from attendease.services.attendance.marking_service import MarkingService
from attendease.services.attendance.report_service import ReportService
from attendease.services.attendance.session_service import SessionService
from attendease.services.attendance.statistics_service import StatisticsService

__all__ = [
    "MarkingService",
    "ReportService",
    "SessionService",
    "StatisticsService",
]
