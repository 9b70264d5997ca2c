"""
Attendance endpoints: sessions, marking, corrections and reports.

Writes commit before the response is sent; the notification fan-out is
scheduled as a background task and never changes the response.
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.api.deps import get_db, get_fanout, require_student, require_teacher
from attendease.api.errors import handle_result
from attendease.models.user import User
from attendease.schemas.attendance.record import (
    AttendanceEditView,
    MarkAttendanceRequest,
    MarkResult,
    RecordUpdateRequest,
    RecordUpdateResult,
    StudentRecordView,
)
from attendease.schemas.attendance.report import (
    EnrollmentSummary,
    StudentAttendanceSummary,
    SubjectAttendanceDetail,
    TeacherDashboard,
)
from attendease.schemas.attendance.session import SessionCreate, SessionDetail, SessionSummary
from attendease.schemas.attendance.stats import AttendanceStats
from attendease.schemas.common.base import APIResponse
from attendease.services.attendance import MarkingService, ReportService, SessionService
from attendease.services.notification.fanout_service import FanoutService

router = APIRouter(prefix="/attendance")


# ==================== Sessions ====================

@router.post(
    "/sessions",
    response_model=APIResponse[SessionSummary],
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    request: SessionCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
    fanout: FanoutService = Depends(get_fanout),
):
    result = await SessionService(db).create_session(user.id, request, notify=False)
    session = handle_result(result)
    background_tasks.add_task(fanout.session_created, session.id)
    return APIResponse[SessionSummary](data=session, message=result.message)


@router.get("/sessions", response_model=APIResponse[List[SessionSummary]])
async def list_teacher_sessions(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    sessions = handle_result(await SessionService(db).get_teacher_sessions(user.id, limit))
    return APIResponse[List[SessionSummary]](data=sessions)


@router.get("/sessions/{session_id}", response_model=APIResponse[SessionDetail])
async def get_session(
    session_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    detail = handle_result(await SessionService(db).get_session_by_id(session_id, user.id))
    return APIResponse[SessionDetail](data=detail)


@router.delete("/sessions/{session_id}", response_model=APIResponse[bool])
async def delete_session(
    session_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    result = await SessionService(db).delete_session(user.id, session_id)
    return APIResponse[bool](data=handle_result(result), message=result.message)


@router.get("/sessions/{session_id}/students", response_model=APIResponse[List[StudentRecordView]])
async def get_session_students(
    session_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    roster = handle_result(await MarkingService(db).get_session_students(user.id, session_id))
    return APIResponse[List[StudentRecordView]](data=roster)


@router.post("/sessions/{session_id}/mark", response_model=APIResponse[MarkResult])
async def mark_attendance(
    session_id: str,
    request: MarkAttendanceRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
    fanout: FanoutService = Depends(get_fanout),
):
    result = await MarkingService(db).mark_attendance(user.id, session_id, request, notify=False)
    marked = handle_result(result)
    background_tasks.add_task(
        fanout.attendance_marked, marked.session_id, result.metadata["student_ids"]
    )
    return APIResponse[MarkResult](data=marked, message=result.message)


# ==================== Records ====================

@router.patch("/records/{record_id}", response_model=APIResponse[RecordUpdateResult])
async def update_record(
    record_id: str,
    request: RecordUpdateRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
    fanout: FanoutService = Depends(get_fanout),
):
    result = await MarkingService(db).update_attendance_record(
        user.id, record_id, request, notify=False
    )
    updated = handle_result(result)
    background_tasks.add_task(fanout.attendance_edited, result.metadata["edit_id"])
    return APIResponse[RecordUpdateResult](data=updated, message=result.message)


@router.get("/records/{record_id}/edits", response_model=APIResponse[List[AttendanceEditView]])
async def get_record_edits(
    record_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    edits = handle_result(await MarkingService(db).get_record_edits(user.id, record_id))
    return APIResponse[List[AttendanceEditView]](data=edits)


# ==================== Enrollments ====================

@router.get(
    "/enrollments/{enrollment_id}/sessions",
    response_model=APIResponse[List[SessionSummary]],
)
async def list_enrollment_sessions(
    enrollment_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    sessions = handle_result(
        await SessionService(db).get_enrollment_sessions(enrollment_id, user.id)
    )
    return APIResponse[List[SessionSummary]](data=sessions)


@router.get("/enrollments/{enrollment_id}/summary", response_model=APIResponse[EnrollmentSummary])
async def get_enrollment_summary(
    enrollment_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    summary = handle_result(
        await ReportService(db).get_enrollment_summary(enrollment_id, user.id)
    )
    return APIResponse[EnrollmentSummary](data=summary)


@router.get(
    "/enrollments/{enrollment_id}/students/{student_id}/stats",
    response_model=APIResponse[AttendanceStats],
)
async def get_student_stats(
    enrollment_id: str,
    student_id: str,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    stats = handle_result(
        await ReportService(db).get_student_stats(student_id, enrollment_id, user.id)
    )
    return APIResponse[AttendanceStats](data=stats)


# ==================== Teacher dashboard ====================

@router.get("/me/dashboard", response_model=APIResponse[TeacherDashboard])
async def get_my_dashboard(
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    dashboard = handle_result(await ReportService(db).get_teacher_dashboard(user.id))
    return APIResponse[TeacherDashboard](data=dashboard)


# ==================== Student views ====================

@router.get("/me/summary", response_model=APIResponse[StudentAttendanceSummary])
async def get_my_summary(
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    summary = handle_result(await ReportService(db).get_student_summary(user.id))
    return APIResponse[StudentAttendanceSummary](data=summary)


@router.get("/me/subjects/{subject_code}", response_model=APIResponse[SubjectAttendanceDetail])
async def get_my_subject_attendance(
    subject_code: str,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    detail = handle_result(
        await ReportService(db).get_my_attendance_by_subject_code(user.id, subject_code)
    )
    return APIResponse[SubjectAttendanceDetail](data=detail)
