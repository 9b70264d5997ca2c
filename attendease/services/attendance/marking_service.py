"""
Mark engine: bulk idempotent marking and audited single-record correction.

Handles:
- Bulk upsert of a session roster in one transaction
- Record correction with an append-only audit entry
- Session roster for the marking screen
- Correction history of a record
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.config.settings import settings
from attendease.core.exceptions import BadRequestError
from attendease.models.base import utcnow
from attendease.repositories.attendance.edit_repository import AttendanceEditRepository
from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.user.user_repository import StudentRepository
from attendease.schemas.attendance.record import (
    AttendanceEditView,
    MarkAttendanceRequest,
    MarkResult,
    RecordUpdateRequest,
    RecordUpdateResult,
    StudentRecordView,
)
from attendease.services.attendance.mappers import edit_view, record_view, unmarked_view
from attendease.services.attendance.ownership import OwnershipGuard
from attendease.services.base import BaseService, ServiceResult

if TYPE_CHECKING:
    from attendease.services.notification.fanout_service import FanoutService


class MarkingService(BaseService):
    """
    Service for writing attendance.

    Both write paths validate everything before touching the database, run
    in a single transaction, and trigger the notification fan-out only after
    a successful commit.
    """

    def __init__(self, db_session: AsyncSession, fanout: Optional["FanoutService"] = None):
        super().__init__(db_session)
        self.guard = OwnershipGuard(db_session)
        self.records = AttendanceRecordRepository(db_session)
        self.edits = AttendanceEditRepository(db_session)
        self.students = StudentRepository(db_session)
        self.fanout = fanout

    async def mark_attendance(
        self,
        teacher_user_id: str,
        session_id: str,
        request: MarkAttendanceRequest,
        notify: bool = True,
    ) -> ServiceResult[MarkResult]:
        """
        Upsert the submitted statuses for a session.

        Every submitted student must currently belong to the enrollment's
        batch; otherwise nothing is written. Students left out of the payload
        keep whatever they had.

        Args:
            teacher_user_id: User id of the calling teacher
            session_id: Session being marked
            request: Per-student statuses
            notify: Run the notification fan-out inline after commit

        Returns:
            ServiceResult with the written records; ``metadata["student_ids"]``
            lists the students touched by this call
        """
        operation = "mark_attendance"
        self._logger.info(
            f"{operation}: session_id={session_id}, record_count={len(request.records)}"
        )

        try:
            _, session = await self.guard.owned_session(teacher_user_id, session_id)

            if not request.records:
                raise BadRequestError("No attendance records provided")

            student_ids = [entry.student_id for entry in request.records]
            duplicates = sorted({sid for sid in student_ids if student_ids.count(sid) > 1})
            if duplicates:
                raise BadRequestError(
                    "Each student may appear only once per request",
                    details={"duplicate_student_ids": duplicates},
                )

            batch_student_ids = await self.students.ids_in_batch(session.enrollment.batch_id)
            invalid = sorted(set(student_ids) - batch_student_ids)
            if invalid:
                raise BadRequestError(
                    f"Students not in batch {session.enrollment.batch.code}: {', '.join(invalid)}",
                    details={"invalid_student_ids": invalid},
                )

            marked_at = utcnow()
            async with self.transaction():
                for entry in request.records:
                    await self.records.upsert(session.id, entry.student_id, entry.status, marked_at)

            records = await self.records.list_for_session(session.id, student_ids)
            mark_result = MarkResult(
                session_id=session.id,
                marked_count=len(records),
                records=[record_view(record) for record in records],
            )

            self._logger.info(
                f"{operation} successful: session_id={session.id}, marked_count={len(records)}"
            )

            result = ServiceResult.success(
                mark_result,
                message="Attendance marked successfully",
                metadata={"session_id": session.id, "student_ids": student_ids},
            )
            if notify and self.fanout is not None:
                result.add_metadata(
                    "dispatch",
                    await self.fanout.attendance_marked(session.id, student_ids),
                )
            return result

        except Exception as e:
            return self._handle_exception(e, operation, session_id)

    async def update_attendance_record(
        self,
        teacher_user_id: str,
        record_id: str,
        request: RecordUpdateRequest,
        notify: bool = True,
    ) -> ServiceResult[RecordUpdateResult]:
        """
        Change the status of one record and append the audit entry.

        The audit entry and the status change commit together or not at all.
        """
        operation = "update_attendance_record"
        self._logger.info(
            f"{operation}: record_id={record_id}, new_status={request.status.value}"
        )

        try:
            _, record = await self.guard.owned_record(teacher_user_id, record_id)

            old_status = record.status
            reason = request.reason or settings.DEFAULT_EDIT_REASON

            async with self.transaction():
                edit = await self.edits.record_edit(
                    record_id=record.id,
                    session_id=record.session_id,
                    edited_by=teacher_user_id,
                    old_status=old_status,
                    new_status=request.status,
                    reason=reason,
                )
                record.status = request.status
                await self.db.flush()

            self._logger.info(
                f"{operation} successful: record_id={record.id}, "
                f"{old_status.value} -> {request.status.value}"
            )

            result = ServiceResult.success(
                RecordUpdateResult(record=record_view(record), edit=edit_view(edit)),
                message="Attendance record updated successfully",
                metadata={"record_id": record.id, "edit_id": edit.id},
            )
            if notify and self.fanout is not None:
                result.add_metadata("dispatch", await self.fanout.attendance_edited(edit.id))
            return result

        except Exception as e:
            return self._handle_exception(e, operation, record_id)

    async def get_session_students(
        self,
        teacher_user_id: str,
        session_id: str,
    ) -> ServiceResult[List[StudentRecordView]]:
        """
        Roster for the marking screen.

        Returns stored records when the session has any; otherwise one unmarked
        PRESENT row per batch student with an empty ``record_id``.
        """
        operation = "get_session_students"

        try:
            _, session = await self.guard.owned_session(teacher_user_id, session_id)

            records = await self.records.list_for_session(session.id)
            if records:
                return ServiceResult.success(
                    [record_view(record) for record in records],
                    metadata={"is_marked": True},
                )

            batch = session.enrollment.batch
            students = await self.students.list_by_batch(batch.id)
            if not students:
                raise BadRequestError(
                    f"No students are assigned to batch {batch.code}. "
                    f"Please assign students to this batch first.",
                    details={"batch_id": batch.id},
                )

            return ServiceResult.success(
                [unmarked_view(student) for student in students],
                metadata={"is_marked": False},
            )

        except Exception as e:
            return self._handle_exception(e, operation, session_id)

    async def get_record_edits(
        self,
        teacher_user_id: str,
        record_id: str,
    ) -> ServiceResult[List[AttendanceEditView]]:
        """Correction history of a record, newest first."""
        operation = "get_record_edits"

        try:
            _, record = await self.guard.owned_record(teacher_user_id, record_id)
            edits = await self.edits.list_for_record(record.id)
            return ServiceResult.success([edit_view(edit) for edit in edits])

        except Exception as e:
            return self._handle_exception(e, operation, record_id)
