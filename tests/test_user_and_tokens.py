from sqlalchemy import select

from attendease.models import DeviceToken
from attendease.schemas.notification.device_token import DeviceTokenRegister
from attendease.schemas.user.profile import StudentProfile, TeacherProfile
from attendease.services.base import ErrorCode
from attendease.services.notification import DeviceTokenService
from attendease.services.user import UserService


async def test_student_profile(db, seed):
    result = await UserService(db).get_profile(seed.x_user_id)

    profile = result.data
    assert isinstance(profile, StudentProfile)
    assert profile.student_code == "CS24001"
    assert profile.batch.code == "CS-2024-A"
    assert profile.to_wire()["role"] == "STUDENT"


async def test_student_profile_without_batch(db, seed):
    result = await UserService(db).get_profile(seed.w_user_id)

    assert result.data.batch is None


async def test_teacher_profile_lists_enrollments(db, seed):
    result = await UserService(db).get_profile(seed.teacher_user_id)

    profile = result.data
    assert isinstance(profile, TeacherProfile)
    assert profile.employee_id == "E001"
    assert sorted(a.batch_code for a in profile.enrollments) == ["CS-2024-A", "CS-2024-C"]


async def test_admin_has_no_profile(db, seed):
    result = await UserService(db).get_profile(seed.admin_user_id)

    assert result.error.code == ErrorCode.BAD_REQUEST
    assert result.error.message == "No profile for role ADMIN"


async def test_unknown_user_profile(db, seed):
    result = await UserService(db).get_profile("missing")

    assert result.error.code == ErrorCode.NOT_FOUND


async def test_register_token_for_student_and_teacher(db, seed):
    service = DeviceTokenService(db)

    student_token = await service.register(seed.x_user_id, DeviceTokenRegister(token="tok-x", device_id="pixel"))
    teacher_token = await service.register(seed.teacher_user_id, DeviceTokenRegister(token="tok-t"))

    assert student_token.data.token == "tok-x"
    assert student_token.data.device_id == "pixel"
    rows = {row.token: row for row in (await db.execute(select(DeviceToken))).scalars()}
    assert rows["tok-x"].student_id == seed.x_id
    assert rows["tok-t"].teacher_id == seed.teacher_id
    assert teacher_token.is_success


async def test_registering_existing_token_moves_it_to_caller(db, seed, session_factory):
    service = DeviceTokenService(db)
    await service.register(seed.x_user_id, DeviceTokenRegister(token="shared"))

    result = await service.register(seed.y_user_id, DeviceTokenRegister(token="shared", device_id="tablet"))

    assert result.is_success
    async with session_factory() as session:
        tokens = (await session.execute(select(DeviceToken))).scalars().all()
    assert [(t.student_id, t.device_id) for t in tokens] == [(seed.y_id, "tablet")]


async def test_admin_cannot_register_device(db, seed):
    result = await DeviceTokenService(db).register(seed.admin_user_id, DeviceTokenRegister(token="tok-a"))

    assert result.error.code == ErrorCode.BAD_REQUEST
    assert result.error.message == "Only students and teachers can register devices"


async def test_unregister_only_own_token(db, seed):
    service = DeviceTokenService(db)
    await service.register(seed.x_user_id, DeviceTokenRegister(token="tok-x"))

    foreign = await service.unregister(seed.y_user_id, "tok-x")
    own = await service.unregister(seed.x_user_id, "tok-x")
    again = await service.unregister(seed.x_user_id, "tok-x")

    assert foreign.error.code == ErrorCode.NOT_FOUND
    assert own.data is True
    assert again.error.code == ErrorCode.NOT_FOUND
