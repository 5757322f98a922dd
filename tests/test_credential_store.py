from datetime import datetime, timedelta, timezone

import pytest

from education_api.core.exceptions import ConflictError
from education_api.models.catalog import Curriculum, ExamBoard, Level
from education_api.models.one_time_code import OneTimeCode
from education_api.models.user import User

pytestmark = pytest.mark.anyio


def new_user(username="alice", email="alice@x.com"):
    return User(username=username, email=email, password_hash="hash")


async def test_create_and_find_user(store):
    created = await store.create_user(new_user())

    assert created.id is not None
    assert created.role == "Student"
    assert created.is_verified is False
    assert (await store.find_user_by_email("alice@x.com")).id == created.id
    assert (await store.find_user_by_id(created.id)).username == "alice"
    assert await store.find_user_by_email("missing@x.com") is None
    assert await store.find_user_by_id(9999) is None


async def test_exists_username(store):
    await store.create_user(new_user())

    assert await store.exists_username("alice") is True
    assert await store.exists_username("alice123456") is False


async def test_duplicate_email_raises_conflict(store):
    await store.create_user(new_user())

    with pytest.raises(ConflictError):
        await store.create_user(new_user(username="other"))

    # Session stays usable after the rollback
    assert await store.exists_username("other") is False


async def test_duplicate_username_raises_conflict(store):
    await store.create_user(new_user())

    with pytest.raises(ConflictError):
        await store.create_user(new_user(email="second@x.com"))


async def test_update_password_and_mark_verified(store):
    user = await store.create_user(new_user())

    assert await store.update_user_password(user.id, "new-hash") is True
    assert await store.mark_user_verified(user.id) is True

    reloaded = await store.find_user_by_id(user.id)
    assert reloaded.password_hash == "new-hash"
    assert reloaded.is_verified is True
    assert await store.mark_user_verified(9999) is False


async def test_find_active_otp_returns_latest_unexpired_unused(store):
    user = await store.create_user(new_user())
    now = datetime.now(timezone.utc)

    def record(code_hash, expires_in, used=False):
        return OneTimeCode(
            email=user.email,
            user_id=user.id,
            code_hash=code_hash,
            expires_at=now + timedelta(minutes=expires_in),
            is_used=used,
        )

    await store.create_otp_record(record("older", 10))
    await store.create_otp_record(record("expired", -1))
    latest = await store.create_otp_record(record("latest", 10))
    await store.create_otp_record(record("used", 10, used=True))

    active = await store.find_active_otp(user.email, now)
    assert active.id == latest.id
    assert await store.find_active_otp("other@x.com", now) is None
    assert await store.find_active_otp(user.email, now + timedelta(minutes=11)) is None


async def test_mark_otp_used_only_succeeds_once(store):
    user = await store.create_user(new_user())
    record = await store.create_otp_record(
        OneTimeCode(
            email=user.email,
            user_id=user.id,
            code_hash="hash",
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=10),
        )
    )

    assert await store.mark_otp_used(record.id) is True
    assert await store.mark_otp_used(record.id) is False


async def test_catalog_lookups(store, session):
    curriculum = Curriculum(name="British")
    board = ExamBoard(name="Cambridge", curriculum=curriculum)
    level = Level(name="IGCSE", exam_board=board)
    session.add_all([curriculum, board, level])
    await session.commit()

    assert (await store.find_curriculum(curriculum.id)).name == "British"
    assert (await store.find_exam_board(board.id)).curriculum_id == curriculum.id
    assert [lvl.id for lvl in await store.find_levels([level.id, 999])] == [level.id]
    assert await store.find_levels([]) == []
    assert await store.find_curriculum(999) is None
