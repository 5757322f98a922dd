import re
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from education_api.core.exceptions import (
    InvalidOtpError,
    OTP_EXPIRED_MESSAGE,
    OTP_MISMATCH_MESSAGE,
    UnauthorizedError,
)
from education_api.models.one_time_code import OneTimeCode
from education_api.models.user import User
from education_api.services import otp_service as otp_module
from education_api.services.otp_service import OtpService

pytestmark = pytest.mark.anyio


async def create_user(store, email="a@b.com", username="alice"):
    return await store.create_user(User(username=username, email=email, password_hash="x"))


async def issue_fixed_code(otp_service, monkeypatch, user, code):
    monkeypatch.setattr(otp_service, "generate", lambda: code)
    return await otp_service.issue(user.id, user.email)


def test_generate_is_six_digits():
    codes = {OtpService.generate() for _ in range(200)}
    assert all(re.fullmatch(r"\d{6}", code) for code in codes)
    assert len(codes) > 1


def test_generate_zero_pads(monkeypatch):
    monkeypatch.setattr(otp_module.secrets, "randbelow", lambda n: 42)
    assert otp_module.OtpService.generate() == "000042"


async def test_issue_stores_only_a_hash(otp_service, store, session, clock):
    user = await create_user(store)

    code = await otp_service.issue(user.id, user.email)

    record = (await session.execute(select(OneTimeCode))).scalar_one()
    assert record.code_hash != code
    assert otp_service.hasher.verify(code, record.code_hash)
    assert record.is_used is False
    assert record.user_id == user.id
    assert record.expires_at.replace(tzinfo=None) == (clock.now + timedelta(minutes=10)).replace(tzinfo=None)


async def test_verify_succeeds_exactly_once(otp_service, store, monkeypatch):
    user = await create_user(store)
    await issue_fixed_code(otp_service, monkeypatch, user, "042913")

    await otp_service.verify("a@b.com", "042913")

    with pytest.raises(UnauthorizedError) as exc:
        await otp_service.verify("a@b.com", "042913")
    assert exc.value.message == OTP_EXPIRED_MESSAGE


async def test_wrong_code_keeps_record_usable(otp_service, store, monkeypatch):
    user = await create_user(store)
    await issue_fixed_code(otp_service, monkeypatch, user, "123456")

    with pytest.raises(UnauthorizedError) as exc:
        await otp_service.verify("a@b.com", "654321")
    assert exc.value.message == OTP_MISMATCH_MESSAGE

    await otp_service.verify("a@b.com", "123456")


async def test_expired_code_behaves_like_no_code(otp_service, store, clock, monkeypatch):
    user = await create_user(store)
    await issue_fixed_code(otp_service, monkeypatch, user, "111111")

    clock.advance(minutes=11)

    with pytest.raises(InvalidOtpError) as expired:
        await otp_service.verify("a@b.com", "111111")
    with pytest.raises(InvalidOtpError) as missing:
        await otp_service.verify("nobody@b.com", "111111")
    assert expired.value.message == missing.value.message


async def test_code_still_valid_just_before_expiry(otp_service, store, clock, monkeypatch):
    user = await create_user(store)
    await issue_fixed_code(otp_service, monkeypatch, user, "222222")

    clock.advance(minutes=9)

    await otp_service.verify("a@b.com", "222222")


async def test_newer_code_supersedes_older(otp_service, store, session, monkeypatch):
    user = await create_user(store)
    await issue_fixed_code(otp_service, monkeypatch, user, "333333")
    await issue_fixed_code(otp_service, monkeypatch, user, "444444")

    with pytest.raises(UnauthorizedError):
        await otp_service.verify("a@b.com", "333333")
    await otp_service.verify("a@b.com", "444444")

    # Superseded records are kept, not deleted
    count = (await session.execute(select(func.count()).select_from(OneTimeCode))).scalar_one()
    assert count == 2


async def test_losing_a_consume_race_is_unauthorized(otp_service, store, monkeypatch):
    user = await create_user(store)
    await issue_fixed_code(otp_service, monkeypatch, user, "555555")
    record = await store.find_active_otp("a@b.com", otp_service._clock())

    # Another request consumes the code between lookup and update
    assert await store.mark_otp_used(record.id) is True

    async def stale_lookup(email, now):
        return record

    monkeypatch.setattr(store, "find_active_otp", stale_lookup)

    with pytest.raises(InvalidOtpError):
        await otp_service.verify("a@b.com", "555555")
