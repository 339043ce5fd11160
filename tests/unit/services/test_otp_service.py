from datetime import timedelta
from uuid import uuid4

import pytest

from storefront_auth.app.services.otp_service import (
    OtpService,
    generate_code,
    validate_code,
    validate_email,
)
from storefront_auth.domain.base import utc_now
from storefront_auth.domain.entities import AuthAction, OneTimeCode, OtpPurpose
from tests.fixtures.email_outbox import EmailOutbox


def make_service(mock_uow, audit_logger, deliver=True):
    outbox = EmailOutbox(deliver=deliver)
    return OtpService(mock_uow, outbox, audit_logger), outbox


def test_generate_code_is_six_digits():
    """Codes are always six digits between 100000 and 999999"""
    for _ in range(500):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_validate_email_normalizes():
    result = validate_email("  Jane.Doe@Example.COM ")
    assert result.is_ok()
    assert result.value == "jane.doe@example.com"


@pytest.mark.parametrize(
    "email",
    [
        None,
        "",
        "not-an-email",
        "a@b",
        "a b@example.com",
        "jane@example..com",
        "jane@-example.com",
        "jane..doe@example.com",
        "\"x@example.com",
    ],
)
def test_validate_email_rejects_malformed(email):
    result = validate_email(email)
    assert result.is_err()
    assert result.error.code == "VALIDATION_ERROR"
    assert result.error.message == "Please enter a valid email address"


@pytest.mark.parametrize("code", [None, "", "12345", "1234567", "12a456", " 123456"])
def test_validate_code_rejects_malformed(code):
    result = validate_code(code)
    assert result.is_err()
    assert result.error.message == "OTP must be exactly 6 digits"


@pytest.mark.asyncio
async def test_issue_replaces_unused_code_and_sends_email(mock_uow, audit_logger, context):
    """Issuing deletes unused codes, stores a new one and emails it"""
    # Arrange
    service, outbox = make_service(mock_uow, audit_logger)

    # Act
    result = await service.issue("User@Example.com", OtpPurpose.email_verification, context)

    # Assert
    assert result.is_ok()
    assert result.value.email == "user@example.com"
    assert result.value.purpose == OtpPurpose.email_verification

    mock_uow.one_time_codes.delete_unused.assert_awaited_once_with(
        "user@example.com", OtpPurpose.email_verification
    )
    stored = mock_uow.one_time_codes.create.await_args.args[0]
    assert stored.email == "user@example.com"
    assert stored.used is False
    assert len(stored.code) == 6
    mock_uow.commit.assert_awaited_once()

    assert len(outbox.sent) == 1
    assert outbox.sent[0].subject == "Verify Your Email - Storefront"
    assert outbox.last_code("user@example.com") == stored.code

    audit_logger.log_otp_event.assert_awaited_once_with(
        "user@example.com", True, "generation", OtpPurpose.email_verification, context, None
    )
    audit_logger.record.assert_awaited_once_with(
        AuthAction.EMAIL_VERIFICATION_SENT,
        success=True,
        email="user@example.com",
        context=context,
    )


@pytest.mark.asyncio
async def test_issue_sets_expiry_from_ttl(mock_uow, audit_logger):
    service = OtpService(mock_uow, EmailOutbox(), audit_logger, ttl=timedelta(minutes=5))

    before = utc_now()
    result = await service.issue("user@example.com", OtpPurpose.password_reset)

    stored = mock_uow.one_time_codes.create.await_args.args[0]
    assert before + timedelta(minutes=5) <= stored.expires_at
    assert stored.expires_at <= utc_now() + timedelta(minutes=5)
    assert result.value.expires_at == stored.expires_at
    # Only verification codes count as verification emails
    audit_logger.record.assert_not_called()


@pytest.mark.asyncio
async def test_issue_delivery_failure_keeps_code(mock_uow, audit_logger, context):
    """A failed send is reported but the stored code stays committed"""
    service, _ = make_service(mock_uow, audit_logger, deliver=False)

    result = await service.issue("user@example.com", OtpPurpose.email_verification, context)

    assert result.is_err()
    assert result.error.code == "EMAIL_DELIVERY_FAILED"
    assert result.error.message == "Failed to send verification email"
    mock_uow.commit.assert_awaited_once()

    args = audit_logger.log_otp_event.await_args.args
    assert args[1] is False
    assert args[5] == "Failed to send email"
    audit_logger.record.assert_not_called()


@pytest.mark.asyncio
async def test_issue_rejects_invalid_email(mock_uow, audit_logger):
    service, outbox = make_service(mock_uow, audit_logger)

    result = await service.issue("nope", OtpPurpose.email_verification)

    assert result.is_err()
    assert result.error.code == "VALIDATION_ERROR"
    mock_uow.one_time_codes.create.assert_not_called()
    assert outbox.sent == []


@pytest.mark.asyncio
async def test_verify_consumes_matching_code(mock_uow, audit_logger, context):
    """A matching, unexpired, unused code is consumed exactly once"""
    # Arrange
    record = OneTimeCode(
        id=uuid4(),
        email="user@example.com",
        code="123456",
        purpose=OtpPurpose.email_verification,
        expires_at=utc_now() + timedelta(minutes=10),
    )
    mock_uow.one_time_codes.find_valid.return_value = record
    service, _ = make_service(mock_uow, audit_logger)

    # Act
    result = await service.verify(
        "USER@example.com", "123456", OtpPurpose.email_verification, context
    )

    # Assert
    assert result.is_ok()
    assert result.value.used is True
    mock_uow.one_time_codes.mark_used.assert_awaited_once()
    assert mock_uow.one_time_codes.mark_used.await_args.args[0] == record.id
    mock_uow.commit.assert_awaited_once()
    assert audit_logger.log_otp_event.await_args.args[:3] == (
        "user@example.com",
        True,
        "verification",
    )


@pytest.mark.asyncio
async def test_verify_unknown_code_fails(mock_uow, audit_logger):
    mock_uow.one_time_codes.find_valid.return_value = None
    service, _ = make_service(mock_uow, audit_logger)

    result = await service.verify("user@example.com", "654321", OtpPurpose.password_reset)

    assert result.is_err()
    assert result.error.code == "INVALID_OR_EXPIRED_CODE"
    mock_uow.one_time_codes.mark_used.assert_not_called()
    mock_uow.commit.assert_not_called()
    args = audit_logger.log_otp_event.await_args.args
    assert args[1] is False
    assert args[5] == "Invalid or expired code"


@pytest.mark.asyncio
async def test_verify_lost_race_fails_like_invalid_code(mock_uow, audit_logger):
    """When another request consumed the code first, the result is indistinguishable"""
    mock_uow.one_time_codes.find_valid.return_value = OneTimeCode(
        id=uuid4(), email="user@example.com", code="123456"
    )
    mock_uow.one_time_codes.mark_used.return_value = False
    service, _ = make_service(mock_uow, audit_logger)

    result = await service.verify("user@example.com", "123456", OtpPurpose.email_verification)

    assert result.is_err()
    assert result.error.code == "INVALID_OR_EXPIRED_CODE"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_verify_malformed_code_skips_lookup(mock_uow, audit_logger):
    service, _ = make_service(mock_uow, audit_logger)

    result = await service.verify("user@example.com", "12ab56", OtpPurpose.email_verification)

    assert result.is_err()
    assert result.error.code == "VALIDATION_ERROR"
    mock_uow.one_time_codes.find_valid.assert_not_called()
    audit_logger.log_otp_event.assert_awaited_once()
