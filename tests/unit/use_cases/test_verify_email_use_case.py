from uuid import uuid4

import pytest

from storefront_auth.app.repositories.user_repository import DuplicateEmailError
from storefront_auth.app.services.otp_service import INVALID_OR_EXPIRED_CODE
from storefront_auth.app.services.passwords import check_password
from storefront_auth.app.use_cases.auth import VerifyEmailUseCase, VerifyOtpCommand
from storefront_auth.domain.entities import AuthAction, OneTimeCode, OtpPurpose, User
from storefront_auth.libs.result import Return


def consumed(email: str, purpose: OtpPurpose = OtpPurpose.email_verification):
    return Return.ok(
        OneTimeCode(id=uuid4(), email=email, code="123456", purpose=purpose, used=True)
    )


def signup_command(**overrides) -> VerifyOtpCommand:
    values = dict(
        email="jane@example.com", code="123456", name="Jane Doe", password="secret123"
    )
    values.update(overrides)
    return VerifyOtpCommand(**values)


@pytest.mark.asyncio
async def test_verify_creates_verified_account(mock_uow, otp_service, audit_logger, context):
    """A valid code completes sign-up with a verified account"""
    # Arrange
    otp_service.verify.return_value = consumed("jane@example.com")
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    # Act
    result = await use_case.execute(signup_command(), context)

    # Assert
    assert result.is_ok()
    assert result.value.message == "Email verified and account created successfully"
    assert result.value.user.email_verified is True
    assert result.value.user.is_admin is False

    created = mock_uow.users.create.await_args.args[0]
    assert created.name == "Jane Doe"
    assert check_password("secret123", created.password_hash)
    mock_uow.commit.assert_awaited_once()

    audit_logger.record.assert_awaited_once()
    assert audit_logger.record.await_args.args[0] == AuthAction.EMAIL_VERIFICATION_SUCCESS


@pytest.mark.asyncio
async def test_verify_allow_listed_email_becomes_admin(mock_uow, otp_service, audit_logger):
    otp_service.verify.return_value = consumed("owner@example.com")
    use_case = VerifyEmailUseCase(
        mock_uow, otp_service, audit_logger, frozenset({"owner@example.com"})
    )

    result = await use_case.execute(signup_command(email="owner@example.com"))

    assert result.value.user.is_admin is True


@pytest.mark.asyncio
async def test_verify_wrong_code(mock_uow, otp_service, audit_logger):
    otp_service.verify.return_value = Return.err(INVALID_OR_EXPIRED_CODE)
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    result = await use_case.execute(signup_command(email="Jane@Example.com"))

    assert result.error.code == "INVALID_OR_EXPIRED_CODE"
    mock_uow.users.create.assert_not_called()
    assert audit_logger.record.await_args.args[0] == AuthAction.EMAIL_VERIFICATION_FAILURE
    assert audit_logger.record.await_args.kwargs["email"] == "jane@example.com"


@pytest.mark.asyncio
async def test_verify_existing_account(mock_uow, otp_service, audit_logger):
    otp_service.verify.return_value = consumed("jane@example.com")
    mock_uow.users.get_by_email.return_value = User(
        id=uuid4(), email="jane@example.com", name="Jane"
    )
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    result = await use_case.execute(signup_command())

    assert result.error.code == "USER_ALREADY_EXISTS"
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"code": None}, "Email and verification code are required"),
        ({"email": ""}, "Email and verification code are required"),
        ({"password": None}, "Name and password are required for account creation"),
        ({"code": "12345"}, "OTP must be exactly 6 digits"),
        ({"name": "J"}, "Name must be at least 2 characters long"),
    ],
)
async def test_verify_validation(mock_uow, otp_service, audit_logger, overrides, message):
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    result = await use_case.execute(signup_command(**overrides))

    assert result.error.code == "VALIDATION_ERROR"
    assert result.error.message == message
    otp_service.verify.assert_not_called()


@pytest.mark.asyncio
async def test_verify_password_reset_code_only(mock_uow, otp_service, audit_logger):
    """password_reset codes are consumed without touching accounts"""
    otp_service.verify.return_value = consumed("jane@example.com", OtpPurpose.password_reset)
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    result = await use_case.execute(
        VerifyOtpCommand(
            email="jane@example.com", code="123456", purpose=OtpPurpose.password_reset
        )
    )

    assert result.is_ok()
    assert result.value.message == "OTP verified successfully"
    assert result.value.user is None
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
async def test_verify_rejects_over_long_password_before_consuming(
    mock_uow, otp_service, audit_logger
):
    """bcrypt cannot hash more than 72 bytes, so the code is left untouched"""
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    result = await use_case.execute(signup_command(password="a" * 100))

    assert result.error.code == "VALIDATION_ERROR"
    assert result.error.message == "Password must be at most 72 bytes long"
    otp_service.verify.assert_not_called()
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
async def test_verify_concurrent_registration(mock_uow, otp_service, audit_logger):
    """The account was created by another request between lookup and insert"""
    otp_service.verify.return_value = consumed("jane@example.com")
    mock_uow.users.create.side_effect = DuplicateEmailError("jane@example.com")
    use_case = VerifyEmailUseCase(mock_uow, otp_service, audit_logger)

    result = await use_case.execute(signup_command())

    assert result.error.code == "USER_ALREADY_EXISTS"
    assert result.error.message == "User with this email already exists"
    mock_uow.commit.assert_not_called()
    assert audit_logger.record.await_args.args[0] == AuthAction.EMAIL_VERIFICATION_FAILURE
