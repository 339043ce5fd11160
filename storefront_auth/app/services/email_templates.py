"""
OTP Email Templates

Verification and password-reset messages differ only in copy.
"""

from typing import Tuple

from storefront_auth.domain.entities import OtpPurpose

_COPY = {
    OtpPurpose.email_verification: {
        "subject": "Verify Your Email - {brand}",
        "heading": "Verify Your Email",
        "intro": "Welcome to {brand}! Please verify your email address by entering the following code:",
        "footer": "If you didn't create an account with {brand}, please ignore this email.",
    },
    OtpPurpose.password_reset: {
        "subject": "Reset Your Password - {brand}",
        "heading": "Reset Your Password",
        "intro": "You requested to reset your password. Please use the following code:",
        "footer": "If you didn't request a password reset, please ignore this email.",
    },
}

_LAYOUT = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{subject}</title>
</head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background-color: #f8f9fa; color: #333; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
    <div style="background: #ffffff; border-radius: 12px; padding: 40px;">
      <h1 style="text-align: center; font-size: 32px; margin: 0 0 32px;">{brand}</h1>
      <h2 style="text-align: center; margin-bottom: 16px;">{heading}</h2>
      <p>{intro}</p>
      <div style="background: #f8f9fa; border: 2px solid #e9ecef; border-radius: 8px; font-size: 32px; font-weight: 700; letter-spacing: 8px; text-align: center; padding: 20px; margin: 24px 0;">{code}</div>
      <p style="text-align: center; color: #6c757d; font-size: 14px;">This code will expire in {ttl_minutes} minutes.</p>
      <p style="text-align: center; color: #6c757d; font-size: 14px; border-top: 1px solid #e9ecef; padding-top: 32px;">{footer}</p>
    </div>
  </div>
</body>
</html>
"""


def render_otp_email(
    code: str, purpose: OtpPurpose, brand: str, ttl_minutes: int
) -> Tuple[str, str]:
    """Return (subject, html) for a one-time code message."""
    copy = {key: text.format(brand=brand) for key, text in _COPY[purpose].items()}
    html = _LAYOUT.format(
        subject=copy["subject"],
        brand=brand,
        heading=copy["heading"],
        intro=copy["intro"],
        code=code,
        ttl_minutes=ttl_minutes,
        footer=copy["footer"],
    )
    return copy["subject"], html
