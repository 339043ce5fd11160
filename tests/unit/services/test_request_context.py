from storefront_auth.app.services.email_templates import render_otp_email
from storefront_auth.app.services.request_context import RequestContext, resolve_client_ip
from storefront_auth.domain.entities import OtpPurpose


def test_forwarded_for_first_hop_wins():
    context = RequestContext.from_headers(
        {
            "X-Forwarded-For": "198.51.100.1, 10.0.0.1",
            "X-Real-IP": "10.0.0.2",
            "User-Agent": "Mozilla/5.0",
        },
        client_host="127.0.0.1",
        method="post",
    )

    assert context.ip_address == "198.51.100.1"
    assert context.user_agent == "Mozilla/5.0"
    assert context.method == "POST"


def test_header_priority():
    assert resolve_client_ip({"x-real-ip": "10.0.0.2", "cf-connecting-ip": "10.0.0.3"}) == "10.0.0.2"
    assert resolve_client_ip({"cf-connecting-ip": "10.0.0.3"}) == "10.0.0.3"


def test_falls_back_to_client_host_then_unknown():
    assert resolve_client_ip({}, "127.0.0.1") == "127.0.0.1"

    context = RequestContext.from_headers({})
    assert context.ip_address == "unknown"
    assert context.user_agent == "unknown"


def test_verification_email_copy():
    subject, html = render_otp_email("482913", OtpPurpose.email_verification, "Shop", 10)

    assert subject == "Verify Your Email - Shop"
    assert ">482913<" in html
    assert "Welcome to Shop!" in html
    assert "This code will expire in 10 minutes." in html


def test_password_reset_email_copy():
    subject, html = render_otp_email("482913", OtpPurpose.password_reset, "Shop", 10)

    assert subject == "Reset Your Password - Shop"
    assert "You requested to reset your password." in html
    assert "If you didn't request a password reset" in html
