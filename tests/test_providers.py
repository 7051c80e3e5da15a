"""
Tests for email and push delivery providers
"""
import smtplib
from unittest.mock import MagicMock, patch

import httpx

from thamel_loyalty.services.email_provider import (
    DevEmailProvider,
    EmailMessage,
    SMTPEmailProvider,
    build_email_provider,
    send_verification_code,
)
from thamel_loyalty.services.push_provider import (
    DevPushProvider,
    ExpoPushProvider,
    build_push_provider,
    is_expo_token,
)


def smtp_provider():
    return SMTPEmailProvider(
        host="smtp.example.com",
        port=587,
        user="mailer",
        password="pw",
        from_address="noreply@example.com",
    )


class TestEmailProviders:

    def test_dev_provider_always_succeeds(self):
        assert DevEmailProvider().send(EmailMessage(to="a@example.com", subject="s", html_body="<p>b</p>"))

    def test_verification_email_contains_code(self):
        provider = MagicMock()
        provider.send.return_value = True

        assert send_verification_code(provider, "a@example.com", "123456", 10) is True
        message = provider.send.call_args[0][0]
        assert "123456" in message.html_body
        assert "10 minutes" in message.text_body

    def test_smtp_send(self):
        with patch("thamel_loyalty.services.email_provider.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            assert smtp_provider().send(EmailMessage(to="a@example.com", subject="s", html_body="b")) is True
            server.starttls.assert_called_once()
            server.login.assert_called_once_with("mailer", "pw")
            server.send_message.assert_called_once()

    def test_smtp_failure_returns_false(self):
        with patch("thamel_loyalty.services.email_provider.smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"no")
            assert smtp_provider().send(EmailMessage(to="a@example.com", subject="s", html_body="b")) is False

    def test_build_without_smtp_settings(self):
        settings = MagicMock(smtp_configured=False)
        assert isinstance(build_email_provider(settings), DevEmailProvider)


class TestPushProviders:

    def test_expo_token_detection(self):
        assert is_expo_token("ExponentPushToken[abc]")
        assert not is_expo_token("fcm-token")
        assert not is_expo_token("")

    def test_dev_provider_counts_deliverable_tokens(self):
        assert DevPushProvider().send(["ExponentPushToken[a]", "junk"], "t", "b") == 1

    def test_expo_posts_only_expo_tokens(self):
        response = MagicMock(status_code=200)
        with patch("thamel_loyalty.services.push_provider.httpx.post", return_value=response) as post:
            sent = ExpoPushProvider("https://push.example.com/send").send(
                ["ExponentPushToken[a]", "junk", "ExponentPushToken[b]"], "Title", "Body"
            )

        assert sent == 2
        payload = post.call_args.kwargs["json"]
        assert [m["to"] for m in payload] == ["ExponentPushToken[a]", "ExponentPushToken[b]"]

    def test_expo_skips_request_without_tokens(self):
        with patch("thamel_loyalty.services.push_provider.httpx.post") as post:
            assert ExpoPushProvider("https://push.example.com/send").send(["junk"], "t", "b") == 0
        post.assert_not_called()

    def test_expo_network_error_returns_zero(self):
        with patch(
            "thamel_loyalty.services.push_provider.httpx.post",
            side_effect=httpx.ConnectError("down"),
        ):
            assert ExpoPushProvider("https://push.example.com/send").send(["ExponentPushToken[a]"], "t", "b") == 0

    def test_expo_error_status_returns_zero(self):
        response = MagicMock(status_code=500, text="boom")
        with patch("thamel_loyalty.services.push_provider.httpx.post", return_value=response):
            assert ExpoPushProvider("https://push.example.com/send").send(["ExponentPushToken[a]"], "t", "b") == 0

    def test_build_respects_flag(self):
        assert isinstance(build_push_provider(MagicMock(ENABLE_PUSH=False)), DevPushProvider)
        assert isinstance(
            build_push_provider(MagicMock(ENABLE_PUSH=True, EXPO_PUSH_URL="https://push.example.com")),
            ExpoPushProvider,
        )
