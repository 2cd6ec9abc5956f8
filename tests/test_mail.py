import smtplib
from unittest.mock import MagicMock, patch

from storefront.mail import templates
from storefront.mail.smtp_adapter import SmtpMailer


def test_password_reset_email_contains_link():
    subject, text, html = templates.password_reset_email("http://shop.test/reset-password?token=abc", "abc")
    assert subject == "Password Reset Request"
    assert "http://shop.test/reset-password?token=abc" in text
    assert 'href="http://shop.test/reset-password?token=abc"' in html


def test_order_confirmation_escapes_html():
    subject, text, html = templates.order_confirmation_email("<b>Jane</b>", 12)
    assert subject == "Your Order Confirmation"
    assert "<b>Jane</b>" in text
    assert "&lt;b&gt;Jane&lt;/b&gt;" in html
    assert "12" in html


@patch("storefront.mail.smtp_adapter.smtplib.SMTP")
def test_smtp_send(mock_smtp):
    smtp = MagicMock()
    mock_smtp.return_value.__enter__.return_value = smtp
    mailer = SmtpMailer(host="smtp.test", username="user", password="pw", from_email="shop@test")

    assert mailer.send("jane@example.com", "Hi", text="hello", html="<p>hello</p>") is True

    mock_smtp.assert_called_once_with("smtp.test", 587, timeout=30)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("user", "pw")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "jane@example.com"
    assert sent["From"] == "shop@test"


@patch("storefront.mail.smtp_adapter.smtplib.SMTP")
def test_smtp_failure_returns_false(mock_smtp):
    mock_smtp.return_value.__enter__.return_value.send_message.side_effect = smtplib.SMTPException("boom")
    mailer = SmtpMailer(host="smtp.test", use_tls=False)
    assert mailer.send("jane@example.com", "Hi", text="hello") is False
