"""Jinja2 rendering for transactional email bodies."""

from pathlib import Path
from typing import Any, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_PATH = Path(__file__).parent / "templates"

jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_PATH)),
    autoescape=select_autoescape(["html"]),
)


def render(template_name: str, **context: Any) -> str:
    return jinja_env.get_template(template_name).render(**context)


def password_reset_email(reset_link: str, reset_token: str) -> Tuple[str, str, str]:
    """Return (subject, text, html) for a password reset message."""
    subject = "Password Reset Request"
    text = render("password_reset.txt", reset_link=reset_link, reset_token=reset_token)
    html = render("password_reset.html", reset_link=reset_link, reset_token=reset_token)
    return subject, text, html


def order_confirmation_email(user_name: str, order_id: int) -> Tuple[str, str, str]:
    """Return (subject, text, html) for an order confirmation message."""
    subject = "Your Order Confirmation"
    text = render("order_confirmation.txt", user_name=user_name, order_id=order_id)
    html = render("order_confirmation.html", user_name=user_name, order_id=order_id)
    return subject, text, html
