"""Outbound email for the TeachHub/AdhyayanX service."""

from teachhub_mail.email import (
    PASSWORD_RESET_SUBJECT,
    EmailConfig,
    EmailSender,
    build_password_reset_html,
)

__all__ = [
    "PASSWORD_RESET_SUBJECT",
    "EmailConfig",
    "EmailSender",
    "build_password_reset_html",
]
