"""Email sending module using Resend.

Handles outbound email for the TeachHub/AdhyayanX service:
- Password reset links

Uses Resend API for reliable email delivery. Without an API key the sender
logs the message instead of sending it, which keeps local development
working.
"""

import html
import logging
import os
from dataclasses import dataclass

import resend

logger = logging.getLogger("teachhub-email")

PASSWORD_RESET_SUBJECT = "Password reset for AdhyayanX"


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class EmailConfig:
    """Email service configuration."""

    api_key: str
    from_email: str
    from_name: str = "AdhyayanX Support"

    @classmethod
    def from_env(cls) -> "EmailConfig":
        """Load email config from environment variables."""
        api_key = os.getenv("RESEND_API_KEY", "")
        from_email = os.getenv("RESEND_FROM_EMAIL", "noreply@adhyayanx.local")
        from_name = os.getenv("RESEND_FROM_NAME", "AdhyayanX Support")

        if not api_key:
            logger.warning("RESEND_API_KEY not set - emails will be logged only")

        return cls(api_key=api_key, from_email=from_email, from_name=from_name)


# =============================================================================
# Email Templates
# =============================================================================


def build_password_reset_html(reset_url: str) -> str:
    """Build HTML content for the password reset email."""
    safe_url = html.escape(reset_url, quote=True)
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">Reset your password</h2>

        <p>We received a request to reset the password for your AdhyayanX account.</p>
        <p>Click the button below to choose a new password. This link expires in one hour.</p>

        <div style="text-align: center; margin: 30px 0;">
            <a href="{safe_url}"
               style="background: #0066cc; color: white; padding: 15px 30px;
                      text-decoration: none; border-radius: 8px; display: inline-block;
                      font-weight: bold;">
                Reset Password
            </a>
        </div>

        <p style="color: #666; font-size: 14px;">
            Or copy this link: <a href="{safe_url}">{safe_url}</a>
        </p>

        <p style="color: #999; font-size: 12px; margin-top: 30px;">
            If you did not request a password reset, you can ignore this email.
        </p>
    </div>
    """


# =============================================================================
# Email Sender
# =============================================================================


class EmailSender:
    """Sends emails via Resend API."""

    def __init__(self, config: EmailConfig | None = None):
        """Initialize the email sender.

        Args:
            config: Email configuration. If not provided, loads from environment.
        """
        self.config = config or EmailConfig.from_env()
        resend.api_key = self.config.api_key

    async def send(self, to: str, subject: str, html_content: str) -> bool:
        """Send a single HTML email.

        Args:
            to: Recipient address
            subject: Subject line
            html_content: HTML body

        Returns:
            True if email sent successfully, False otherwise. Never raises.
        """
        if not self.config.api_key:
            logger.warning(f"RESEND_API_KEY not configured - not sending '{subject}'")
            logger.debug(f"Unsent email body:\n{html_content}")
            return False

        try:
            params: resend.Emails.SendParams = {
                "from": f"{self.config.from_name} <{self.config.from_email}>",
                "to": [to],
                "subject": subject,
                "html": html_content,
            }

            email_response = resend.Emails.send(params)
            logger.info(f"Email '{subject}' sent: {email_response.get('id')}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email '{subject}': {e}")
            return False

    async def send_password_reset(self, to: str, reset_url: str) -> bool:
        """Send the password reset link.

        Args:
            to: The account's email address
            reset_url: Absolute URL carrying the raw reset token

        Returns:
            True if email sent successfully, False otherwise
        """
        return await self.send(
            to, PASSWORD_RESET_SUBJECT, build_password_reset_html(reset_url)
        )
