import asyncio
import html
import logging
from typing import Optional

import resend

from carenotify.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email delivery through Resend. Sending is best-effort: failures come back as False."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.RESEND_API_KEY
        self.from_email = from_email or settings.RESEND_FROM_EMAIL
        self.from_name = from_name or settings.RESEND_FROM_NAME
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS

        if self.api_key:
            resend.api_key = self.api_key

    def _get_from_address(self) -> str:
        if self.from_name:
            return f"{self.from_name} <{self.from_email}>"
        return self.from_email

    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    async def send(self, to_email: str, subject: str, html_body: str) -> bool:
        """
        Send one email.

        Returns False when the service is not configured, the provider rejects
        the message, or the call exceeds the timeout.
        """
        if not self.is_configured():
            logger.warning("[EmailService] Resend is not configured. Skipping email send.")
            return False

        params = {
            "from": self._get_from_address(),
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        }

        try:
            email = await asyncio.wait_for(asyncio.to_thread(resend.Emails.send, params), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[EmailService] Timed out after {self.timeout}s sending to {to_email}")
            return False
        except Exception as e:
            logger.error(f"[EmailService] Error sending email to {to_email}: {e}")
            return False

        # Resend returns a dict with 'id' key on success
        if email and isinstance(email, dict) and "id" in email:
            logger.info(f"[EmailService] Email sent to {to_email}, Email ID: {email['id']}")
            return True
        if email and hasattr(email, "id"):
            logger.info(f"[EmailService] Email sent to {to_email}, Email ID: {email.id}")
            return True

        logger.warning(f"[EmailService] Failed to send email. Response: {email}")
        return False


def render_medication_reminder_email(patient_name: Optional[str], title: str, message: str) -> str:
    greeting = f"Hello {html.escape(patient_name)}," if patient_name else "Hello,"

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }}
        .container {{
            background-color: #ffffff;
            border: 1px solid #e5e7eb;
            border-radius: 8px;
            padding: 30px;
        }}
        .footer {{
            margin-top: 30px;
            padding-top: 20px;
            border-top: 1px solid #e5e7eb;
            font-size: 12px;
            color: #6b7280;
            text-align: center;
        }}
    </style>
</head>
<body>
    <div class="container">
        <h2 style="color: #111827; margin-top: 0;">{html.escape(title)}</h2>
        <p>{greeting}</p>
        <p>{html.escape(message)}</p>
        <div class="footer">
            <p>This is an automated reminder. Please do not reply.</p>
        </div>
    </div>
</body>
</html>
"""
