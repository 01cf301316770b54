"""Out-of-band delivery of password reset codes and verification links."""

import logging
from datetime import datetime

from fastapi import BackgroundTasks
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

from financeu.config import Settings, get_settings
from financeu.services.email_verification import VerificationTicket

logger = logging.getLogger("financeu")


class AccountNotifier:
    """Sends account emails when SMTP is configured, else writes their secrets to the server log."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def deliver_reset_code(
        self, background_tasks: BackgroundTasks, email: str, name: str, code: str, expires_at: datetime
    ) -> None:
        if not self.settings.mail_enabled:
            logger.info("PASSWORD RESET: code %s for %s (expires %s UTC)", code, email, expires_at.isoformat())
            return
        background_tasks.add_task(self.send_reset_email, email, name, code, expires_at)

    def deliver_verification(self, background_tasks: BackgroundTasks, ticket: VerificationTicket) -> None:
        if not self.settings.mail_enabled:
            logger.info("EMAIL VERIFICATION: %s for %s", self.verification_link(ticket), ticket.email)
            return
        background_tasks.add_task(self.send_verification_email, ticket)

    def verification_link(self, ticket: VerificationTicket) -> str:
        return f"{self.settings.FRONTEND_URL.rstrip('/')}/verify-email?token={ticket.token}&email={ticket.email}"

    async def send_reset_email(self, email: str, name: str, code: str, expires_at: datetime) -> None:
        reset_link = f"{self.settings.FRONTEND_URL.rstrip('/')}/reset-password?email={email}"
        html_content = f"""
        <html>
            <body>
                <h2>Reset your FinanceU password</h2>
                <p>Hi {name},</p>
                <p>Use this code to reset your password:</p>
                <h3 style="font-size: 24px; letter-spacing: 2px; text-align: center; margin: 20px 0;">{code}</h3>
                <p>Enter it at <a href="{reset_link}">{reset_link}</a>.
                The code expires at {expires_at.strftime("%H:%M")} UTC and can be used once.</p>
                <p>If you did not request this, please ignore this email.</p>
            </body>
        </html>
        """
        await self._send(email, "Your FinanceU password reset code", html_content, "Password reset")

    async def send_verification_email(self, ticket: VerificationTicket) -> None:
        link = self.verification_link(ticket)
        html_content = f"""
        <html>
            <body>
                <h2>Welcome to FinanceU!</h2>
                <p>Hi {ticket.name},</p>
                <p>Please confirm your email address:</p>
                <p><a href="{link}">Verify my email</a></p>
                <p>This link expires on {ticket.expires_at.strftime("%Y-%m-%d %H:%M")} UTC.</p>
                <p>If you did not create an account, please ignore this email.</p>
            </body>
        </html>
        """
        await self._send(ticket.email, "Verify your FinanceU email", html_content, "Verification")

    async def _send(self, email: str, subject: str, html_content: str, label: str) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=[email],
            body=html_content,
            subtype=MessageType.html,
        )
        try:
            await FastMail(self._connection_config()).send_message(message)
        except ConnectionErrors:
            logger.exception("Failed to send %s email to %s", label.lower(), email)
            return
        logger.info("%s email sent to %s", label, email)

    def _connection_config(self) -> ConnectionConfig:
        return ConnectionConfig(
            MAIL_USERNAME=self.settings.MAIL_USERNAME,
            MAIL_PASSWORD=self.settings.MAIL_PASSWORD,
            MAIL_FROM=self.settings.MAIL_FROM,
            MAIL_PORT=self.settings.MAIL_PORT,
            MAIL_SERVER=self.settings.MAIL_SERVER,
            MAIL_STARTTLS=self.settings.MAIL_STARTTLS,
            MAIL_SSL_TLS=self.settings.MAIL_SSL_TLS,
            USE_CREDENTIALS=bool(self.settings.MAIL_USERNAME),
        )


_notifier: AccountNotifier | None = None


def get_account_notifier() -> AccountNotifier:
    """Get singleton notifier instance."""
    global _notifier
    if _notifier is None:
        _notifier = AccountNotifier()
    return _notifier
