"""Outbound email for verification codes and private interview links."""

from __future__ import annotations

import logging
from datetime import datetime
from html import escape
from typing import Optional, Tuple

from flask import Flask
from flask_mail import Mail, Message

_LOGGER = logging.getLogger(__name__)


class EmailDispatchError(RuntimeError):
    """Raised when the mail transport rejects or fails to deliver a message."""


class MailDispatcher:
    """Send HTML + text emails through Flask-Mail.

    When no ``MAIL_SERVER`` is configured the dispatcher runs in simulation
    mode: messages are logged instead of sent.
    """

    def __init__(self, app: Optional[Flask] = None) -> None:
        self.mail = Mail()
        self.app: Optional[Flask] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self.mail.init_app(app)
        self.app = app

    @property
    def configured(self) -> bool:
        return bool(self.app is not None and self.app.config.get("MAIL_SERVER"))

    def send(self, to: str, subject: str, html: str, text: str = "") -> None:
        if not self.configured:
            _LOGGER.info("[EMAIL SIMULATION] To: %s | Subject: %s", to, subject)
            return

        msg = Message(
            subject=subject,
            recipients=[to],
            html=html,
            body=text,
            sender=self.app.config.get("MAIL_DEFAULT_SENDER"),
        )
        try:
            with self.app.app_context():
                self.mail.send(msg)
        except Exception as exc:
            raise EmailDispatchError(f"Failed to send email to {to}: {exc}") from exc

        _LOGGER.info("Sent email '%s' to %s", subject, to)


def verification_code_email(
    candidate_name: str,
    code: str,
    job_title: str,
    company_name: str = "",
    expiry_minutes: int = 10,
) -> Tuple[str, str, str]:
    """Return ``(subject, html, text)`` for a verification code email."""
    subject = f"Interview Verification Code - {job_title}"
    company_line = (
        f'<p style="color: #e0e7ff; margin: 10px 0 0 0;">{escape(company_name)}</p>'
        if company_name
        else ""
    )

    html = f"""
<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <div style="background-color: #2563eb; padding: 30px 20px; text-align: center;">
        <h1 style="color: #ffffff; margin: 0;">Interview Verification</h1>
        {company_line}
    </div>

    <p>Hi <strong>{escape(candidate_name)}</strong>,</p>

    <p>Thank you for your interest in the <strong>{escape(job_title)}</strong> position.
    To continue with your interview process, please verify your email address.</p>

    <div style="background-color: #f8fafc; border: 2px dashed #e2e8f0; padding: 30px; text-align: center;">
        <p>Your verification code is:</p>
        <div style="background-color: #2563eb; color: #ffffff; font-size: 36px; font-weight: bold;
                    padding: 20px 30px; letter-spacing: 8px; display: inline-block;">{code}</div>
        <p>This code expires in <strong>{expiry_minutes} minutes</strong>.</p>
    </div>

    <p style="color: #92400e;"><strong>Important:</strong> Do not share this code with anyone.</p>

    <p style="color: #6b7280; font-size: 12px; margin-top: 30px;">
        If you didn't request this verification code, please ignore this email.
    </p>
</body>
</html>
"""

    text = f"""Hi {candidate_name},

Your verification code for the {job_title} position is: {code}

This code expires in {expiry_minutes} minutes. Do not share it with anyone.
"""
    return subject, html, text


def private_link_email(
    candidate_name: str,
    url: str,
    job_title: str,
    company_name: str = "",
    expires_at: Optional[datetime] = None,
    recruiter_message: str = "",
) -> Tuple[str, str, str]:
    """Return ``(subject, html, text)`` for a private interview link email."""
    subject = f"Your private interview link - {job_title}"
    at_company = f" at <strong>{escape(company_name)}</strong>" if company_name else ""
    expiry_sentence = ""
    if expires_at is not None:
        expiry_sentence = " It expires on " + expires_at.strftime("%Y-%m-%d %H:%M UTC") + "."
    recruiter_line = recruiter_message + "\n" if recruiter_message else ""

    message_block = ""
    if recruiter_message:
        message_block = f"""
    <div style="background-color: #eff6ff; border-left: 4px solid #2563eb; padding: 15px; margin: 20px 0;">
        <p style="margin: 5px 0;">{escape(recruiter_message)}</p>
    </div>"""

    html = f"""
<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #059669;">Interview Invitation</h2>

    <p>Dear {escape(candidate_name)},</p>

    <p>You have been invited to interview for the <strong>{escape(job_title)}</strong> position{at_company}.</p>
    {message_block}
    <p>
        <a href="{escape(url)}"
           style="background-color: #059669; color: white; padding: 15px 30px; text-decoration: none; border-radius: 8px; display: inline-block;">
            Start Interview
        </a>
    </p>

    <p style="color: #92400e;">This link is personal and can only be used once.{expiry_sentence}</p>
</body>
</html>
"""

    text = f"""Dear {candidate_name},

You have been invited to interview for the {job_title} position.
{recruiter_line}
Start your interview: {url}

This link is personal and can only be used once.{expiry_sentence}
"""
    return subject, html, text


def configuration_test_email() -> Tuple[str, str, str]:
    """Return ``(subject, html, text)`` for the mail configuration check."""
    sent_at = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")
    subject = "Candidate Verification Service Test"
    html = f"""
<div style="padding: 20px; font-family: Arial, sans-serif;">
    <h2>Test Email</h2>
    <p>If you receive this email, the candidate verification service is working correctly.</p>
    <p>Test sent at: {sent_at}</p>
</div>
"""
    text = f"Candidate verification service test email. Sent at {sent_at}."
    return subject, html, text
