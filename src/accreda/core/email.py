"""
Email Service

Sends approval request emails through Resend (default) or plain SMTP,
selected by EMAIL_PROVIDER. Every message carries an HTML body and a
plain-text alternative containing the approval link.

Sending never raises: failures are logged and reported as False so callers
can decide what to do. Nothing is retried.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from html import escape

import resend

from accreda.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_BASE_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #1a365d; margin-bottom: 24px; }
    .button { display: inline-block; background-color: #1a365d; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; margin: 16px 0; }
    .summary-box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""

SUPPORT_EMAIL = "support@accreda.com"


def _send_via_smtp(to_email: str, subject: str, html_content: str, text_content: str) -> None:
    """Blocking SMTP send, run in a worker thread."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to_email
    msg.attach(MIMEText(text_content, "plain"))
    msg.attach(MIMEText(html_content, "html"))

    if settings.smtp_secure:
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port) as server:
            server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
    else:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)


def _is_configured() -> bool:
    if settings.email_provider == "smtp":
        return bool(settings.smtp_host and settings.smtp_user and settings.smtp_password)
    return bool(resend.api_key)


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
    text_content: str,
) -> bool:
    """
    Send an email with the configured provider.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML body
        text_content: Plain-text alternative

    Returns:
        True if the email was sent, or logged in development when no
        provider is configured
    """
    if not _is_configured():
        if settings.is_development:
            logger.warning(
                f"Email provider '{settings.email_provider}' not configured - logging email instead of sending"
            )
            logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
            return True

        logger.error(
            f"Email provider '{settings.email_provider}' not configured - email to {to_email} not sent"
        )
        return False

    try:
        if settings.email_provider == "smtp":
            await asyncio.to_thread(_send_via_smtp, to_email, subject, html_content, text_content)
            logger.info(f"Email sent via SMTP to {to_email}")
            return True

        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
            "text": text_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _expiry_phrase(hours: int) -> str:
    if hours % 24 == 0:
        days = hours // 24
        return f"{days} day" if days == 1 else f"{days} days"
    return f"{hours} hour" if hours == 1 else f"{hours} hours"


def _wrap_html(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h2 class="header">{title}</h2>
            {body}
            <div class="footer">
                <p>If you have any questions, please contact us at {SUPPORT_EMAIL}</p>
                <p>Accreda - EIT Certification Tracking</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_reference_request(
    to_email: str,
    referee_name: str,
    eit_name: str,
    job_title: str,
    job_company: str,
    link: str,
    expires_in_hours: int,
) -> bool:
    """Ask a job referee to fill in and approve a reference."""
    safe_referee = escape(referee_name)
    safe_eit = escape(eit_name)
    safe_title = escape(job_title)
    safe_company = escape(job_company)
    expiry = _expiry_phrase(expires_in_hours)

    body = f"""
            <p>Hello {safe_referee},</p>
            <p>{safe_eit} has requested a reference for their work at {safe_company} as {safe_title}.</p>
            <p>Please click the button below to provide your reference:</p>
            <a href="{link}" class="button">Provide Reference</a>
            <p>Or copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #3b82f6;">{link}</p>
            <p><strong>This link will expire in {expiry}.</strong></p>
    """
    text = (
        f"Hello {referee_name},\n\n"
        f"{eit_name} has requested a reference for their work at {job_company} as {job_title}.\n\n"
        f"Provide your reference here:\n{link}\n\n"
        f"This link will expire in {expiry}.\n"
    )
    return await send_email(
        to_email=to_email,
        subject=f"Reference Request: {job_title} at {job_company}",
        html_content=_wrap_html("Reference Request", body),
        text_content=text,
    )


async def send_validator_request(
    to_email: str,
    validator_name: str,
    eit_name: str,
    skill_name: str | None,
    link: str,
    expires_in_hours: int,
) -> bool:
    """Ask a validator to confirm an EIT's skill experience."""
    safe_validator = escape(validator_name)
    safe_eit = escape(eit_name)
    expiry = _expiry_phrase(expires_in_hours)
    skill_line = f" for the skill <strong>{escape(skill_name)}</strong>" if skill_name else ""
    skill_text = f" for the skill {skill_name}" if skill_name else ""

    body = f"""
            <p>Hello {safe_validator},</p>
            <p>You have been requested to validate the experience of {safe_eit}{skill_line} for Accreda.</p>
            <p>Please click the button below to provide your validation:</p>
            <a href="{link}" class="button">Provide Validation</a>
            <p>Or copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #3b82f6;">{link}</p>
            <p><strong>This link will expire in {expiry}.</strong></p>
    """
    text = (
        f"Hello {validator_name},\n\n"
        f"You have been requested to validate the experience of {eit_name}{skill_text} for Accreda.\n\n"
        f"Provide your validation here:\n{link}\n\n"
        f"This link will expire in {expiry}.\n"
    )
    return await send_email(
        to_email=to_email,
        subject="Validation Request: Please validate for Accreda",
        html_content=_wrap_html("Validation Request", body),
        text_content=text,
    )


async def send_reference_link_request(
    to_email: str,
    eit_name: str,
    eit_email: str,
    job_title: str,
    job_company: str,
    link: str,
    expires_in_hours: int,
) -> bool:
    """Send the standalone reference-approval magic link."""
    safe_eit = escape(eit_name)
    safe_eit_email = escape(eit_email)
    safe_title = escape(job_title)
    safe_company = escape(job_company)
    expiry = _expiry_phrase(expires_in_hours)

    body = f"""
            <p>You have been asked to provide a reference for <b>{safe_eit}</b> ({safe_eit_email})
            for the position: <b>{safe_title}</b> at <b>{safe_company}</b>.</p>
            <p><a href="{link}" class="button">Click here to approve and fill in your details</a></p>
            <p><strong>This link will expire in {expiry}.</strong></p>
    """
    text = (
        f"You have been asked to provide a reference for {eit_name} ({eit_email}) "
        f"for the position: {job_title} at {job_company}.\n\n"
        f"Click the link below to approve and fill in your details:\n{link}\n\n"
        f"This link will expire in {expiry}.\n"
    )
    return await send_email(
        to_email=to_email,
        subject=f"Reference Request for {eit_name}",
        html_content=_wrap_html("Reference Request", body),
        text_content=text,
    )


def display_name_from_address(address: str) -> str:
    """Best-effort greeting name for a bare email address."""
    name, addr = parseaddr(address)
    return name or addr.split("@", 1)[0]
