"""
Email Service using Resend

Handles sending the one-time verification code emails.
"""

import asyncio
import logging
from html import escape

import resend

from school_directory.core.config import settings

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = settings.resend_api_key.get_secret_value() or None

# Configurations
EMAIL_FROM = f"{settings.email_from_name} <{settings.email_from}>"


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
    text_content: str | None = None,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email
        text_content: Plain text alternative (optional)

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            params["text"] = text_content

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_otp_email(
    to_email: str,
    otp: str,
    name: str | None = None,
) -> bool:
    """Send the email verification code."""
    # Escape user inputs to prevent XSS
    safe_name = escape(name) if name else None
    greeting = f"Hello {safe_name}," if safe_name else "Hello,"
    expire_minutes = settings.otp_expire_minutes

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1a365d; margin-bottom: 24px; }}
            .otp-box {{ background-color: #f3f4f6; padding: 24px; border-radius: 8px; margin: 24px 0; text-align: center; }}
            .otp-code {{ font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #1a365d; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Verify Your Email</h1>

            <p>{greeting}</p>

            <p>Thank you for registering with School Directory. Use the code below to verify your email address:</p>

            <div class="otp-box">
                <span class="otp-code">{otp}</span>
            </div>

            <p><strong>This code expires in {expire_minutes} minutes.</strong></p>

            <div class="footer">
                <p>If you didn't create an account, you can safely ignore this email.</p>
                <p>School Directory</p>
            </div>
        </div>
    </body>
    </html>
    """

    text_content = (
        f"{'Hello ' + name + ',' if name else 'Hello,'}\n\n"
        f"Your School Directory verification code is: {otp}\n\n"
        f"This code expires in {expire_minutes} minutes.\n\n"
        "If you didn't create an account, you can safely ignore this email."
    )

    return await send_email(
        to_email=to_email,
        subject="Your School Directory verification code",
        html_content=html_content,
        text_content=text_content,
    )
