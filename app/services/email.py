"""
Email Service
Sends issue alert emails via SMTP
"""
import re
import smtplib
import ssl
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional

import pybreaker
from flask import current_app

from app.constants import CIRCUIT_BREAKER_FAIL_MAX, CIRCUIT_BREAKER_RESET_TIMEOUT

logger = logging.getLogger('issuedesk')

LEVEL_COLORS = {
    'error': '#dc2626',
    'warning': '#d97706',
    'info': '#2563eb',
    'debug': '#7c3aed',
}


class EmailError(Exception):
    """Email-related error"""
    pass


# Circuit breaker for the SMTP server; missing credentials do not count as outages
smtp_breaker = pybreaker.CircuitBreaker(
    fail_max=CIRCUIT_BREAKER_FAIL_MAX,
    reset_timeout=CIRCUIT_BREAKER_RESET_TIMEOUT,
    exclude=[EmailError],
    name="smtp"
)


def get_smtp_connection():
    """
    Create and return an SMTP connection based on configuration.

    Returns:
        smtplib.SMTP or smtplib.SMTP_SSL connection
    """
    config = current_app.config

    server = config.get('MAIL_SERVER', 'smtp.gmail.com')
    port = config.get('MAIL_PORT', 587)
    use_tls = config.get('MAIL_USE_TLS', True)
    use_ssl = config.get('MAIL_USE_SSL', False)
    username = config.get('MAIL_USERNAME')
    password = config.get('MAIL_PASSWORD')

    if not username or not password:
        raise EmailError("Email credentials not configured")

    context = ssl.create_default_context()
    timeout = 30  # 30 second timeout to prevent indefinite hangs

    if use_ssl:
        smtp = smtplib.SMTP_SSL(server, port, context=context, timeout=timeout)
    else:
        smtp = smtplib.SMTP(server, port, timeout=timeout)
        if use_tls:
            smtp.starttls(context=context)

    smtp.login(username, password)
    return smtp


@smtp_breaker
def _deliver(sender_email: str, to: str, raw_message: str):
    with get_smtp_connection() as smtp:
        smtp.sendmail(sender_email, to, raw_message)


def send_email(
    to: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None
) -> bool:
    """
    Send an email.

    Args:
        to: Recipient email address
        subject: Email subject
        html_body: HTML content of the email
        text_body: Plain text content (optional, will be generated from HTML if not provided)

    Returns:
        True if sent successfully, False otherwise
    """
    config = current_app.config

    sender_email = config.get('MAIL_DEFAULT_SENDER', 'noreply@issuedesk.app')
    sender_name = config.get('MAIL_SENDER_NAME', 'IssueDesk')

    msg = MIMEMultipart('alternative')
    msg['Subject'] = subject
    msg['From'] = f"{sender_name} <{sender_email}>"
    msg['To'] = to

    if not text_body:
        # Strip HTML tags for plain text version
        text_body = re.sub('<[^<]+?>', '', html_body)

    msg.attach(MIMEText(text_body, 'plain'))
    msg.attach(MIMEText(html_body, 'html'))

    try:
        _deliver(sender_email, to, msg.as_string())
        return True
    except pybreaker.CircuitBreakerError:
        logger.warning(f"SMTP circuit breaker is open - skipped email to {to}")
        return False
    except Exception as e:
        logger.error(f"Failed to send email to {to}: {str(e)}")
        return False


def send_issue_alert(to: str, admin_name: str, issue_id: int, kind: str,
                     level: str, title: str, message: str) -> bool:
    """
    Send a new/reopened issue alert to one admin.

    Returns:
        True if sent successfully
    """
    app_url = current_app.config.get('APP_URL', 'http://localhost:5000')
    issue_url = f"{app_url}/admin/api/issues/{issue_id}"
    color = LEVEL_COLORS.get(level, LEVEL_COLORS['error'])
    verb = 'Reopened' if kind == 'reopened' else 'New'
    headline = f"{verb} {level.capitalize()}"

    subject = f"[IssueDesk] {headline}: {title[:120]}"

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto;">
            <div style="background: {color}; color: white; padding: 20px; border-radius: 8px 8px 0 0;">
                <h1 style="margin: 0; font-size: 22px;">{headline} Alert</h1>
            </div>
            <div style="background: #f8f9fa; padding: 20px; border-radius: 0 0 8px 8px;">
                <p>Hello {escape(admin_name)},</p>
                <p>{'An issue that was resolved has occurred again' if kind == 'reopened' else f'A new {level} has been detected'}:</p>
                <div style="border-left: 4px solid {color}; background: white; padding: 15px;">
                    <h3 style="margin: 0 0 10px 0;">{escape(title)}</h3>
                    <pre style="margin: 0; white-space: pre-wrap;">{escape((message or '')[:1000])}</pre>
                </div>
                <p><a href="{issue_url}">View issue #{issue_id}</a></p>
                <p style="color: #666; font-size: 12px;">
                    You receive this because you are an admin with issue notifications enabled.
                </p>
            </div>
        </div>
    </body>
    </html>
    """

    text_body = f"""{headline} Alert

Hello {admin_name},

Title: {title}
Message: {(message or '')[:1000]}

View issue: {issue_url}

You receive this because you are an admin with issue notifications enabled.
"""

    return send_email(to, subject, html_body, text_body)
