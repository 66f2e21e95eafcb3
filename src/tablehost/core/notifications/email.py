"""Email client using Resend API."""

import html
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

import resend

from src.tablehost.core.config import get_settings
from src.tablehost.core.logging import get_logger

logger = get_logger(__name__)

# Thread pool for email sending with timeout support
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #222; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #b45309; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)
_MUTED_STYLE = "color: #666; font-size: 14px;"


def send_setup_link_email(to: str, setup_link: str, tenant_name: str) -> bool:
    """Email a restaurant owner the link to set their password.

    The link itself comes from the identity provider; no credential is ever
    generated or sent by this service.

    Args:
        to: Owner email address
        setup_link: One-time recovery link issued by the identity provider
        tenant_name: Restaurant name for personalization

    Returns:
        True if the email was sent (or logged in dev mode), False on error
    """
    settings = get_settings()

    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not set - setup email not sent", to=to)
        return True

    resend.api_key = settings.resend_api_key

    def _send() -> None:
        resend.Emails.send(
            {
                "from": settings.email_from,
                "to": [to],
                "subject": f"Set up your {settings.app_name} account for {tenant_name}",
                "html": _get_setup_email_html(tenant_name, setup_link, settings.app_name),
            }
        )

    try:
        future = _email_executor.submit(_send)
        future.result(timeout=settings.email_send_timeout_seconds)
        logger.info("Setup email sent", to=to)
        return True
    except FuturesTimeoutError:
        logger.error("Email send timed out", to=to, timeout=settings.email_send_timeout_seconds)
        return False
    except Exception as e:
        logger.error("Failed to send setup email", to=to, error=str(e))
        return False


def _get_setup_email_html(tenant_name: str, setup_link: str, app_name: str) -> str:
    safe_tenant_name = html.escape(tenant_name)
    safe_link = html.escape(setup_link, quote=True)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="margin-bottom: 24px;">Welcome to {app_name}</h1>
    <p><strong>{safe_tenant_name}</strong> is ready. Choose a password to sign in
    to your restaurant dashboard:</p>
    <p style="margin: 32px 0;">
        <a href="{safe_link}" style="{_BUTTON_STYLE}">Set up your account</a>
    </p>
    <p style="{_MUTED_STYLE}">
        This link can only be used once. If it expires, ask your account manager
        to send a new one.
    </p>
</body>
</html>"""
