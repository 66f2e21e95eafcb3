"""Request metadata for audit records, carried in a contextvar.

Set by RequestContextMiddleware; read by AuditService and the provisioning
audit trail so services don't need the Request object.
"""

from contextvars import ContextVar
from dataclasses import dataclass

MAX_USER_AGENT_LENGTH = 500

_audit_context: ContextVar["AuditContext | None"] = ContextVar("audit_context", default=None)


@dataclass(frozen=True)
class AuditContext:
    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


def set_audit_context(
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> None:
    _audit_context.set(
        AuditContext(
            ip_address=ip_address,
            user_agent=user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else None,
            request_id=request_id,
        )
    )


def get_audit_context() -> AuditContext | None:
    return _audit_context.get()


def get_request_id() -> str | None:
    ctx = _audit_context.get()
    return ctx.request_id if ctx else None


def clear_audit_context() -> None:
    _audit_context.set(None)


def get_client_ip(forwarded_for: str | None, client_host: str | None) -> str | None:
    """First address of X-Forwarded-For (the original client), else the peer address."""
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return client_host
