"""
Context enrichment for audit events.

Network details are read from the inbound request at the moment the
event is emitted and frozen into a RequestContext, so the request
object itself never has to outlive its handler. User identity is
resolved later, by the writer, through a UserDirectory.

Values supplied explicitly by an emitter always win. Derived values
only fill gaps. Enrichment never fails a write: an identity lookup
that raises just leaves the identity fields empty.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol
from urllib.parse import urlsplit

from sqlalchemy.orm import Session

from cylinder_audit.models.user import User

logger = logging.getLogger(__name__)


# Checked in this order. x-forwarded-for may hold a chain of
# proxies; the client is the first address in it.
IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "cf-connecting-ip",
    "x-client-ip",
    "x-forwarded",
    "forwarded-for",
    "forwarded",
)

# Never copied into request_headers.
REDACTED_HEADERS = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
})

NETWORK_FIELDS = (
    "ip_address",
    "user_agent",
    "request_method",
    "request_path",
    "request_headers",
)

IDENTITY_FIELDS = ("user_email", "user_name", "user_role")


def _normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(name).lower(): str(value) for name, value in headers.items()}


def _forwarded_for(element: str) -> str:
    """The for= node of one RFC 7239 element, without quotes, port or brackets."""
    for pair in element.split(";"):
        name, _, value = pair.partition("=")
        if name.strip().lower() != "for":
            continue
        node = value.strip().strip('"')
        if node.startswith("["):
            return node[1:].split("]")[0]
        if node.count(":") == 1:
            node = node.split(":")[0]
        return node
    return ""


def extract_ip_address(headers: Mapping[str, str] | None) -> str | None:
    """Return the client IP from proxy headers, or None."""
    normalized = _normalize_headers(headers)
    for header in IP_HEADERS:
        value = normalized.get(header)
        if not value:
            continue
        ip = value.split(",")[0].strip()
        if header == "forwarded":
            ip = _forwarded_for(ip)
        if ip and ip.lower() != "unknown":
            return ip
    return None


def extract_user_agent(headers: Mapping[str, str] | None) -> str | None:
    return _normalize_headers(headers).get("user-agent") or None


@dataclass(frozen=True)
class RequestContext:
    """Network facts captured from one inbound request."""
    ip_address: str | None = None
    user_agent: str | None = None
    request_method: str | None = None
    request_path: str | None = None
    request_headers: dict[str, str] | None = None
    correlation_id: str | None = None

    @classmethod
    def from_request(cls, request: Any | None) -> "RequestContext":
        """
        Capture what the audit trail needs from a request.

        Works with a Starlette/FastAPI Request or anything shaped like
        one (headers mapping, method, url). None gives an empty context,
        which is what system-generated events use.
        """
        if request is None:
            return cls()

        headers = _normalize_headers(getattr(request, "headers", None))
        url = getattr(request, "url", None)
        path = urlsplit(str(url)).path if url is not None else ""
        state = getattr(request, "state", None)

        return cls(
            ip_address=extract_ip_address(headers),
            user_agent=extract_user_agent(headers),
            request_method=getattr(request, "method", None) or None,
            request_path=path or None,
            request_headers={
                name: value for name, value in headers.items()
                if name not in REDACTED_HEADERS
            } or None,
            correlation_id=getattr(state, "correlation_id", None),
        )


# --- User identity ---

@dataclass(frozen=True)
class UserInfo:
    email: str | None = None
    name: str | None = None
    role: str | None = None


class UserDirectory(Protocol):
    def lookup(self, user_id: str) -> UserInfo | None:
        ...


class SqlUserDirectory:
    """Resolves identities from the application's users table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def lookup(self, user_id: str) -> UserInfo | None:
        with self.session_factory() as db:
            user = db.get(User, user_id)
            if not user:
                return None
            return UserInfo(
                email=user.email,
                name=user.full_name or user.username,
                role=user.role,
            )


@dataclass
class ContextEnricher:
    """Merges request context and user identity into an entry."""
    user_directory: UserDirectory | None = None

    def enrich(
        self, values: dict[str, Any], context: RequestContext | None = None
    ) -> dict[str, Any]:
        context = context or RequestContext()
        enriched = dict(values)

        for name in NETWORK_FIELDS:
            if not enriched.get(name):
                enriched[name] = getattr(context, name)

        if not enriched.get("correlation_id"):
            enriched["correlation_id"] = context.correlation_id

        user_id = enriched.get("user_id")
        if user_id and any(not enriched.get(name) for name in IDENTITY_FIELDS):
            info = self.resolve_user(user_id)
            if info:
                enriched["user_email"] = enriched.get("user_email") or info.email
                enriched["user_name"] = enriched.get("user_name") or info.name
                enriched["user_role"] = enriched.get("user_role") or info.role

        return enriched

    def resolve_user(self, user_id: str) -> UserInfo | None:
        if self.user_directory is None:
            return None
        try:
            return self.user_directory.lookup(user_id)
        except Exception:
            logger.warning(
                "Could not resolve user %s for audit log", user_id, exc_info=True
            )
            return None
