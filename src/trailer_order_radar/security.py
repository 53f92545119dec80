"""Secret redaction for log lines and validation of the Supabase project URL."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit

REDACTED = "***"

# Supabase anon/service keys are JWTs; they also travel as `apikey` and bearer headers.
_SECRET_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)([^\s,;]+)"),
    re.compile(r"(?i)\b(apikey|api_key|token|access_token)(\s*[:=]\s*)([^\s&,;]+)"),
    re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+"),
)


def redact_secrets(text: str) -> str:
    """Replace bearer tokens, key/token assignments and JWTs in `text`."""
    out = str(text or "")
    bearer, assignment, jwt = _SECRET_PATTERNS
    out = bearer.sub(lambda m: f"{m.group(1)}{REDACTED}", out)
    out = assignment.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", out)
    return jwt.sub(REDACTED, out)


def _is_public_host(host: str) -> bool:
    name = (host or "").strip().lower().rstrip(".")
    if not name or name == "localhost" or name.endswith((".localhost", ".local")):
        return False
    try:
        ip = ipaddress.ip_address(name)
    except ValueError:
        return True
    return ip.is_global


def supabase_origin(raw_url: str) -> str:
    """Return the `https://host[:port]` origin of a Supabase project URL.

    Raises ValueError for blank, non-https, credential-bearing or
    local/private URLs. Any path, query or fragment is dropped since the
    REST endpoints live under `/rest/v1` of the origin.
    """
    value = (raw_url or "").strip()
    if not value:
        raise ValueError("SUPABASE_URL is empty.")

    parts = urlsplit(value)
    if parts.scheme.lower() != "https":
        raise ValueError("SUPABASE_URL must use https.")
    if parts.username or parts.password:
        raise ValueError("SUPABASE_URL must not embed credentials.")
    if not parts.hostname or not _is_public_host(parts.hostname):
        raise ValueError(f"SUPABASE_URL host {parts.hostname!r} is not a public host.")

    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    return f"https://{host}" + (f":{parts.port}" if parts.port else "")
