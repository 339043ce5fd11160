"""
Request Context

Requester identity resolved from inbound HTTP headers for audit entries
and rate-limit keys.
"""

from typing import Mapping, Optional

from pydantic import BaseModel

UNKNOWN = "unknown"

# Proxy headers in priority order
CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


class RequestContext(BaseModel):
    """Who made a request and how"""

    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN
    method: str = "GET"

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        client_host: Optional[str] = None,
        method: str = "GET",
    ) -> "RequestContext":
        lowered = {key.lower(): value for key, value in headers.items()}
        return cls(
            ip_address=resolve_client_ip(lowered, client_host),
            user_agent=(lowered.get("user-agent") or "").strip() or UNKNOWN,
            method=method.upper(),
        )


def resolve_client_ip(headers: Mapping[str, str], client_host: Optional[str] = None) -> str:
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value:
            # x-forwarded-for lists every hop; the first is the client
            first_hop = value.split(",")[0].strip()
            if first_hop:
                return first_hop
    return client_host or UNKNOWN
