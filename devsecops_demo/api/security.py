"""Protective response headers sent with every response."""

from starlette.datastructures import MutableHeaders

# Content-Security-Policy is deliberately absent so the welcome page may use inline styles.
SECURITY_HEADERS: tuple[tuple[str, str], ...] = (
    ("cross-origin-opener-policy", "same-origin"),
    ("cross-origin-resource-policy", "same-origin"),
    ("origin-agent-cluster", "?1"),
    ("referrer-policy", "no-referrer"),
    ("strict-transport-security", "max-age=15552000; includeSubDomains"),
    ("x-content-type-options", "nosniff"),
    ("x-dns-prefetch-control", "off"),
    ("x-download-options", "noopen"),
    ("x-frame-options", "SAMEORIGIN"),
    ("x-permitted-cross-domain-policies", "none"),
    ("x-xss-protection", "0"),
)


def api_apply_security_headers(headers: MutableHeaders) -> None:
    """Set the protective response headers in place.

    Args:
        headers: Mutable response headers.
    """

    for header_name, header_value in SECURITY_HEADERS:
        headers[header_name] = header_value
