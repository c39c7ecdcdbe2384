import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit, urlunsplit

SCHEME_REGEX = re.compile(r'^[a-z][a-z0-9+.-]*://', re.IGNORECASE)
# Fallback when urlsplit gives us nothing usable: scheme?, www.?, host
HOST_FALLBACK_REGEX = re.compile(r'^(?:[a-z][a-z0-9+.-]*://)?(?:www\.)?([^/?#:\s]+)', re.IGNORECASE)

def _with_scheme(value: str) -> str:
    value = value.strip()
    if value.startswith("//"):
        return "https:" + value
    if not SCHEME_REGEX.match(value):
        return "https://" + value
    return value

def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host

def normalize_domain(value: str) -> str:
    """
    Reduces a domain or URL to a bare lowercase host: no scheme, www., port or path.
    Never raises; unparsable input falls back to a regex split.
    """
    if not value or not value.strip():
        return ""
    try:
        host = urlsplit(_with_scheme(value)).hostname or ""
    except ValueError:
        host = ""
    if not host:
        match = HOST_FALLBACK_REGEX.match(value.strip())
        host = match.group(1) if match else value.strip()
    return _strip_www(host.lower().rstrip("."))

def normalize_url(value: str) -> str:
    """
    Adds https:// when missing, lowercases scheme and host, drops the fragment.
    Returns the input stripped if it cannot be parsed.
    """
    value = value.strip()
    try:
        parts = urlsplit(_with_scheme(value))
        host = parts.hostname or ""
        if not host:
            return value
        netloc = host.lower()
        if parts.port:
            netloc = f"{netloc}:{parts.port}"
        return urlunsplit((parts.scheme.lower(), netloc, parts.path or "/", parts.query, ""))
    except ValueError:
        return value

def canonical_key(url: str) -> str:
    """
    Dedup key: URLs differing only by scheme, www., case of host or a trailing slash share a key.
    """
    try:
        parts = urlsplit(_with_scheme(url))
        host = _strip_www((parts.hostname or "").lower())
    except ValueError:
        return normalize_domain(url)
    if not host:
        return normalize_domain(url)
    path = parts.path.rstrip("/")
    key = host + path
    if parts.query:
        key += "?" + parts.query
    return key

def dedupe_urls(urls: Iterable[str]) -> List[str]:
    """Keeps the first occurrence of every canonical key, in input order."""
    seen = set()
    out = []
    for url in urls:
        key = canonical_key(url)
        if key in seen:
            continue
        seen.add(key)
        out.append(url)
    return out

def url_path(url: str) -> str:
    try:
        return urlsplit(_with_scheme(url)).path.lower()
    except ValueError:
        return ""

def domain_matches(domain: Optional[str], candidates: Iterable[str]) -> bool:
    """True if domain equals or is a subdomain of any candidate domain."""
    domain = normalize_domain(domain or "")
    if not domain:
        return False
    for candidate in candidates:
        candidate = normalize_domain(candidate)
        if candidate and (domain == candidate or domain.endswith("." + candidate)):
            return True
    return False
