import html as html_lib
import re
import trafilatura
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from ..log import get_logger

logger = get_logger("extract")

DROP_TAGS = ["script", "style", "noscript", "template", "svg", "iframe", "title"]
BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table",
    "tbody", "td", "th", "thead", "tr", "ul",
]
BLOCK_TAG_SET = frozenset(BLOCK_TAGS)

# Regex fallback, used only when the parser blows up
_DROP_BLOCK_RE = re.compile(r'<(script|style|noscript|template|title)[^>]*>[\s\S]*?</\1\s*>', re.IGNORECASE)
_COMMENT_RE = re.compile(r'<!--[\s\S]*?-->')
_BLOCK_RE = re.compile(r'</?(?:%s|br)\b[^>]*>' % "|".join(BLOCK_TAGS), re.IGNORECASE)
_TAG_RE = re.compile(r'<[^>]+>')
_TITLE_RE = re.compile(r'<title[^>]*>([^<]*)</title>', re.IGNORECASE)

def normalize_whitespace(text: str) -> str:
    text = text.replace("\xa0", " ")
    text = re.sub(r"\r\n?", "\n", text)
    text = re.sub(r"[ \t\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()

def _extract_text_fallback(raw: str) -> str:
    text = _DROP_BLOCK_RE.sub("", raw)
    text = _COMMENT_RE.sub("", text)
    text = _BLOCK_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    return normalize_whitespace(html_lib.unescape(text))

def _collect_text(node: Tag, parts: List[str]) -> None:
    for child in node.children:
        if isinstance(child, PreformattedString):
            # comments, doctypes, CDATA, processing instructions
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif child.name == "br":
            parts.append("\n")
        elif child.name in BLOCK_TAG_SET:
            parts.append("\n")
            _collect_text(child, parts)
            parts.append("\n")
        else:
            _collect_text(child, parts)

def extract_text(raw: str) -> str:
    """
    Converts raw page content to normalized plain text.
    Block-level elements become line breaks; inline markup is dropped.
    Never raises: if the parser fails, a regex strip of the same input is returned.
    """
    if not raw:
        return ""
    try:
        soup = BeautifulSoup(raw, "html.parser")
        for tag in soup(DROP_TAGS):
            tag.decompose()
        parts: List[str] = []
        _collect_text(soup, parts)
        return normalize_whitespace("".join(parts))
    except Exception as e:
        logger.warning(f"HTML parse failed, using regex fallback: {e}")
        return _extract_text_fallback(raw)

def extract_title(raw: str) -> Optional[str]:
    if not raw:
        return None
    try:
        soup = BeautifulSoup(raw, "html.parser")
        title = soup.title.get_text() if soup.title else ""
    except Exception:
        match = _TITLE_RE.search(raw)
        title = html_lib.unescape(match.group(1)) if match else ""
    title = normalize_whitespace(title)
    return title or None

def extract_published_date(raw: str, url: str) -> Optional[datetime]:
    """
    Reads the page's publication date from its metadata via trafilatura.
    Returns None when the page carries no usable date.
    """
    try:
        metadata = trafilatura.extract_metadata(raw, default_url=url)
    except Exception as e:
        logger.debug(f"Metadata extraction failed for {url}: {e}")
        return None
    date_str = getattr(metadata, "date", None) if metadata else None
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str[:10], "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None

def truncate_text(text: str, max_chars: int) -> Tuple[str, bool]:
    """Cuts text to exactly max_chars; the flag tells whether anything was dropped."""
    if len(text) > max_chars:
        return text[:max_chars], True
    return text, False

def extract_content(html: str, url: str, max_chars: int) -> Dict[str, Any]:
    """
    Extracts normalized text, title and publication date from HTML.
    Returns dict with 'text', 'title', 'truncated', 'published_at', 'url'.
    """
    text, truncated = truncate_text(extract_text(html), max_chars)
    return {
        "text": text,
        "title": extract_title(html),
        "truncated": truncated,
        "published_at": extract_published_date(html, url),
        "url": url
    }
