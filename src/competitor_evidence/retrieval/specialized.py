"""Type-specific extraction.

Turns a FetchedPage into an ExtractedSource: classify it, then apply the
rules for its type. Changelogs are cut down to recently dated sections;
everything else keeps its full (capped) text with a per-type confidence.
"""

import calendar
import re
from datetime import date, datetime, timezone
from typing import Callable, List, NamedTuple, Optional, Pattern, Tuple
from ..config import get_settings
from ..log import get_logger
from ..schemas.evidence import Confidence, ExtractedSource, FetchedPage, SourceType
from .classify import detect_source_type
from .extract import truncate_text

logger = get_logger("specialized")

DEFAULT_CONFIDENCE = {
    SourceType.PRICING: Confidence.HIGH,
    SourceType.JOBS: Confidence.HIGH,
    SourceType.DOCS: Confidence.HIGH,
    SourceType.STATUS: Confidence.HIGH,
    SourceType.CHANGELOG: Confidence.HIGH,
    SourceType.MARKETING_SITE: Confidence.MEDIUM,
    SourceType.REVIEWS: Confidence.MEDIUM,
}
# Changelog with no recent dated section
CHANGELOG_FALLBACK_CONFIDENCE = Confidence.MEDIUM

MONTHS = {name: i for i, name in enumerate(
    ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"), start=1
)}
_MONTH = (
    r"(january|february|march|april|may|june|july|august|september|october|november|december"
    r"|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec)\.?"
)
_ORD = r"(?:st|nd|rd|th)?"

class DateRecognizer(NamedTuple):
    name: str
    pattern: Pattern
    build: Callable[[re.Match], date]

def _month(token: str) -> int:
    return MONTHS[token[:3].lower()]

DATE_RECOGNIZERS: Tuple[DateRecognizer, ...] = (
    DateRecognizer(
        "iso", re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b"),
        lambda m: date(int(m.group(1)), int(m.group(2)), int(m.group(3))),
    ),
    DateRecognizer(
        "month_day_year", re.compile(r"\b" + _MONTH + r"\s+(\d{1,2})" + _ORD + r",?\s+(\d{4})\b", re.IGNORECASE),
        lambda m: date(int(m.group(3)), _month(m.group(1)), int(m.group(2))),
    ),
    DateRecognizer(
        "day_month_year", re.compile(r"\b(\d{1,2})" + _ORD + r"\s+" + _MONTH + r",?\s+(\d{4})\b", re.IGNORECASE),
        lambda m: date(int(m.group(3)), _month(m.group(2)), int(m.group(1))),
    ),
    DateRecognizer(
        "month_year", re.compile(r"\b" + _MONTH + r"\s+(\d{4})\b", re.IGNORECASE),
        lambda m: date(int(m.group(2)), _month(m.group(1)), 1),
    ),
    DateRecognizer(
        "us_numeric", re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b"),
        lambda m: date(int(m.group(3)), int(m.group(1)), int(m.group(2))),
    ),
)

def find_date(line: str) -> Optional[date]:
    """Returns the first date any recognizer finds in the line, trying recognizers in order."""
    for recognizer in DATE_RECOGNIZERS:
        for match in recognizer.pattern.finditer(line):
            try:
                return recognizer.build(match)
            except (ValueError, KeyError):
                continue
    return None

def months_before(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))

class DatedSection(NamedTuple):
    day: date
    lines: List[str]

def split_dated_sections(text: str) -> List[DatedSection]:
    """
    Splits text into sections, each starting at a line that carries a date.
    Lines before the first dated line belong to no section.
    """
    sections: List[DatedSection] = []
    for line in text.split("\n"):
        found = find_date(line)
        if found is not None:
            sections.append(DatedSection(found, [line]))
        elif sections:
            sections[-1].lines.append(line)
    return sections

def filter_recent_sections(text: str, as_of: date, window_months: int) -> Tuple[Optional[str], Optional[str]]:
    """
    Keeps only sections dated within window_months of as_of.
    Returns (filtered_text, date_range), or (None, None) when nothing recent is dated.
    """
    cutoff = months_before(as_of, window_months)
    recent = [s for s in split_dated_sections(text) if s.day >= cutoff]
    if not recent:
        return None, None
    days = [s.day for s in recent]
    filtered = "\n".join(line for s in recent for line in s.lines).strip()
    return filtered, f"{min(days).isoformat()} to {max(days).isoformat()}"

def _as_date(value: Optional[datetime]) -> date:
    if value is None:
        return datetime.now(timezone.utc).date()
    return value.date()

def extract_source(
    page: FetchedPage,
    label: Optional[str] = None,
    as_of: Optional[datetime] = None,
    max_chars: Optional[int] = None,
    window_months: Optional[int] = None,
) -> Optional[ExtractedSource]:
    """
    Classifies a fetched page and applies its type's extraction rules.
    Returns None for pages that failed or carry no text.
    """
    if not page.ok:
        return None
    settings = get_settings()
    max_chars = max_chars or settings.MAX_EXTRACTED_CHARS
    window_months = window_months or settings.CHANGELOG_WINDOW_MONTHS

    source_type = detect_source_type(page.url, page.title, page.text)
    confidence = DEFAULT_CONFIDENCE[source_type]
    text = page.text
    date_range = None

    if source_type == SourceType.CHANGELOG:
        filtered, date_range = filter_recent_sections(page.text, _as_date(as_of), window_months)
        if filtered:
            text = filtered
        else:
            logger.debug(f"No recent dated sections in {page.url}; keeping full text")
            confidence = CHANGELOG_FALLBACK_CONFIDENCE

    text, _ = truncate_text(text, max_chars)
    return ExtractedSource(
        url=page.url,
        text=text,
        title=page.title,
        source_type=source_type,
        confidence=confidence,
        date_range=date_range,
        label=label or page.label,
        published_at=page.published_at,
        retrieved_at=page.retrieved_at,
    )
