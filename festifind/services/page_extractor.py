"""Field extraction from fetched festival web pages.

Given a :class:`PageContent` (readable text + outbound links), pulls out the
fields the ``extract_webpage_data`` tool can be asked for: contact emails,
phone numbers, social-media links, festival dates, location hints, organizer
mentions and ticket information.

All extractors are plain pattern matching over the page text; they return
de-duplicated lists in first-seen order and never raise.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from urllib.parse import urlparse

from festifind.interfaces.article_provider import PageContent

EXTRACTABLE_FIELDS = (
    "emails",
    "phone_numbers",
    "social_links",
    "dates",
    "location",
    "organizers",
    "ticket_info",
)

_MAX_ITEMS = 20

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"(?<![\w/])(?:\+|00)?\d[\d\s().-]{7,}\d(?![\w/])")
_MONTHS = (
    r"jan(?:uary|uari)?|feb(?:ruary|ruari)?|mar(?:ch)?|maart|apr(?:il)?|mei|may|"
    r"jun(?:e|i)?|jul(?:y|i)?|aug(?:ust|ustus)?|sep(?:t(?:ember)?)?|"
    r"o[ck]t(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
_DATE_RES = (
    # 12-14 July 2025, 12 july 2025, 12 & 13 juli 2025
    re.compile(
        rf"\b\d{{1,2}}(?:\s*(?:-|–|&|t/m|to)\s*\d{{1,2}})?\s+(?:{_MONTHS})\.?\s+\d{{4}}\b",
        re.IGNORECASE,
    ),
    # July 12-14, 2025
    re.compile(
        rf"\b(?:{_MONTHS})\.?\s+\d{{1,2}}(?:\s*(?:-|–)\s*\d{{1,2}})?,?\s+\d{{4}}\b",
        re.IGNORECASE,
    ),
    # 2025-07-12, 12/07/2025, 12.07.2025
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b|\b\d{1,2}[/.]\d{1,2}[/.]\d{4}\b"),
)
_LOCATION_RE = re.compile(
    r"\b(?:location|locatie|venue|address|adres|where)\s*[:\-]\s*(.{3,120})",
    re.IGNORECASE,
)
_ORGANIZER_RE = re.compile(
    r"\b(?:organi[sz]ed by|organi[sz]ation|organi[sz]er|organisatie|presented by|"
    r"promoted by|a production of|powered by)\s*[:\-]?\s*(.{2,100})",
    re.IGNORECASE,
)
_TICKET_RE = re.compile(r"\b(?:tickets?|kaarten|entree|admission|presale|early bird)\b", re.IGNORECASE)
_PRICE_RE = re.compile(r"(?:€|eur\b|\$|£)\s?\d+(?:[.,]\d{2})?|\d+(?:[.,]\d{2})?\s?(?:€|eur\b)", re.IGNORECASE)

SOCIAL_DOMAINS = {
    "facebook.com": "facebook",
    "instagram.com": "instagram",
    "twitter.com": "twitter",
    "x.com": "twitter",
    "tiktok.com": "tiktok",
    "youtube.com": "youtube",
    "linkedin.com": "linkedin",
    "soundcloud.com": "soundcloud",
    "spotify.com": "spotify",
}


def _unique(values: Iterable[str], limit: int = _MAX_ITEMS) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        cleaned = value.strip().rstrip(".,;")
        if cleaned and cleaned.lower() not in {k.lower() for k in seen}:
            seen[cleaned] = None
        if len(seen) >= limit:
            break
    return list(seen)


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def extract_emails(page: PageContent) -> list[str]:
    mailto = (link[len("mailto:"):].split("?")[0] for link in page.links if link.lower().startswith("mailto:"))
    return _unique([*mailto, *_EMAIL_RE.findall(page.text)])


def extract_phone_numbers(page: PageContent) -> list[str]:
    tel = (link[len("tel:"):] for link in page.links if link.lower().startswith("tel:"))
    candidates = [*tel, *_PHONE_RE.findall(page.text)]
    # A phone number has at least 9 digits; shorter runs are years or prices.
    return _unique(c for c in candidates if sum(ch.isdigit() for ch in c) >= 9)


def extract_social_links(page: PageContent) -> dict[str, list[str]]:
    found: dict[str, list[str]] = {}
    for link in page.links:
        host = urlparse(link).netloc.lower().removeprefix("www.").removeprefix("m.")
        for domain, network in SOCIAL_DOMAINS.items():
            if host == domain or host.endswith("." + domain):
                urls = found.setdefault(network, [])
                if link not in urls:
                    urls.append(link)
                break
    return found


def extract_dates(page: PageContent) -> list[str]:
    matches: list[str] = []
    for pattern in _DATE_RES:
        matches.extend(pattern.findall(page.text))
    return _unique(matches)


def extract_location(page: PageContent) -> list[str]:
    return _unique(m.group(1) for m in _LOCATION_RE.finditer(page.text))


def extract_organizers(page: PageContent) -> list[str]:
    return _unique(m.group(1) for m in _ORGANIZER_RE.finditer(page.text))


def extract_ticket_info(page: PageContent) -> dict[str, list[str]]:
    mentions = [line[:200] for line in _lines(page.text) if _TICKET_RE.search(line)]
    ticket_links = [link for link in page.links if "ticket" in link.lower()]
    return {
        "mentions": _unique(mentions, limit=10),
        "prices": _unique(_PRICE_RE.findall(page.text)),
        "links": _unique(ticket_links, limit=10),
    }


_EXTRACTORS: dict[str, Callable[[PageContent], object]] = {
    "emails": extract_emails,
    "phone_numbers": extract_phone_numbers,
    "social_links": extract_social_links,
    "dates": extract_dates,
    "location": extract_location,
    "organizers": extract_organizers,
    "ticket_info": extract_ticket_info,
}


def extract_fields(page: PageContent, fields: Iterable[str]) -> dict[str, object]:
    """Run the requested extractors over *page*; unknown field names are skipped."""
    return {name: _EXTRACTORS[name](page) for name in fields if name in _EXTRACTORS}
