import logging
import re
from typing import Callable, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

HtmlParser = Callable[[str], BeautifulSoup]

DEFAULT_FEATURES = "html.parser"


def make_parser(features: str = DEFAULT_FEATURES) -> HtmlParser:
    """Build the parsing capability handed to the engine.

    `features` is any BeautifulSoup tree builder available in the process
    ("html.parser", "lxml", "html5lib").
    """

    def parse(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, features)

    return parse


def text_of(el: Tag | None, separator: str = "") -> str:
    """Stripped text content of an element, "" for a missing one."""
    if el is None:
        return ""
    return el.get_text(separator=separator).strip()


def select_first_matching(root: Tag, selectors: Sequence[str]) -> list[Tag]:
    """Try CSS selectors in order and return the matches of the first that hits."""
    for selector in selectors:
        found = root.select(selector)
        if found:
            logger.debug("Selector %r matched %d elements", selector, len(found))
            return found
    return []


def select_one_of(root: Tag, selectors: Sequence[str]) -> Tag | None:
    for selector in selectors:
        el = root.select_one(selector)
        if el is not None:
            return el
    return None


def find_heading(
    root: Tag,
    label: str,
    tags: Sequence[str] = ("h2", "h3", "h4"),
    exact: bool = False,
) -> Tag | None:
    """First heading whose text contains (or equals) `label`, case-insensitive."""
    wanted = label.lower()
    for heading in root.find_all(list(tags)):
        text = text_of(heading).lower()
        if (text == wanted) if exact else (wanted in text):
            return heading
    return None


def find_section(doc: Tag, element_id: str, heading_label: str) -> Tag | None:
    """Locate a page section by id, falling back to its heading's container."""
    section = doc.find(id=element_id)
    if isinstance(section, Tag):
        return section
    heading = find_heading(doc, heading_label)
    if heading is not None:
        return heading.parent
    return None


def find_labelled_text(text: str, label: str, stops: Sequence[str]) -> str | None:
    """Text following `label:` up to the next stop label or end of text."""
    stop_alt = "|".join(re.escape(s) for s in stops)
    pattern = rf"{re.escape(label)}:\s*(.+?)(?:{stop_alt}|$)" if stops else rf"{re.escape(label)}:\s*(.+)$"
    match = re.search(pattern, text, re.IGNORECASE | re.DOTALL)
    if not match:
        return None
    return match.group(1).strip() or None


def absolute_url(base: str, href: str | None) -> str | None:
    if not href:
        return None
    if href.startswith("http"):
        return href
    return urljoin(base, href)
