"""BeautifulSoup helpers shared by the filtering and formatting stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from .text import collapse_whitespace

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")


@dataclass(frozen=True)
class ImageRef:
    """Reference to an image found in HTML."""

    url: str
    alt: str = ""


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def remove_matching(root: Tag, selector: str) -> int:
    """Decompose every element under ``root`` matching ``selector``."""
    removed = 0
    for el in root.select(selector):
        # Descendants of an element removed earlier in this loop are already gone.
        if el.decomposed:
            continue
        el.decompose()
        removed += 1
    return removed


def element_text(el: Tag) -> str:
    # Adjacent text nodes join without a separator so inline markup stays verbatim.
    return collapse_whitespace(el.get_text())


def body_text(soup: BeautifulSoup) -> str:
    body = soup.body if soup.body is not None else soup
    return element_text(body)


def headings(soup: BeautifulSoup) -> list[Tag]:
    return soup.find_all(list(HEADING_TAGS))


def iter_section_blocks(heading: Tag) -> Iterator[Tag]:
    """Yield the element siblings after ``heading`` up to the next heading."""
    for sibling in heading.find_next_siblings():
        if sibling.name in HEADING_TAGS:
            break
        yield sibling


def page_title(soup: BeautifulSoup, default: str = "Untitled Page") -> str:
    title = soup.find("title")
    if title is not None and element_text(title):
        return element_text(title)
    h1 = soup.find("h1")
    if h1 is not None and element_text(h1):
        return element_text(h1)
    return default


def page_description(soup: BeautifulSoup) -> str:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta is not None:
            content = str(meta.get("content") or "").strip()
            if content:
                return content
    return ""


def _parse_srcset(srcset: str) -> list[str]:
    """Parse a srcset attribute into a list of candidate URLs (in-order)."""
    out: list[str] = []
    for part in (srcset or "").split(","):
        p = part.strip()
        if not p:
            continue
        # Each entry is like: "url 1x" or "url 640w"
        url = p.split()[0].strip()
        if url:
            out.append(url)
    return out


def extract_image_refs(soup: BeautifulSoup, *, base_url: str, limit: int = 50) -> list[ImageRef]:
    """Image URLs (src, falling back to the first srcset candidate) plus alt text."""
    refs: list[ImageRef] = []
    seen: set[str] = set()
    for img in soup.find_all("img"):
        src = str(img.get("src") or "").strip()
        if not src:
            candidates = _parse_srcset(str(img.get("srcset") or ""))
            src = candidates[0] if candidates else ""
        if not src or src.startswith("data:"):
            continue
        resolved = urljoin(base_url, src)
        if resolved in seen:
            continue
        seen.add(resolved)
        refs.append(ImageRef(url=resolved, alt=str(img.get("alt") or "").strip()))
        if len(refs) >= limit:
            break
    return refs
