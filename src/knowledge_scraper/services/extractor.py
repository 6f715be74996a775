"""Extraction stage: rendered HTML -> ScrapedContent."""

from __future__ import annotations

from ..domain.models import ScrapedContent, ScrapedMetadata
from ..models.requests import ProcessingOptions
from ..observability.logger import get_logger
from ..utils.html import extract_image_refs, page_description, page_title, parse_html
from ..utils.text import clean_text, count_words, truncate
from ..utils.time import utc_now_iso
from .content_filter import ContentFilter
from .content_selector import MainContentSelector
from .raw_formatter import RawQAFormatter

logger = get_logger(__name__)


class ContentExtractor:
    """Processing layer: noise filter -> main-content selector -> raw Q&A formatter.

    Pure CPU work on a parsed tree; no network and no storage.
    """

    def __init__(
        self,
        content_filter: ContentFilter,
        selector: MainContentSelector | None = None,
        formatter: RawQAFormatter | None = None,
        *,
        max_images: int = 50,
    ):
        self._filter = content_filter
        self._selector = selector or MainContentSelector(content_filter)
        self._formatter = formatter or RawQAFormatter()
        self._max_images = max_images

    def extract(self, html: str, url: str, options: ProcessingOptions) -> ScrapedContent:
        soup = parse_html(html)

        # Page-level facts are read before any element is removed.
        title = page_title(soup)
        description = page_description(soup)
        images = extract_image_refs(soup, base_url=url, limit=self._max_images) if options.process_images else []
        has_images = soup.find("img") is not None
        link_count = len(soup.select("a[href]"))

        if options.extract_main_content:
            removed = self._filter.strip_noise(soup)
        else:
            removed = self._filter.strip_non_visible(soup)

        selection = self._selector.select(soup, options.extract_main_content)
        content = truncate(clean_text(selection.text), options.max_content_length)

        raw_formatted = None
        if options.raw_formatted:
            raw_formatted = self._formatter.format(soup, content)

        logger.info(
            "content_extracted",
            url=url,
            strategy=selection.strategy,
            noise_removed=removed,
            content_length=len(content),
            raw_formatted_length=len(raw_formatted) if raw_formatted is not None else 0,
        )

        return ScrapedContent(
            url=url,
            title=title,
            description=description,
            content=content,
            raw_formatted=raw_formatted,
            images=tuple(images),
            metadata=ScrapedMetadata(
                scraped_at=utc_now_iso(),
                word_count=count_words(content),
                has_images=has_images,
                link_count=link_count,
            ),
        )
