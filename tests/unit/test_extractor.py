from __future__ import annotations

from knowledge_scraper.models.requests import ProcessingOptions
from knowledge_scraper.services.content_filter import ContentFilter
from knowledge_scraper.services.extractor import ContentExtractor

RETURNS_PAGE = """
<html>
  <head>
    <title>Returns</title>
    <meta name="description" content="How returns work">
  </head>
  <body>
    <nav><a href="/">Home</a> | <a href="/shop">Shop</a></nav>
    <p>Our return policy allows 30 days.</p>
    <footer>Copyright Shop</footer>
  </body>
</html>
"""


def _extract(html: str, **options):
    return ContentExtractor(ContentFilter()).extract(html, "https://shop.example.com/returns", ProcessingOptions(**options))


def test_extract_reads_page_facts_and_filters_noise() -> None:
    scraped = _extract(RETURNS_PAGE)
    assert scraped.title == "Returns"
    assert scraped.description == "How returns work"
    assert scraped.content == "Our return policy allows 30 days."
    assert scraped.metadata.word_count == 6
    # Links are counted before navigation is removed.
    assert scraped.metadata.link_count == 2
    assert scraped.metadata.has_images is False
    assert scraped.raw_formatted is None
    assert scraped.images == ()


def test_extract_title_and_description_fallbacks() -> None:
    html = '<html><head><meta property="og:description" content="OG text"></head><body><h1>Help</h1></body></html>'
    scraped = _extract(html)
    assert scraped.title == "Help"
    assert scraped.description == "OG text"

    assert _extract("<html><body></body></html>").title == "Untitled Page"


def test_extract_truncates_to_max_content_length() -> None:
    html = "<body><main><p>" + "alpha beta gamma delta " * 200 + "</p></main></body>"
    scraped = _extract(html, max_content_length=1000)
    assert len(scraped.content) == 1000 + len("...")
    assert scraped.content.endswith("...")


def test_extract_cleans_repeated_characters() -> None:
    scraped = _extract("<body><p>Great news!!!!!!   We   ship worldwide.</p></body>")
    assert scraped.content == "Great news!! We ship worldwide."


def test_extract_without_main_content_keeps_chrome() -> None:
    html = "<body><nav>Menu</nav><script>var tracking = 1;</script><p>Text</p></body>"
    scraped = _extract(html, extract_main_content=False)
    assert "Menu" in scraped.content
    assert "Text" in scraped.content
    assert "tracking" not in scraped.content


def test_extract_raw_formatted_only_when_requested() -> None:
    html = "<body><h2>What is shipping?</h2><p>Shipping takes 3 days.</p></body>"
    scraped = _extract(html, raw_formatted=True)
    assert scraped.raw_formatted is not None
    assert "## What is shipping?\nShipping takes 3 days." in scraped.raw_formatted


def test_extract_images_only_when_requested() -> None:
    html = '<body><p>Our gallery</p><img src="/img/a.png" alt="A"><img srcset="/img/b.png 1x, /img/b2.png 2x"></body>'

    without = _extract(html)
    assert without.metadata.has_images is True
    assert without.images == ()

    scraped = _extract(html, process_images=True)
    assert [img.url for img in scraped.images] == [
        "https://shop.example.com/img/a.png",
        "https://shop.example.com/img/b.png",
    ]
    assert scraped.images[0].alt == "A"
