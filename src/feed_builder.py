"""Seed a brand-new podcast channel document using feedgen."""

import logging

from feedgen.feed import FeedGenerator

from src.feed_merger import TRAILER

logger = logging.getLogger(__name__)

_CLOSING_LINES = {"", "</channel>", "</rss>"}


def _build_feed_generator(
    title: str,
    link: str,
    description: str,
    language: str = "en",
    image_url: str = "",
    author: str = "",
) -> FeedGenerator:
    """Create a FeedGenerator for an empty channel with the podcast extension."""
    fg = FeedGenerator()
    fg.load_extension("podcast")

    fg.title(title)
    fg.description(description or title)
    fg.link(href=link, rel="alternate")
    fg.language(language)
    fg.generator(f"{title} Podcast Processor")

    if image_url:
        fg.image(url=image_url, title=title, link=link)

    fg.podcast.itunes_explicit("no")
    fg.podcast.itunes_summary(description or title)
    if author:
        fg.podcast.itunes_author(author)

    return fg


def build_channel_document(
    title: str,
    link: str,
    description: str = "",
    language: str = "en",
    image_url: str = "",
    author: str = "",
) -> str:
    """Render an index.xml with channel metadata and no items.

    feedgen indents the closing tags, so they are dropped line by line and
    replaced with the exact trailer the merger expects.
    """
    fg = _build_feed_generator(title, link, description, language, image_url, author)
    xml = fg.rss_str(pretty=True).decode("utf-8")

    lines = xml.splitlines()
    while lines and lines[-1].strip() in _CLOSING_LINES:
        lines.pop()

    logger.info("Seeded new channel document for %r", title)
    return "\n".join(lines) + "\n" + TRAILER
