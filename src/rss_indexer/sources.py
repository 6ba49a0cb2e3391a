"""Feed list loading."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_feed_urls(text: str) -> list[str]:
    '''Parse newline-separated feed URLs, trimming exactly one trailing empty line.'''

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    feed_urls = []
    for lineno, line in enumerate(lines, start=1):
        url = line.strip()
        if not url:
            logger.warning("Skipping blank line %d in feed list", lineno)
            continue
        feed_urls.append(url)
    return feed_urls


def load_feed_urls(path: str | Path) -> list[str]:
    '''Read the feed list file.

    Raises:
        FileNotFoundError: If the file does not exist.
    '''
    path = Path(path)
    feed_urls = parse_feed_urls(path.read_text(encoding="utf-8"))
    logger.info("Loaded %d feeds from %s", len(feed_urls), path)
    return feed_urls
