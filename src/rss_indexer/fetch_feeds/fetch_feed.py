"""RSS feed fetching."""

import logging

import feedparser
import requests
from lxml import etree

from rss_indexer.errors import FetchError
from rss_indexer.models import FeedChannel, FeedDocument, FeedItem

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "rss-indexer/1.0 (RSS reader)"


def fetch_feed(
    feed_url: str,
    timeout: float = 30,
    user_agent: str = DEFAULT_USER_AGENT,
) -> FeedDocument:
    """Fetch and parse a single RSS feed.

    feedparser decides whether the body is an RSS document at all. Field
    values are then read verbatim from the <channel> and <item> elements,
    so a link synthesized from <guid> or a description taken from
    <itunes:summary> never stands in for a missing element.

    Args:
        feed_url: URL of the feed
        timeout: Seconds to wait on connect and on each read
        user_agent: User-Agent header sent with the request

    Returns:
        FeedDocument with the channel fields and items in source order

    Raises:
        FetchError: On network failure, non-2xx status or a document that is not RSS
    """
    try:
        response = requests.get(
            feed_url,
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )
        response.raise_for_status()
        content = response.content
    except requests.RequestException as e:
        raise FetchError(f"HTTP request error ({feed_url}): {e}") from e

    feed = feedparser.parse(content)

    version = feed.get("version")
    if not version:
        reason = feed.get("bozo_exception") or "unrecognized document"
        raise FetchError(f"XML parsing error on {feed_url}: {reason}")
    if not version.startswith("rss"):
        raise FetchError(f"Unsupported feed format on {feed_url}: {version}")

    root = _parse_xml(content)
    # RSS 0.90 and 1.0 are RDF documents with items outside <channel>
    if root is None or root.tag != "rss":
        raise FetchError(f"Unsupported feed format on {feed_url}: {version}")

    document = _to_document(root)
    logger.debug("Fetched %d items from %s", len(document.items), feed_url)
    return document


def _parse_xml(content: bytes):
    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(content, parser)
    except etree.XMLSyntaxError:
        return None


def _to_document(root) -> FeedDocument:
    """Map an <rss> element onto a FeedDocument."""
    channel = root.find("channel")
    if channel is None:
        return FeedDocument(channel=FeedChannel(title="", link="", description=""))

    return FeedDocument(
        channel=FeedChannel(
            title=_text(channel, "title"),
            link=_text(channel, "link"),
            description=_text(channel, "description"),
        ),
        items=[_parse_item(item) for item in channel.findall("item")],
    )


def _parse_item(item) -> FeedItem:
    """Parse a single <item> into a FeedItem."""
    return FeedItem(
        title=_text(item, "title"),
        link=_text(item, "link"),
        description=_text(item, "description"),
        pub_date=_text(item, "pubDate"),
    )


def _text(element, tag: str) -> str:
    # unprefixed tags only: <atom:link> and <itunes:summary> never match
    child = element.find(tag)
    if child is None:
        return ""
    return "".join(child.itertext())
