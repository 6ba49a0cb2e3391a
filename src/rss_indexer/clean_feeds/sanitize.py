"""Field sanitizing and validation for feed documents."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil.parser import parse as parse_date

from rss_indexer.errors import ValidationError
from rss_indexer.models import FeedChannel, FeedItem

logger = logging.getLogger(__name__)

UNSAFE_QUOTE = "'"
QUOTE_SUBSTITUTE = "`"

# Timezone abbreviations for date parsing
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}


def sanitize(text: str) -> str:
    """Replace single quotes with backticks.

    Store writes are parameterized regardless; this only keeps persisted text
    free of the quote character.
    """
    return text.replace(UNSAFE_QUOTE, QUOTE_SUBSTITUTE)


def validate_channel(channel: FeedChannel) -> None:
    """Raise ValidationError if the channel is missing its title or link."""
    if not channel.title or not channel.link:
        raise ValidationError(
            f"Empty channel field (title={channel.title!r}, link={channel.link!r})"
        )


def is_complete_item(item: FeedItem) -> bool:
    """An item is writable only if title, link and description are all present."""
    return bool(item.title and item.link and item.description)


def parse_pub_date(value: str) -> Optional[datetime]:
    """Parse a pubDate string into an aware datetime, or None if unparseable."""
    if not value:
        return None

    try:
        dt = parse_date(value, tzinfos=TZINFOS)
    except (ValueError, OverflowError) as e:
        logger.debug("Unparseable pubDate %r: %s", value, e)
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
