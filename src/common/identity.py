"""Entity id derivation."""

import base64


def generate_entity_id(value: str) -> str:
    """Derive a stable, URL-safe entity ID from a natural key (feed URL or article link).

    The ID is the padded URL-safe base64 encoding of the UTF-8 bytes, so
    distinct keys never share an ID.
    """
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii")
