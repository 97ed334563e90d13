"""Pass-through extraction of card payloads from Ghost mobiledoc.

Ghost 1.x stores posts written in its markdown editor as a mobiledoc
document whose only content is a markdown card, and embeds raw HTML as
html cards. Those payloads are copied verbatim; mobiledoc markup sections
are not rendered.
"""

import json
import logging
from typing import List

logger = logging.getLogger(__name__)

CARD_SECTION = 10
MARKDOWN_CARDS = frozenset({"markdown", "card-markdown"})
HTML_CARDS = frozenset({"html", "card-html"})


def card_payloads(source: str) -> List[str]:
    """Markdown and HTML card payloads in document order.

    Returns an empty list for empty or unparseable documents.
    """
    if not source or not source.strip():
        return []
    try:
        document = json.loads(source)
    except ValueError as e:
        logger.warning(f"Ignoring unparseable mobiledoc: {e}")
        return []
    if not isinstance(document, dict):
        return []

    cards = document.get("cards") or []
    sections = document.get("sections") or []
    order = [
        section[1]
        for section in sections
        if isinstance(section, list) and len(section) >= 2 and section[0] == CARD_SECTION
    ]
    if not order:
        order = list(range(len(cards)))

    payloads = []
    for card_index in order:
        if not isinstance(card_index, int) or not 0 <= card_index < len(cards):
            continue
        card = cards[card_index]
        if not isinstance(card, list) or len(card) < 2 or not isinstance(card[1], dict):
            continue
        name, payload = card[0], card[1]
        if name in MARKDOWN_CARDS:
            text = payload.get("markdown")
        elif name in HTML_CARDS:
            text = payload.get("html")
        else:
            continue
        if isinstance(text, str) and text.strip():
            payloads.append(text)
    return payloads


def passthrough_body(source: str) -> str:
    """Card payloads joined by blank lines; empty when there are none."""
    return "\n\n".join(payload.strip("\n") for payload in card_payloads(source))
