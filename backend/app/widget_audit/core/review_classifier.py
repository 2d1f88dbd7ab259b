"""
Review Classifier

Deduplicates review cards by stable identity and buckets them into text,
video and audio reviews.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..knowledge.selector_catalog import (
    AUDIO_INDICATOR_SELECTOR,
    CLONE_SELECTOR,
    VIDEO_INDICATOR_SELECTOR,
)
from . import browser_surface

# Configure logging
logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class CardDescriptor:
    """Facts read from one review card element"""
    feed_id: Optional[str] = None
    text: str = ""
    html: str = ""
    has_video: bool = False
    has_audio: bool = False
    is_clone: bool = False


@dataclass(frozen=True)
class ReviewStats:
    total: int = 0
    text_count: int = 0
    video_count: int = 0
    audio_count: int = 0
    review_ids: Tuple[str, ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "text": self.text_count,
            "video": self.video_count,
            "audio": self.audio_count,
        }


def fingerprint(text: str, length: int = FINGERPRINT_LENGTH) -> str:
    """Trimmed, whitespace-collapsed, lowercased leading text"""
    return _WHITESPACE.sub(" ", text or "").strip().lower()[:length]


def card_identity(card: CardDescriptor) -> Optional[str]:
    if card.feed_id and card.feed_id.strip():
        return f"id:{card.feed_id.strip()}"
    text_key = fingerprint(card.text)
    if text_key:
        return f"text:{text_key}"
    html_key = fingerprint(card.html, length=200)
    if html_key:
        return f"html:{html_key}"
    return None


def classify(cards: Iterable[CardDescriptor]) -> ReviewStats:
    """
    Count unique, non-clone cards by media type.

    Video wins over audio, audio over text. The first card seen for an
    identity decides its bucket, so the result does not depend on how many
    duplicates follow it.
    """
    buckets: Dict[str, str] = {}
    for card in cards:
        if card.is_clone:
            continue
        identity = card_identity(card)
        if identity is None or identity in buckets:
            continue
        if card.has_video:
            buckets[identity] = "video"
        elif card.has_audio:
            buckets[identity] = "audio"
        else:
            buckets[identity] = "text"

    kinds = list(buckets.values())
    return ReviewStats(
        total=len(buckets),
        text_count=kinds.count("text"),
        video_count=kinds.count("video"),
        audio_count=kinds.count("audio"),
        review_ids=tuple(buckets.keys()),
    )


DESCRIBE_CARDS_SCRIPT = """
(cards, selectors) => cards.map(card => {
    const idHost = card.closest('[data-feed-id]') || card.querySelector('[data-feed-id]');
    const className = (typeof card.className === 'string' ? card.className : '').toLowerCase();
    const isClone = card.matches(selectors.clone) || !!card.closest(selectors.clone) ||
        className.includes('clone') || className.includes('duplicate');
    return {
        feed_id: idHost ? idHost.getAttribute('data-feed-id') : (card.getAttribute('data-id') || null),
        text: (card.innerText || '').slice(0, 400),
        html: (card.innerHTML || '').slice(0, 400),
        has_video: !!card.querySelector(selectors.video),
        has_audio: !!card.querySelector(selectors.audio),
        is_clone: isClone
    };
})
"""


def descriptors_from_json(rows: List[Dict[str, Any]]) -> List[CardDescriptor]:
    return [
        CardDescriptor(
            feed_id=row.get("feed_id"),
            text=row.get("text") or "",
            html=row.get("html") or "",
            has_video=bool(row.get("has_video")),
            has_audio=bool(row.get("has_audio")),
            is_clone=bool(row.get("is_clone")),
        )
        for row in rows
    ]


async def collect_card_descriptors(scope: Any, card_selector: str) -> List[CardDescriptor]:
    """Read every card matching the selector in one round trip"""
    rows = await browser_surface.evaluate_all(
        scope,
        card_selector,
        DESCRIBE_CARDS_SCRIPT,
        {"clone": CLONE_SELECTOR, "video": VIDEO_INDICATOR_SELECTOR, "audio": AUDIO_INDICATOR_SELECTOR},
    )
    descriptors = descriptors_from_json(rows)
    logger.debug(f"Collected {len(descriptors)} card descriptors for {card_selector}")
    return descriptors
