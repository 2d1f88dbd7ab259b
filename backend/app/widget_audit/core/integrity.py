"""
Layout, alignment, text and media integrity analysis.

The DOM is read in batched evaluate_all calls (scripts below); the geometry
and classification logic is plain Python so it can be tested without a
browser.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

MALFORMED_VALUE_PATTERN = re.compile(r"\b(undefined|null|invalid date)\b", re.IGNORECASE)


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box of one element"""
    id: str
    x: float
    y: float
    width: float
    height: float
    snippet: str = ""

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Box":
        return cls(
            id=str(data.get("id", "")),
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
            snippet=data.get("snippet", "") or "",
        )


def overlap_extent(a: Box, b: Box) -> Tuple[float, float]:
    """Horizontal and vertical overlap lengths (negative when apart)"""
    return (
        min(a.right, b.right) - max(a.x, b.x),
        min(a.bottom, b.bottom) - max(a.y, b.y),
    )


def intersects(a: Box, b: Box, tolerance: float = 0) -> bool:
    overlap_x, overlap_y = overlap_extent(a, b)
    return overlap_x > tolerance and overlap_y > tolerance


def within_container(boxes: List[Box], container: Optional[Box]) -> List[Box]:
    """Boxes with a non-zero size that intersect the container"""
    sized = [b for b in boxes if b.width > 0 and b.height > 0]
    if container is None:
        return sized
    return [b for b in sized if intersects(b, container)]


def find_overlaps(boxes: List[Box], tolerance: float = 5) -> List[Tuple[Box, Box]]:
    """All pairs overlapping by more than ``tolerance`` px on both axes"""
    pairs = []
    for i, first in enumerate(boxes):
        for second in boxes[i + 1:]:
            if intersects(first, second, tolerance):
                pairs.append((first, second))
    return pairs


def find_misaligned_rows(
    boxes: List[Box],
    row_tolerance: float = 10,
    height_tolerance: float = 5,
) -> List[List[Box]]:
    """
    Group boxes into rows by top edge and return rows with uneven heights.
    """
    rows: List[List[Box]] = []
    for box in sorted(boxes, key=lambda b: (b.y, b.x)):
        if rows and abs(rows[-1][0].y - box.y) <= row_tolerance:
            rows[-1].append(box)
        else:
            rows.append([box])

    uneven = []
    for row in rows:
        if len(row) < 2:
            continue
        heights = [b.height for b in row]
        if max(heights) - min(heights) > height_tolerance:
            uneven.append(row)
    return uneven


def malformed_tokens(text: str) -> List[str]:
    """Literal placeholder values leaked into rendered text"""
    return sorted({m.group(1).lower() for m in MALFORMED_VALUE_PATTERN.finditer(text or "")})


def motion_detected(first: Dict[str, Any], second: Dict[str, Any]) -> bool:
    """Two samples of a marquee track differ in any position signal"""
    for key in ("transform", "animationName", "scrollLeft", "scrollTop", "childX", "childY"):
        if first.get(key) != second.get(key):
            return True
    return False


# ============================================================
# DOM SCRIPTS
# ============================================================

CARD_BOXES_SCRIPT = """
(cards, cloneSelector) => cards
    .filter(card => !card.matches(cloneSelector) && !card.closest(cloneSelector))
    .map((card, index) => {
        const rect = card.getBoundingClientRect();
        const style = window.getComputedStyle(card);
        const idHost = card.closest('[data-feed-id]') || card.querySelector('[data-feed-id]');
        return {
            id: idHost ? idHost.getAttribute('data-feed-id') : `Card #${index + 1}`,
            x: rect.x, y: rect.y, width: rect.width, height: rect.height,
            hidden: style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0',
            snippet: card.outerHTML.slice(0, 200)
        };
    })
    .filter(box => !box.hidden)
"""

TEXT_ISSUES_SCRIPT = """
(cards, args) => {
    const issues = [];
    cards.forEach((card, index) => {
        if (card.matches(args.clone) || card.closest(args.clone)) return;
        const idHost = card.closest('[data-feed-id]') || card.querySelector('[data-feed-id]');
        const cardId = idHost ? idHost.getAttribute('data-feed-id') : `Card #${index + 1}`;
        const hasReadMore = !!card.querySelector(args.readMore);
        const nodes = Array.from(card.querySelectorAll(args.text));
        nodes.forEach(node => {
            const style = window.getComputedStyle(node);
            const overflow = node.scrollHeight - node.clientHeight;
            if (overflow > args.tolerance && !hasReadMore && style.overflowY !== 'auto' && style.overflowY !== 'scroll') {
                issues.push({cardId, kind: 'overflow', detail: `Text overflows by ${overflow}px`, snippet: node.outerHTML.slice(0, 150)});
            }
            const masked = (style.maskImage && style.maskImage !== 'none') ||
                (style.webkitMaskImage && style.webkitMaskImage !== 'none');
            const blurred = style.filter && style.filter.includes('blur');
            const clipped = style.clipPath && style.clipPath !== 'none';
            const gradient = style.backgroundImage && style.backgroundImage.includes('gradient') && node.innerText.trim().length > 0;
            if ((masked || blurred || clipped || gradient) && !hasReadMore) {
                issues.push({cardId, kind: 'truncation', detail: 'Text hidden by CSS mask, blur, clip or gradient', snippet: node.outerHTML.slice(0, 150)});
            }
        });
        for (let i = 0; i < nodes.length; i++) {
            const a = nodes[i].getBoundingClientRect();
            if (!a.width || !a.height) continue;
            for (let j = i + 1; j < nodes.length; j++) {
                if (nodes[i].contains(nodes[j]) || nodes[j].contains(nodes[i])) continue;
                const b = nodes[j].getBoundingClientRect();
                const ox = Math.min(a.right, b.right) - Math.max(a.left, b.left);
                const oy = Math.min(a.bottom, b.bottom) - Math.max(a.top, b.top);
                if (ox > args.tolerance && oy > args.tolerance) {
                    issues.push({cardId, kind: 'overlap', detail: 'Text elements overlap', snippet: nodes[j].outerHTML.slice(0, 150)});
                }
            }
        }
    });
    return issues;
}
"""

BROKEN_MEDIA_SCRIPT = """
(elements, args) => {
    const broken = [];
    elements.forEach((el, index) => {
        if (el.closest(args.clone) || el.getAttribute('aria-hidden') === 'true') return;
        const card = el.closest(args.card);
        const idHost = el.closest('[data-feed-id]');
        let cardId = `Element #${index + 1}`;
        if (idHost) {
            cardId = idHost.getAttribute('data-feed-id');
        } else if (card && card.parentElement) {
            cardId = `Card #${Array.from(card.parentElement.children).indexOf(card) + 1}`;
        }
        const tag = el.tagName.toLowerCase();
        let reason = null;
        if (tag === 'img') {
            if (!el.getAttribute('src') && !el.currentSrc) return;
            // lazy-load placeholders
            if (el.width <= 1 && el.height <= 1) return;
            if (/^data:image\/(gif|svg)/.test(el.getAttribute('src') || '')) return;
            if (!el.complete || el.naturalWidth === 0) reason = 'Image failed to load';
        } else if (tag === 'video' || tag === 'audio') {
            if (el.error) reason = `Media error code ${el.error.code}`;
            else if (el.networkState === 3) reason = 'Media source not found';
        } else if (tag === 'iframe') {
            const rect = el.getBoundingClientRect();
            if (!rect.width || !rect.height) reason = 'Embedded player not visible';
        }
        if (reason) {
            broken.push({cardId, tag, reason, src: el.currentSrc || el.src || '', snippet: el.outerHTML.slice(0, 200)});
        }
    });
    return broken;
}
"""

CARD_CONTENT_SCRIPT = """
(cards, args) => cards
    .filter(card => !card.matches(args.clone) && !card.closest(args.clone))
    .map((card, index) => {
        const idHost = card.closest('[data-feed-id]') || card.querySelector('[data-feed-id]');
        const date = card.querySelector(args.date);
        return {
            cardId: idHost ? idHost.getAttribute('data-feed-id') : `Card #${index + 1}`,
            dateText: date ? date.innerText.trim() : null,
            text: (card.innerText || '').slice(0, 1000),
            snippet: card.outerHTML.slice(0, 200)
        };
    })
"""

SOCIAL_LINKS_SCRIPT = """
els => els
    .filter(el => { const r = el.getBoundingClientRect(); return r.width > 0 && r.height > 0; })
    .map((el, index) => {
        const link = el.tagName === 'A' ? el : (el.closest('a') || el.querySelector('a'));
        return {
            index,
            href: link ? (link.getAttribute('href') || '') : '',
            snippet: el.outerHTML.slice(0, 150)
        };
    })
"""

MOTION_SAMPLE_SCRIPT = """
el => {
    const child = el.firstElementChild;
    const childRect = child ? child.getBoundingClientRect() : {x: 0, y: 0};
    const style = window.getComputedStyle(child || el);
    return {
        transform: style.transform,
        animationName: style.animationName,
        scrollLeft: el.scrollLeft,
        scrollTop: el.scrollTop,
        childX: Math.round(childRect.x),
        childY: Math.round(childRect.y),
        scrollable: el.scrollWidth > el.clientWidth + 1 || el.scrollHeight > el.clientHeight + 1
    };
}
"""

ACTIVE_IDENTITY_SCRIPT = """
(cards, containerSelector) => {
    const container = document.querySelector(containerSelector);
    const bounds = container ? container.getBoundingClientRect() : null;
    return cards
        .filter(card => {
            const r = card.getBoundingClientRect();
            if (!r.width || !r.height) return false;
            if (!bounds) return true;
            return r.right > bounds.left + 1 && r.left < bounds.right - 1 &&
                r.bottom > bounds.top + 1 && r.top < bounds.bottom - 1;
        })
        .slice(0, 3)
        .map(card => {
            const idHost = card.closest('[data-feed-id]') || card.querySelector('[data-feed-id]');
            return idHost ? idHost.getAttribute('data-feed-id') : (card.innerText || '').trim().slice(0, 60);
        })
        .join('|');
}
"""

MEDIA_STATE_SCRIPT = """
(el, cardSelector) => {
    const host = el.closest(cardSelector) || document;
    const media = host.querySelector('video, audio') || document.querySelector('video, audio');
    const frame = host.querySelector('iframe[src*="youtube"], iframe[src*="vimeo"], iframe[src*="wistia"]');
    if (!media) return {found: false, embedded: !!frame};
    return {found: true, embedded: false, readyState: media.readyState, currentTime: media.currentTime,
            paused: media.paused, error: media.error ? media.error.code : null};
}
"""

PAUSE_MEDIA_SCRIPT = """
() => document.querySelectorAll('video, audio').forEach(m => { try { m.pause(); } catch (e) {} })
"""

FOCUS_INSIDE_SCRIPT = """
containerSelector => {
    const container = document.querySelector(containerSelector);
    return !!(container && document.activeElement && container.contains(document.activeElement));
}
"""


def playback_verified(state: Dict[str, Any]) -> bool:
    """readyState >= 1 or a positive currentTime counts as playing"""
    if not state or not state.get("found"):
        return bool(state and state.get("embedded"))
    return (state.get("readyState") or 0) >= 1 or (state.get("currentTime") or 0) > 0
