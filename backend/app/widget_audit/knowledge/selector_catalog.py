"""
Selector Catalog - Feedspace widget DOM knowledge

Per-variant tables mapping semantic features ("show ratings", "read more",
"next arrow") to Playwright selector patterns. Pure data shared read-only by
the detector, the reconciliation step and every widget controller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from .widget_types import WidgetVariant


class ReconcileMode(Enum):
    """How an observed element state is compared to a configured flag"""
    DIRECT = "direct"    # visible <=> configured true
    INVERSE = "inverse"  # visible <=> configured false (branding removal)


@dataclass(frozen=True)
class FeatureProbe:
    """DOM probe for one configuration flag"""
    selector: str
    mode: ReconcileMode = ReconcileMode.DIRECT
    text_required: bool = False  # element must also carry non-empty text
    page_level: bool = False     # may render outside the widget frame


# ============================================================
# SHARED PATTERNS
# ============================================================

BRANDING_SELECTOR = 'a[title="Capture reviews with Feedspace"], a[href*="utm_source=powered-by-feedspace"]'

CLONE_SELECTOR = (
    '[data-fs-marquee-clone="true"], .cloned, .clone, .slick-cloned, '
    '.swiper-slide-duplicate, .feedspace-marquee-copy'
)

VIDEO_INDICATOR_SELECTOR = (
    'video, iframe[src*="youtube"], iframe[src*="vimeo"], iframe[src*="wistia"], '
    '.video-play-button, .feedspace-element-play-feed:not(.feedspace-element-audio-feed-box)'
)

AUDIO_INDICATOR_SELECTOR = (
    'audio, .audio-player, .fa-volume-up, .feedspace-audio-player, '
    '.feedspace-element-audio-feed-box'
)

DATE_SELECTOR = '.feedspace-element-date, .feedspace-wol-date, .feedspace-element-feed-date, .feedspace-element-date-text'

READ_MORE_SELECTOR = (
    '.feedspace-element-read-more:not(.feedspace-element-read-more-open), '
    '.feedspace-element-read-more-text-span, .feedspace-read-more-text, .read-more, .show-more, '
    'button:has-text("Read more"), span:has-text("Read more"), i:has-text("Read more")'
)

READ_LESS_SELECTOR = (
    '.feedspace-read-less-text, .feedspace-element-read-less, .feedspace-element-read-less-text-span, '
    '.feedspace-element-read-more-open, button:has-text("Read less"), span:has-text("Read less"), '
    'i:has-text("Read less")'
)

CARD_ANCESTOR_CLASSES: Tuple[str, ...] = (
    "feedspace-element-review-contain-box",
    "feedspace-element-feed-box",
    "feedspace-review-item",
    "feedspace-element-post-box",
    "feedspace-marquee-box-inner",
    "feedspace-element-marquee-item",
    "swiper-slide",
    "fe-review-box",
)

CARD_IDENTITY_SELECTOR = (
    '.feedspace-element-feed-box-inner, .feedspace-element-post-box, .swiper-slide, '
    '.feedspace-marquee-box-inner, .feedspace-review-item'
)

TEXT_NODE_SELECTOR = (
    '.feedspace-element-feed-text, .review-text, .feedspace-review-body, '
    '.feedspace-element-review-body, .feedspace-author-name, .feedspace-element-author-name, p'
)

SOCIAL_REDIRECTION_SELECTOR = (
    '.social-redirection-button, .fe-social-link, a.feedspace-d6-header-icon, '
    '.feedspace-element-header-icon a'
)

MEDIA_SELECTOR = 'img, video, audio, iframe'

MODAL_SELECTORS: Tuple[str, ...] = (
    '.feedspace-review-modal',
    '.feedspace-element-modal-container',
    '.fe-review-box-inner',
    '.fe-modal-content-wrap',
    '.fe-review-box',
)

MODAL_CLOSE_SELECTOR = (
    '.feedspace-modal-close, .feedspace-element-close-modal, .fe-modal-close, '
    '[aria-label="Close modal"], .close-button'
)

DEFAULT_VIDEO_PLAY_SELECTOR = (
    '.feedspace-element-play-feed:not(.feedspace-element-audio-feed-box), .feedspace-video-play-btn, '
    'div.feedspace-video-review-header .play-btn, .feedspace-media-play-icon'
)

DEFAULT_AUDIO_PLAY_SELECTOR = (
    'div.feedspace-element-audio-feed > div.feedspace-element-audio-icon > div.play-btn, '
    '.feedspace-audio-play-btn'
)

PLATFORM_ICON_SELECTOR = 'div.feedspace-element-header-icon > a > img'
RATINGS_SELECTOR = '.feedspace-video-review-header-star, .feedspace-stars, .star-rating, .feedspace-star-fill-color'
CTA_SELECTOR = '.feedspace-cta-button-container-d9, .feedspace-cta-content, .feedspace-inline-cta-card'


def _branding_probes() -> Dict[str, FeatureProbe]:
    probe = FeatureProbe(BRANDING_SELECTOR, mode=ReconcileMode.INVERSE, page_level=True)
    return {"allow_to_remove_branding": probe, "hideBranding": probe}


@dataclass(frozen=True)
class VariantSelectors:
    """Selector table for one widget variant"""
    container: str
    card: str
    # None: the variant is only detected from API evidence or legacy rules
    detect: Optional[str] = None
    features: Mapping[str, FeatureProbe] = field(default_factory=dict)
    read_more: str = READ_MORE_SELECTOR
    read_less: str = READ_LESS_SELECTOR
    video_play: str = DEFAULT_VIDEO_PLAY_SELECTOR
    audio_play: str = DEFAULT_AUDIO_PLAY_SELECTOR
    next_button: Optional[str] = None
    prev_button: Optional[str] = None
    indicators: Optional[str] = None
    load_more: Optional[str] = None
    marquee_row: Optional[str] = None
    cta: str = CTA_SELECTOR


# ============================================================
# PER-VARIANT TABLES
# ============================================================

WIDGET_SELECTORS: Dict[WidgetVariant, VariantSelectors] = {
    WidgetVariant.CAROUSEL: VariantSelectors(
        container='.feedspace-carousel-widget, .feedspace-element-container.feedspace-carousel-widget',
        detect='.feedspace-carousel-widget, .feedspace-element-container.feedspace-carousel-widget',
        card=(
            '.feedspace-carousel-widget .feedspace-element-feed-box, '
            '.feedspace-carousel-widget .feedspace-review-item, '
            '.feedspace-carousel-widget .feedspace-element-post-box, '
            '.feedspace-carousel-widget .swiper-slide, '
            'div.feedspace-element-carousel-track > div.feedspace-element-feed-box > div.feedspace-element-feed-box-inner'
        ),
        features={
            "is_show_ratings": FeatureProbe(RATINGS_SELECTOR + ', .feedspace-element-review-box .feedspace-icon'),
            "allow_to_display_feed_date": FeatureProbe(DATE_SELECTOR, text_required=True),
            "show_full_review": FeatureProbe('.feedspace-element-read-more, .feedspace-element-read-more-text-span, .read-more, button:has-text("Read more")'),
            "show_platform_icon": FeatureProbe(PLATFORM_ICON_SELECTOR),
            "cta_enabled": FeatureProbe('.feedspace-cta-button-container-d9, .feedspace-cta-content'),
            "allow_social_redirection": FeatureProbe('.social-redirection-button, .feedspace-element-header-icon > a > img'),
            "is_show_arrows_buttons": FeatureProbe(
                '.slick-prev, .carousel-control-prev, .prev-btn, .feedspace-element-carousel-arrow.left, '
                'button[aria-label="Previous item"], .slick-next, .carousel-control-next, .next-btn, '
                '.feedspace-element-carousel-arrow.right, button[aria-label="Next item"]'
            ),
            "is_show_indicators": FeatureProbe('.feedspace-element-carousel-indicators, .slick-dots'),
            **_branding_probes(),
        },
        read_more='.feedspace-element-read-more:not(.feedspace-element-read-more-open), .feedspace-read-more-text, ' + READ_MORE_SELECTOR,
        video_play=(
            'div.feedspace-element-feed-box-header-inner > div.play-btn > span.feedspace-media-play-icon, '
            'div.feedspace-video-review-header-wrap > div.feedspace-element-feed-box-header-inner > div.play-btn, '
            '.feedspace-element-play-feed, .feedspace-element-play-btn, .feedspace-video-play-btn'
        ),
        next_button='.slick-next, .carousel-control-next, .next-btn, .feedspace-element-carousel-arrow.right, button[aria-label="Next item"]',
        prev_button='.slick-prev, .carousel-control-prev, .prev-btn, .feedspace-element-carousel-arrow.left, button[aria-label="Previous item"]',
        indicators='.feedspace-element-carousel-indicators, .slick-dots',
        cta='.feedspace-cta-content, .feedspace-inline-cta-card',
    ),

    WidgetVariant.MASONRY: VariantSelectors(
        container='.feedspace-element-container',
        # The bare container also matches Wall of Love embeds
        detect=None,
        card='.feedspace-review-item, .feedspace-element-feed-box',
        features={
            "is_show_ratings": FeatureProbe('.feedspace-video-review-header-star, .feedspace-stars'),
            "allow_to_display_feed_date": FeatureProbe('.feedspace-element-date, .feedspace-wol-date', text_required=True),
            "show_full_review": FeatureProbe('.feedspace-element-read-more, .feedspace-element-read-more-text-span, button:has-text("Read more")'),
            "show_platform_icon": FeatureProbe(PLATFORM_ICON_SELECTOR),
            **_branding_probes(),
        },
        read_more='button:has-text("Read More"), ' + READ_MORE_SELECTOR,
        read_less='button:has-text("Read Less"), ' + READ_LESS_SELECTOR,
        video_play='div.feedspace-video-review-header > div.feedspace-video-review-header-wrap > div.play-btn',
        load_more='.load-more-btn, button:has-text("Load More"), span:has-text("Load More")',
        cta='.feedspace-element-feed-box-inner.feedspace-inline-cta-card, .feedspace-inline-cta-card, .feedspace-cta-content',
    ),

    WidgetVariant.STRIP_SLIDER: VariantSelectors(
        container='.feedspace-marque-main-wrap, .feedspace-show-overlay',
        detect='.feedspace-marque-main-wrap, .feedspace-show-overlay',
        card='.feedspace-marquee-box-inner, .feedspace-review-item, .feedspace-element-feed-box',
        features={
            "is_show_ratings": FeatureProbe(
                'div.feedspace-marquee-right > div.feedspace-info-box > div.feedspace-review-star, '
                '.feedspace-stars, .feedspace-video-review-header-star'
            ),
            "allow_to_display_feed_date": FeatureProbe(
                'div.feedspace-info-box > div.feedspace-element-date, .feedspace-element-date',
                text_required=True,
            ),
            "show_full_review": FeatureProbe('span:has-text("Read More"), .read-more, button:has-text("Read More"), .feedspace-element-read-more-text-span'),
            "show_platform_icon": FeatureProbe(
                'div.feedspace-info-box div.feedspace-element-header-icon > a > img, '
                'div.feedspace-element-header-icon > a > img, a.feedspace-d6-header-icon img'
            ),
            "allow_social_redirection": FeatureProbe(
                'div.feedspace-info-box div.feedspace-element-header-icon, a.feedspace-d6-header-icon, '
                '.feedspace-element-header-icon a'
            ),
            "cta_enabled": FeatureProbe('.feedspace-cta-button-container-d8, .feedspace-cta-button-container-d9, .feedspace-cta-content, .feedspace-inline-cta-card'),
            "allow_to_remove_branding": FeatureProbe(
                'a[title*="Feedspace"], a[href*="utm_source=powered-by-feedspace"], .feedspace-branding',
                mode=ReconcileMode.INVERSE, page_level=True,
            ),
        },
        marquee_row='.feedspace-marque-main-wrap',
    ),

    WidgetVariant.AVATAR_GROUP: VariantSelectors(
        container='.fe-feedspace-avatar-group-widget-wrap, .fe-widget-center',
        detect='.fe-feedspace-avatar-group-widget-wrap, .fe-widget-center',
        card='.fe-avatar-box:not(.fe-avatar-more):not([data-fs-marquee-clone="true"]):not(.cloned)',
        # Checked inside an opened review modal
        features={
            "is_show_ratings": FeatureProbe('.feedspace-stars, .star-rating, .fe-avatar-rating, .fe-star-indicator, div.feedspace-element-review-box > svg'),
            "show_star_ratings": FeatureProbe('.feedspace-stars, .star-rating, .fe-avatar-rating, .fe-star-indicator, div.feedspace-element-review-box > svg'),
            "show_platform_icon": FeatureProbe(
                'img[alt$="logo"], .feedspace-element-header-icon img, .feedspace-element-header-icon, '
                '.fe-social-icon, .fe-social-link img, img[src*="social-icons"]'
            ),
            "allow_to_display_feed_date": FeatureProbe('.feedspace-element-date, .feedspace-wol-date, .feedspace-element-bio-top span', text_required=True),
            "show_full_review": FeatureProbe('i:has-text("Read More"), i:has-text("Read Less"), .feedspace-element-read-more, .read-more'),
            "allow_social_redirection": FeatureProbe('a.social-redirection-button, .fe-social-link, a.feedspace-d6-header-icon, .feedspace-element-header-icon a'),
            "cta_enabled": FeatureProbe('.feedspace-cta-button-container-d9, .fe-cta-container, .feedspace-cta-content'),
            **_branding_probes(),
        },
        video_play='.play-btn, .feedspace-element-play-feed, .feedspace-media-play-icon',
        audio_play='.feedspace-element-audio-icon .play-btn, .feedspace-audio-play-btn',
    ),

    WidgetVariant.AVATAR_SLIDER: VariantSelectors(
        container='.feedspace-single-review-widget, .feedspace-show-left-right-shadow',
        detect='.feedspace-single-review-widget, .feedspace-show-left-right-shadow',
        card='.feedspace-single-review-widget .feedspace-review-item, .feedspace-single-review-widget .feedspace-element-feed-box, .feedspace-single-review-widget .swiper-slide',
        features={
            "is_show_ratings": FeatureProbe('.feedspace-stars, .star-rating, .feedspace-element-rating'),
            "show_full_review": FeatureProbe('.feedspace-element-read-more, .read-more, button:has-text("Read more")'),
            "show_platform_icon": FeatureProbe(PLATFORM_ICON_SELECTOR),
            "allow_social_redirection": FeatureProbe('.social-redirection-button, .feedspace-element-header-icon > a > img'),
            **_branding_probes(),
        },
        next_button='.feedspace-single-review-widget .next-btn, button[aria-label="Next item"], .swiper-button-next, .feedspace-element-slider-arrow.right',
        prev_button='.feedspace-single-review-widget .prev-btn, button[aria-label="Previous item"], .swiper-button-prev, .feedspace-element-slider-arrow.left',
        indicators='.swiper-pagination, .feedspace-element-slider-indicators',
    ),

    WidgetVariant.VERTICAL_SCROLL: VariantSelectors(
        container='.feedspace-element-feed-top-bottom-marquee, .feedspace-top-bottom-shadow',
        detect='.feedspace-element-feed-top-bottom-marquee, .feedspace-top-bottom-shadow',
        card='.feedspace-element-feed-top-bottom-marquee .feedspace-element-feed-box, .feedspace-element-feed-top-bottom-marquee .feedspace-review-item',
        features={
            "is_show_ratings": FeatureProbe('div.feedspace-element-feed-box-inner > div.feedspace-element-review-box > svg, ' + RATINGS_SELECTOR),
            "allow_to_display_feed_date": FeatureProbe(DATE_SELECTOR + ', .feedspace-element-bio-top span', text_required=True),
            "show_full_review": FeatureProbe('.feedspace-element-read-more, .read-more, i:has-text("Read More"), .feedspace-read-more-btn'),
            "show_platform_icon": FeatureProbe(
                'div.feedspace-element-header-icon > a > img, '
                'div.feedspace-element-bio-info > div.feedspace-element-bio-top > div.feedspace-element-header-icon'
            ),
            "allow_social_redirection": FeatureProbe(
                '.social-redirection-button, .fe-social-link, a.feedspace-d6-header-icon, '
                '.feedspace-google-icon, .feedspace-twitter-icon, .feedspace-facebook-icon, .feedspace-element-header-icon a'
            ),
            "cta_enabled": FeatureProbe('.feedspace-cta-content, .feedspace-inline-cta-card, .fe-cta-container, .feedspace-element-cta-card'),
            "allow_to_remove_branding": FeatureProbe('a[title="Capture reviews with Feedspace"]', mode=ReconcileMode.INVERSE, page_level=True),
        },
        video_play='.play-btn, .feedspace-video-review-header .play-btn',
        audio_play='.feedspace-media-play-icon, .feedspace-element-audio-icon',
        marquee_row='.feedspace-element-feed-top-bottom-marquee',
    ),

    WidgetVariant.HORIZONTAL_SCROLL: VariantSelectors(
        container='.feedspace-element-horizontal-scroll-widget, .feedspace-left-right-shadow',
        detect='.feedspace-element-horizontal-scroll-widget, .feedspace-left-right-shadow',
        card=(
            '.feedspace-element-marquee-item .feedspace-element-post-box, '
            '.feedspace-element-marquee-item .feedspace-review-item, '
            '.feedspace-element-marquee-item .feedspace-element-feed-box'
        ),
        features={
            "is_show_ratings": FeatureProbe('.feedspace-video-review-header-star'),
            "allow_to_display_feed_date": FeatureProbe('.feedspace-element-date.feedspace-wol-date', text_required=True),
            "show_full_review": FeatureProbe(READ_MORE_SELECTOR),
            "show_platform_icon": FeatureProbe(PLATFORM_ICON_SELECTOR),
        },
        marquee_row='.feedspace-element-d12-marquee-row',
        cta='.feedspace-cta-content, .feedspace-inline-cta-card, .feedspace-cta-button-container-d9',
    ),

    WidgetVariant.FLOATING_CARDS: VariantSelectors(
        container='.feedspace-floating-widget.show-left-bottom, .feedspace-floating-widget',
        detect='.feedspace-floating-widget.show-left-bottom.close-active, .feedspace-floating-widget',
        card='.feedspace-floating-widget .feedspace-element-feed-box, .feedspace-floating-widget .feedspace-review-item, .feedspace-floating-widget .feedspace-floating-card',
        features={
            "is_show_ratings": FeatureProbe(
                '.feedspace-floating-widget div.feedspace-card-body > div.feedspace-stars > svg, '
                '.feedspace-floating-widget .feedspace-element-feed-box-inner > div.feedspace-element-review-box > svg'
            ),
            "allow_to_display_feed_date": FeatureProbe('.feedspace-floating-widget .feedspace-element-date', text_required=True),
            "show_full_review": FeatureProbe(
                '.feedspace-floating-widget span:has-text("Read More"), '
                '.feedspace-floating-widget .feedspace-read-less-btn.feedspace-element-read-more'
            ),
            "show_platform_icon": FeatureProbe('.feedspace-floating-widget div.feedspace-element-header-icon > a > img'),
            "allow_social_redirection": FeatureProbe('.feedspace-floating-widget .feedspace-element-header-icon a'),
            "cta_enabled": FeatureProbe('.feedspace-floating-widget .feedspace-cta-button-container-d13'),
        },
        cta='.feedspace-cta-button-container-d13, .feedspace-cta-content',
    ),
}

# Fallback table for an UNKNOWN variant bound through a type hint
GENERIC_SELECTORS = VariantSelectors(
    container='.feedspace-embed-main, .feedspace-element-container',
    card='.feedspace-review-item, .feedspace-element-feed-box',
    features=_branding_probes(),
)


def get_variant_selectors(variant: WidgetVariant) -> VariantSelectors:
    """Get the selector table for a variant (generic table for UNKNOWN)"""
    return WIDGET_SELECTORS.get(variant, GENERIC_SELECTORS)


def get_feature_probe(variant: WidgetVariant, feature: str) -> Optional[FeatureProbe]:
    """Get the DOM probe for one configuration flag of a variant"""
    return get_variant_selectors(variant).features.get(feature)


def card_ancestor_xpath(classes: Tuple[str, ...] = CARD_ANCESTOR_CLASSES) -> str:
    """XPath selecting the nearest review-card ancestor of an element"""
    conditions = " or ".join(f'contains(@class, "{cls}")' for cls in classes)
    return f"xpath=./ancestor::*[{conditions}][1]"


def css_only(selector: str) -> str:
    """
    Drop the Playwright-only alternatives (``:has-text``, ``:text``) from a
    selector list so it can be handed to ``querySelector`` inside the page.
    """
    parts, depth, current, quote = [], 0, "", ""
    for ch in selector:
        if quote:
            quote = "" if ch == quote else quote
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
            continue
        current += ch
    parts.append(current.strip())
    kept = [p for p in parts if p and ":has-text(" not in p and ":text(" not in p]
    return ", ".join(kept)
