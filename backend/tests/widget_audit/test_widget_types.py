"""
Tests for the widget type registry and the selector catalog.
"""

import pytest

from widget_audit.knowledge.selector_catalog import (
    GENERIC_SELECTORS,
    WIDGET_SELECTORS,
    READ_MORE_SELECTOR,
    ReconcileMode,
    css_only,
    get_feature_probe,
    get_variant_selectors,
)
from widget_audit.knowledge.widget_types import (
    WIDGET_TYPE_IDS,
    WidgetVariant,
    normalize_type_name,
    resolve,
    resolve_entry,
)


class TestResolve:
    """Test id and name resolution"""

    def test_every_id_round_trips(self):
        """Test resolve(variant.type_id) returns the variant for ids 4-11"""
        for type_id, variant in WIDGET_TYPE_IDS.items():
            assert resolve(type_id) is variant
            assert resolve(str(type_id)) is variant
            assert variant.type_id == type_id

    def test_names_ignore_case_and_separators(self):
        """Test names resolve in any case with or without underscores"""
        assert resolve("carousel") is WidgetVariant.CAROUSEL
        assert resolve("AVATAR_GROUP") is WidgetVariant.AVATAR_GROUP
        assert resolve("vertical-scroll") is WidgetVariant.VERTICAL_SCROLL
        assert resolve(" Floating Cards ") is WidgetVariant.FLOATING_CARDS

    def test_api_constant_aliases(self):
        """Test API constant names resolve to variants"""
        assert resolve("CAROUSEL_SLIDER") is WidgetVariant.CAROUSEL
        assert resolve("MARQUEE_STRIPE") is WidgetVariant.STRIP_SLIDER
        assert resolve("SINGLE_SLIDER") is WidgetVariant.AVATAR_SLIDER
        assert resolve("MARQUEE_UPDOWN") is WidgetVariant.VERTICAL_SCROLL
        assert resolve("MARQUEE_LEFTRIGHT") is WidgetVariant.HORIZONTAL_SCROLL
        assert resolve("FLOATING_TOAST") is WidgetVariant.FLOATING_CARDS

    def test_unknown_values(self):
        """Test unrecognized values map to UNKNOWN"""
        assert resolve(None) is WidgetVariant.UNKNOWN
        assert resolve(3) is WidgetVariant.UNKNOWN
        assert resolve(12) is WidgetVariant.UNKNOWN
        assert resolve("spiral") is WidgetVariant.UNKNOWN
        assert resolve(True) is WidgetVariant.UNKNOWN
        assert WidgetVariant.UNKNOWN.type_id is None

    def test_numeric_id_wins_over_string_hint(self):
        """Test a recognized numeric id beats a disagreeing name"""
        assert resolve(5, "Carousel") is WidgetVariant.MASONRY
        assert resolve("7", "masonry") is WidgetVariant.AVATAR_GROUP

    def test_hint_used_when_id_unrecognized(self):
        """Test the hint resolves when the id does not"""
        assert resolve(None, "masonry") is WidgetVariant.MASONRY
        assert resolve(99, "avatar_slider") is WidgetVariant.AVATAR_SLIDER

    def test_numeric_hint_wins_over_name(self):
        """Test a numeric hint beats a string primary"""
        assert resolve("carousel", 5) is WidgetVariant.MASONRY

    def test_normalize_type_name(self):
        """Test separator stripping"""
        assert normalize_type_name("Horizontal_Scroll") == "horizontalscroll"
        assert normalize_type_name("strip - slider") == "stripslider"


class TestResolveEntry:
    """Test variant resolution from widget list entries"""

    def test_entry_with_id_and_type(self):
        """Test widget_type_id wins over type"""
        assert resolve_entry({"widget_type_id": 11, "type": "carousel"}) is WidgetVariant.FLOATING_CARDS

    def test_entry_with_name_only(self):
        """Test widget_type names are used when there is no id"""
        assert resolve_entry({"widget_type": "AvatarGroup"}) is WidgetVariant.AVATAR_GROUP

    def test_empty_entry(self):
        """Test an empty entry is UNKNOWN"""
        assert resolve_entry({}) is WidgetVariant.UNKNOWN
        assert resolve_entry(None) is WidgetVariant.UNKNOWN


class TestSelectorCatalog:
    """Test catalog completeness and lookups"""

    def test_every_variant_has_selectors(self):
        """Test each known variant has a container and card selector"""
        for variant in WidgetVariant:
            if variant is WidgetVariant.UNKNOWN:
                continue
            selectors = WIDGET_SELECTORS[variant]
            assert selectors.container
            assert selectors.card

    def test_unknown_falls_back_to_generic(self):
        """Test UNKNOWN gets the generic selector set"""
        assert get_variant_selectors(WidgetVariant.UNKNOWN) is GENERIC_SELECTORS

    def test_masonry_is_not_selector_detected(self):
        """Test the bare Masonry container is excluded from selector detection"""
        assert WIDGET_SELECTORS[WidgetVariant.MASONRY].detect is None
        assert WIDGET_SELECTORS[WidgetVariant.CAROUSEL].detect

    def test_branding_is_inverse(self):
        """Test branding removal flags reconcile inversely"""
        probe = get_feature_probe(WidgetVariant.CAROUSEL, "allow_to_remove_branding")
        assert probe is not None
        assert probe.mode is ReconcileMode.INVERSE
        assert probe.page_level

    def test_navigation_controls_only_where_applicable(self):
        """Test arrows exist for the carousel and load more for masonry"""
        assert WIDGET_SELECTORS[WidgetVariant.CAROUSEL].next_button
        assert WIDGET_SELECTORS[WidgetVariant.MASONRY].load_more
        assert not WIDGET_SELECTORS[WidgetVariant.AVATAR_GROUP].load_more

    @pytest.mark.parametrize("variant", [WidgetVariant.STRIP_SLIDER, WidgetVariant.HORIZONTAL_SCROLL])
    def test_marquee_variants_have_rows(self, variant):
        """Test marquee variants define a row selector"""
        assert WIDGET_SELECTORS[variant].marquee_row

    def test_css_only_drops_text_pseudo_classes(self):
        """Test Playwright text matchers are removed and plain CSS is kept intact"""
        selector = css_only(READ_MORE_SELECTOR)

        assert ":has-text(" not in selector
        assert selector.startswith(".feedspace-element-read-more:not(.feedspace-element-read-more-open), ")
        assert ".read-more" in selector.split(", ")
        assert css_only('a[title="x, y"], b:text("Go")') == 'a[title="x, y"]'
        assert css_only('span:has-text("Read more")') == ""
