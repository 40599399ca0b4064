"""
Unit tests for key categorization
"""

import pytest

from hotkey_tracker.core.categories import (
    MEDIUM_KEYS,
    NORMAL_KEYS,
    SUSPICIOUS_KEYS,
    CategoryFilter,
    KeyCategory,
    categorize,
)

pytestmark = pytest.mark.unit


class TestCategorize:

    @pytest.mark.parametrize("label", ["A", "z", "0", "9", "MOUSE1", "space", "Enter", "LSHIFT"])
    def test_normal_keys(self, label):
        assert categorize(label) is KeyCategory.NORMAL

    @pytest.mark.parametrize("label", ["F1", "f5", "F12", "KP_0", "kp_enter", "LALT", "ralt"])
    def test_medium_keys(self, label):
        assert categorize(label) is KeyCategory.MEDIUM

    @pytest.mark.parametrize("label", ["TAB", "tab", "RSHIFT", "LCTRL", "INSERT", "MWHEELUP", "NUMLOCK"])
    def test_suspicious_keys(self, label):
        assert categorize(label) is KeyCategory.SUSPICIOUS

    @pytest.mark.parametrize("label", ["", "F13", "KP_10", "???", "mouse9", "AA", "Ä"])
    def test_unknown_labels_are_suspicious(self, label):
        assert categorize(label) is KeyCategory.SUSPICIOUS

    def test_presence_is_never_produced(self):
        labels = list(NORMAL_KEYS | MEDIUM_KEYS | SUSPICIOUS_KEYS) + ["unknown"]
        assert all(categorize(label) is not KeyCategory.PRESENCE for label in labels)

    def test_sets_are_disjoint(self):
        assert not NORMAL_KEYS & MEDIUM_KEYS
        assert not NORMAL_KEYS & SUSPICIOUS_KEYS
        assert not MEDIUM_KEYS & SUSPICIOUS_KEYS

    def test_sets_are_immutable(self):
        assert isinstance(NORMAL_KEYS, frozenset)
        assert isinstance(MEDIUM_KEYS, frozenset)
        assert isinstance(SUSPICIOUS_KEYS, frozenset)

    def test_set_sizes(self):
        assert len(NORMAL_KEYS) == 26 + 10 + 6
        assert len(MEDIUM_KEYS) == 10 + 6 + 2 + 12


class TestCategoryFilter:

    def test_all_selects_everything(self):
        assert CategoryFilter.ALL.to_category() is None

    @pytest.mark.parametrize("value", ["Normal", "Medium", "Suspicious"])
    def test_tier_filters_map_to_categories(self, value):
        assert CategoryFilter(value).to_category() is KeyCategory(value)
