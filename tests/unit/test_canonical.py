"""Unit tests for string normalization."""

from __future__ import annotations

import pytest

from panelcalc.canonical.normalize import normalize_string
from panelcalc.config import MatchingConfig


class TestNormalizeString:
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values_normalize_to_empty_string(self, value, matching_config):
        assert normalize_string(value, matching_config) == ""

    def test_trims_collapses_and_lowercases(self, matching_config):
        assert normalize_string("  ABC   123\t-X ", matching_config) == "abc 123 -x"

    def test_whitespace_only_becomes_empty(self, matching_config):
        assert normalize_string("   ", matching_config) == ""

    def test_case_kept_when_disabled(self):
        config = MatchingConfig(normalize_case=False)
        assert normalize_string("  Abc  12 ", config) == "Abc 12"

    def test_whitespace_kept_when_disabled(self):
        config = MatchingConfig(normalize_whitespace=False)
        assert normalize_string(" Abc  12 ", config) == " abc  12 "

    def test_is_idempotent(self, matching_config):
        once = normalize_string(" PS-24   10 ", matching_config)
        assert normalize_string(once, matching_config) == once

    def test_numbers_are_stringified(self, matching_config):
        assert normalize_string(12345, matching_config) == "12345"
