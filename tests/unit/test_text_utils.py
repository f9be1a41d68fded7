"""텍스트 유틸리티 유닛 테스트"""
import pytest
from src.utils.text_utils import (
    blocked_keys,
    clean_terms,
    contains_any,
    language_matches,
    looks_latin,
    matches_channel,
    matching_term,
    normalize_block_list,
    normalize_channel_key,
    parse_block_entry,
    slugify,
)


class TestTermMatching:
    """NOT-term 매칭 테스트"""

    def test_case_insensitive(self):
        assert contains_any("intro shorts demo", ["SHORTS"])
        assert matching_term("intro shorts demo", ["unboxing", "Shorts"]) == "Shorts"

    def test_empty_needles(self):
        assert not contains_any("anything", [])
        assert not contains_any("anything", ["", "  "])
        assert matching_term("anything", []) is None

    def test_clean_terms_keeps_order(self):
        assert clean_terms([" b ", "", "a", "   "]) == ["b", "a"]


class TestChannelMatching:
    """채널 패턴 매칭 테스트"""

    def test_exact_channel_id(self):
        assert matches_channel("UCabc123", "Some Title", ["ucabc123"])

    def test_handle_prefix_stripped(self):
        assert normalize_channel_key("  @FixIt ") == "fixit"
        assert matches_channel("UCx", "FixIt", ["@fixit"])

    def test_title_substring(self):
        assert matches_channel("UCx", "The Repair Channel", ["repair"])

    def test_no_patterns_never_match(self):
        assert not matches_channel("UCx", "Anything", [])
        assert not matches_channel("UCx", "Anything", ["", "@"])


class TestLanguageHeuristic:
    """제목 기반 언어 추정"""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("full repair guide: hinge swap!", True),
            ("", True),
            ("полное руководство", False),
            ("수리 가이드", False),
            ("아이폰 15 수리", False),
        ],
    )
    def test_looks_latin(self, title, expected):
        assert looks_latin(title) is expected

    def test_language_prefix(self):
        assert language_matches("en-US", "en")
        assert language_matches("EN", "en")
        assert not language_matches("es", "en")
        assert not language_matches(None, "en")


class TestBlockList:
    """차단 목록 파싱/정규화"""

    def test_parse_key_label(self):
        assert parse_block_entry("@Spam|Spam Channel") == ("spam", "Spam Channel")

    def test_parse_label_only(self):
        assert parse_block_entry("  Spam Channel ") == ("spam channel", "Spam Channel")

    def test_parse_empty(self):
        assert parse_block_entry("   ") == ("", "")

    def test_normalize_dedupes_and_sorts(self):
        entries = ["zeta", "@Alpha|Alpha TV", "alpha|duplicate", ""]
        assert normalize_block_list(entries) == ["alpha|Alpha TV", "zeta|zeta"]

    def test_normalize_is_idempotent(self):
        once = normalize_block_list(["@B|Bee", "a"])
        assert normalize_block_list(once) == once

    def test_blocked_keys(self):
        assert blocked_keys(["@Spam|Spam", "", "Other"]) == ["spam", "other"]


class TestSlugify:
    def test_basic(self):
        assert slugify("Home Lab: Proxmox!") == "home-lab-proxmox"

    def test_fallback(self):
        assert slugify("!!!") == "preset"
