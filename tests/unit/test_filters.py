"""FilterEngine 유닛 테스트"""

import pytest

from src.engine.filters import FilterEngine, FilterRule
from src.schemas.search_schema import DurationBucket, GlobalDefaults, QuerySpec
from tests.conftest import make_item, make_preset


@pytest.fixture
def engine():
    return FilterEngine()


class TestDurationRule:
    """최소 길이 + 길이 구간"""

    def test_minimum_duration_from_defaults(self, engine):
        defaults = GlobalDefaults(min_duration_secs=180)
        preset = make_preset("repair")

        assert engine.keeps(make_item("a", duration_secs=180), preset, defaults)
        decision = engine.decide(make_item("b", duration_secs=179), preset, defaults)
        assert not decision.keep
        assert decision.first_rule is FilterRule.DURATION

    def test_preset_override_wins(self, engine):
        defaults = GlobalDefaults(min_duration_secs=600)
        preset = make_preset("repair", min_duration_override=60)
        assert engine.keeps(make_item("a", duration_secs=90), preset, defaults)

    def test_zero_duration_dropped_when_minimum_set(self, engine):
        defaults = GlobalDefaults(min_duration_secs=75)
        assert not engine.keeps(make_item("live", duration_secs=0), make_preset("p"), defaults)

    def test_active_bucket_restricts(self, engine):
        defaults = GlobalDefaults(
            min_duration_secs=0,
            duration_buckets=[
                DurationBucket(id="short", min_secs=0, max_secs=240),
                DurationBucket(id="long", min_secs=1200),
            ],
            active_duration_bucket_ids=["short"],
        )
        preset = make_preset("p")
        assert engine.keeps(make_item("a", duration_secs=200), preset, defaults)
        assert not engine.keeps(make_item("b", duration_secs=600), preset, defaults)

    def test_catch_all_bucket_keeps_everything(self, engine):
        defaults = GlobalDefaults(
            min_duration_secs=0,
            duration_buckets=[DurationBucket(id="any", min_secs=0), DurationBucket(id="short", max_secs=240)],
            active_duration_bucket_ids=["any"],
        )
        assert engine.keeps(make_item("a", duration_secs=5000), make_preset("p"), defaults)


class TestLanguageRule:
    """선언 언어 / 제목 휴리스틱"""

    def test_declared_language_prefix_match(self, engine, defaults):
        item = make_item("a", title="Руководство", language="en-US")
        assert engine.keeps(item, make_preset("p"), defaults)

    def test_non_latin_title_without_declared_language_dropped(self, engine, defaults):
        item = make_item("a", title="Полное руководство по ремонту", language=None)
        decision = engine.decide(item, make_preset("p"), defaults)
        assert decision.first_rule is FilterRule.LANGUAGE

    def test_latin_title_passes_for_english(self, engine, defaults):
        item = make_item("a", title="Full Repair Guide", language=None)
        assert engine.keeps(item, make_preset("p"), defaults)

    def test_title_heuristic_not_used_for_non_latin_target(self, engine):
        defaults = GlobalDefaults(min_duration_secs=0, language_code="ko")
        item = make_item("a", title="Full Repair Guide", language=None)
        assert not engine.keeps(item, make_preset("p"), defaults)

    def test_other_declared_language_with_latin_title_kept(self, engine, defaults):
        item = make_item("a", title="Guia completo", language="pt-BR")
        # 선언 언어가 달라도 제목 휴리스틱으로 통과
        assert engine.keeps(item, make_preset("p"), defaults)

    def test_language_not_required(self, engine, defaults):
        item = make_item("a", title="完全修理ガイド", language="ja")
        preset = make_preset("p", require_language_override=False)
        assert engine.keeps(item, preset, defaults)


class TestTermRule:
    """NOT-term 제외"""

    def test_excluded_term_case_insensitive(self, engine):
        defaults = GlobalDefaults(min_duration_secs=180)
        preset = make_preset("repair", query=QuerySpec(q="repair", not_terms=["shorts"]))

        dropped = engine.decide(make_item("a", title="Intro Shorts Demo"), preset, defaults)
        kept = engine.decide(make_item("b", title="Full Repair Guide"), preset, defaults)

        assert not dropped.keep
        assert dropped.first_rule is FilterRule.TERM_EXCLUSION
        assert "shorts" in dropped.reasons[0]
        assert kept.keep

    def test_blank_terms_ignored(self, engine, defaults):
        preset = make_preset("p", query=QuerySpec(q="repair", not_terms=["", "   "]))
        assert engine.keeps(make_item("a"), preset, defaults)


class TestChannelRules:
    """allow는 비어 있으면 제한 없음, deny/block은 매칭되면 탈락"""

    def test_empty_allow_means_unrestricted(self, engine, defaults):
        assert engine.keeps(make_item("a", channel_title="Anyone"), make_preset("p"), defaults)

    def test_allow_list_match_by_handle_pattern(self, engine, defaults):
        preset = make_preset("p", query=QuerySpec(q="x", channel_allow=["@fixit"]))
        assert engine.keeps(make_item("a", channel_title="Fixit"), preset, defaults)
        decision = engine.decide(make_item("b", channel_id="UCother", channel_title="Other"), preset, defaults)
        assert decision.first_rule is FilterRule.CHANNEL_ALLOW

    def test_deny_substring_match(self, engine, defaults):
        preset = make_preset("p", query=QuerySpec(q="x", channel_deny=["spam"]))
        decision = engine.decide(make_item("a", channel_title="Spam Central"), preset, defaults)
        assert decision.first_rule is FilterRule.CHANNEL_DENY

    def test_global_block_list_by_channel_id(self, engine):
        defaults = GlobalDefaults(min_duration_secs=0, blocked_channels=["UCblock|Blocked Channel"])
        item = make_item("a", channel_id="UCblock", channel_title="Totally Fine")
        assert not engine.keeps(item, make_preset("p"), defaults)

    def test_deny_checked_before_allow(self, engine, defaults):
        preset = make_preset("p", query=QuerySpec(q="x", channel_allow=["fixit"], channel_deny=["fixit"]))
        decision = engine.decide(make_item("a"), preset, defaults)
        assert decision.first_rule is FilterRule.CHANNEL_DENY


class TestDiagnostics:
    def test_stops_at_first_failure(self, engine):
        defaults = GlobalDefaults(min_duration_secs=300)
        preset = make_preset("p", query=QuerySpec(q="x", not_terms=["shorts"]))
        decision = engine.decide(make_item("a", title="shorts", duration_secs=10), preset, defaults)
        assert decision.failed_rules == [FilterRule.DURATION]

    def test_full_diagnostics_collects_all(self, engine):
        defaults = GlobalDefaults(min_duration_secs=300)
        preset = make_preset("p", query=QuerySpec(q="x", not_terms=["shorts"]))
        decision = engine.decide(
            make_item("a", title="shorts", duration_secs=10), preset, defaults, full_diagnostics=True
        )
        assert decision.failed_rules == [FilterRule.DURATION, FilterRule.TERM_EXCLUSION]
        assert len(decision.reasons) == 2

    def test_decision_is_deterministic(self, engine, defaults):
        item = make_item("a")
        preset = make_preset("p")
        assert engine.decide(item, preset, defaults) == engine.decide(item, preset, defaults)
