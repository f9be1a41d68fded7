"""Pydantic 스키마 테스트."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.schemas.search_schema import (
    DurationBucket,
    FetchedItem,
    GlobalDefaults,
    Preset,
    Prefs,
    QuerySpec,
    RunMode,
    RunRequest,
    RunStats,
    TimeWindow,
    TimeWindowPreset,
    WindowSpec,
)


def test_custom_window_requires_range():
    """custom 시간 범위 검증."""
    with pytest.raises(ValidationError):
        WindowSpec(preset=TimeWindowPreset.CUSTOM)

    start = datetime(2026, 2, 1, tzinfo=timezone.utc)
    with pytest.raises(ValidationError):
        WindowSpec.custom(start, start - timedelta(days=1))


def test_naive_datetimes_become_utc():
    window = TimeWindow(start=datetime(2026, 1, 1), end=None)
    assert window.start.tzinfo is timezone.utc
    assert window.contains(datetime(2026, 6, 1, tzinfo=timezone.utc))
    assert not window.contains(datetime(2025, 12, 31, tzinfo=timezone.utc))


def test_duration_bucket_range():
    with pytest.raises(ValidationError):
        DurationBucket(id="bad", min_secs=300, max_secs=300)

    bucket = DurationBucket(id="medium", min_secs=240, max_secs=1200)
    assert bucket.contains(240)
    assert not bucket.contains(1200)
    assert DurationBucket(id="any").is_catch_all


class TestGlobalDefaults:
    """전역 기본값 검증."""

    BUCKETS = [
        {"id": "any", "min_secs": 0},
        {"id": "short", "max_secs": 240},
        {"id": "long", "min_secs": 1200, "default_selected": True},
    ]

    def test_region_code_normalized(self):
        assert GlobalDefaults(region_code=" us ").region_code == "US"
        assert GlobalDefaults(region_code="none").region_code is None
        with pytest.raises(ValidationError):
            GlobalDefaults(region_code="USA")

    def test_language_code_lowercased(self):
        assert GlobalDefaults(language_code=" EN ").language_code == "en"

    def test_default_selected_bucket_chosen(self):
        defaults = GlobalDefaults(duration_buckets=self.BUCKETS)
        assert defaults.active_duration_bucket_ids == ["long"]

    def test_catch_all_chosen_without_default_selected(self):
        buckets = [{"id": "short", "max_secs": 240}, {"id": "any", "min_secs": 0}]
        assert GlobalDefaults(duration_buckets=buckets).active_duration_bucket_ids == ["any"]

    def test_first_bucket_as_last_resort(self):
        buckets = [{"id": "short", "max_secs": 240}, {"id": "long", "min_secs": 1200}]
        assert GlobalDefaults(duration_buckets=buckets).active_duration_bucket_ids == ["short"]

    def test_unknown_active_ids_dropped(self):
        defaults = GlobalDefaults(duration_buckets=self.BUCKETS, active_duration_bucket_ids=["gone", "short"])
        assert defaults.active_duration_bucket_ids == ["short"]
        assert [b.id for b in defaults.active_buckets()] == ["short"]

    def test_no_buckets_means_no_selection(self):
        assert GlobalDefaults().active_buckets() == []


class TestPreset:
    """프리셋 override 해석."""

    def test_overrides_fall_back_to_defaults(self):
        defaults = GlobalDefaults(require_language=True, require_captions=False, min_duration_secs=75)
        preset = Preset(id="p")

        assert preset.effective_window(defaults) == defaults.default_window
        assert preset.effective_require_language(defaults) is True
        assert preset.effective_require_captions(defaults) is False
        assert preset.effective_min_duration(defaults) == 75

    def test_overrides_win(self):
        defaults = GlobalDefaults()
        preset = Preset(
            id="p",
            window_override=WindowSpec(preset=TimeWindowPreset.ANY),
            require_language_override=False,
            require_captions_override=True,
            min_duration_override=0,
        )

        assert preset.effective_window(defaults).preset is TimeWindowPreset.ANY
        assert preset.effective_require_language(defaults) is False
        assert preset.effective_require_captions(defaults) is True
        assert preset.effective_min_duration(defaults) == 0

    def test_blank_id_rejected(self):
        with pytest.raises(ValidationError):
            Preset(id="   ")

    def test_label_falls_back_to_id(self):
        assert Preset(id="p", name="  ").label == "p"
        assert Preset(id="p", name="Repair").label == "Repair"

    def test_presets_are_immutable(self):
        preset = Preset(id="p", query=QuerySpec(q="repair"))
        with pytest.raises(ValidationError):
            preset.enabled = False


def test_prefs_accepts_single_api_key():
    prefs = Prefs.model_validate({"api_key": " legacy ", "api_keys": ["k1"]})
    assert prefs.api_keys == ["legacy", "k1"]


def test_fetched_item_derived_fields():
    item = FetchedItem(id="abc", title="Full REPAIR Guide", published_at="2026-10-16T08:30:00Z")
    assert item.title_lower == "full repair guide"
    assert item.url == "https://www.youtube.com/watch?v=abc"
    assert item.published_at.tzinfo is not None


def test_channel_sort_key_prefers_display_name():
    base = dict(id="a", title="t", published_at="2026-10-16T08:30:00Z")
    assert FetchedItem(**base, channel_title="Title", channel_display_name="Display").channel_sort_key == "display"
    assert FetchedItem(**base, channel_title="Title").channel_sort_key == "title"
    assert FetchedItem(**base, channel_id="UCx").channel_sort_key == "ucx"


def test_run_mode_validation():
    with pytest.raises(ValidationError):
        RunMode(kind="single")
    with pytest.raises(ValidationError):
        RunMode(kind="any", preset_id="p")
    assert str(RunMode.single("p")) == "single:p"
    assert str(RunMode.any()) == "any"


def test_run_request_page_budget_bounds():
    with pytest.raises(ValidationError):
        RunRequest(page_budget=11)
    assert "k1" not in RunRequest(credentials=["k1"]).model_dump_json()


def test_run_stats_summary():
    stats = RunStats(presets_ran=2, pages_fetched=3, raw=10, unique=8, passed=5, kept=5,
                     duplicates_within_presets=1, duplicates_across_presets=1)
    assert stats.summary() == "presets: 2 pages: 3 raw: 10 unique: 8 passed: 5 kept: 5 duplicates: 2"
