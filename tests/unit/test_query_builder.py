"""Query Builder 유닛 테스트"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.exceptions import InvalidPresetException
from src.engine.query_builder import (
    build_query_text,
    build_search_params,
    describe_params,
    format_query_token,
    format_rfc3339,
    resolve_window,
)
from src.schemas.search_schema import (
    GlobalDefaults,
    QuerySpec,
    TimeWindow,
    TimeWindowPreset,
    WindowSpec,
)
from tests.conftest import NOW, make_preset


class TestResolveWindow:
    @pytest.mark.parametrize(
        "preset,delta",
        [
            (TimeWindowPreset.TODAY, timedelta(days=1)),
            (TimeWindowPreset.H48, timedelta(hours=48)),
            (TimeWindowPreset.D7, timedelta(days=7)),
            (TimeWindowPreset.D30, timedelta(days=30)),
        ],
    )
    def test_relative_windows(self, preset, delta):
        window = resolve_window(WindowSpec(preset=preset), NOW)
        assert window.start == NOW - delta
        assert window.end == NOW

    def test_any_is_unbounded(self):
        assert resolve_window(WindowSpec(preset=TimeWindowPreset.ANY), NOW).is_unbounded

    def test_custom_uses_absolute_range(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        end = datetime(2026, 2, 1, tzinfo=timezone.utc)
        window = resolve_window(WindowSpec.custom(start, end), NOW)
        assert (window.start, window.end) == (start, end)

    def test_naive_now_treated_as_utc(self):
        window = resolve_window(WindowSpec(preset=TimeWindowPreset.TODAY), datetime(2026, 10, 17, 12, 0))
        assert window.end == NOW


class TestQueryText:
    def test_combines_terms_in_fixed_order(self):
        preset = make_preset(
            "p",
            query=QuerySpec(q="repair", any_terms=["guide", "how to"], all_terms=["laptop"], not_terms=["shorts"]),
        )
        assert build_query_text(preset) == 'repair (guide OR "how to") laptop -shorts'

    def test_quotes_are_escaped(self):
        assert format_query_token('say "hi"') == '"say \\"hi\\""'

    def test_blank_terms_skipped(self):
        preset = make_preset("p", query=QuerySpec(any_terms=["", "  "], all_terms=["physics"]))
        assert build_query_text(preset) == "physics"


class TestSearchParams:
    def test_parameter_order(self):
        defaults = GlobalDefaults(region_code="US", require_captions=True, min_duration_secs=0)
        preset = make_preset("p", query=QuerySpec(q="repair", category_id=28))
        window = TimeWindow(start=NOW - timedelta(days=7), end=NOW)

        params = build_search_params(preset, defaults, window, page_size=25)

        assert [name for name, _ in params] == [
            "type",
            "q",
            "videoCategoryId",
            "regionCode",
            "videoCaption",
            "publishedAfter",
            "publishedBefore",
            "order",
            "maxResults",
        ]
        assert dict(params)["publishedBefore"] == "2026-10-17T12:00:00Z"
        assert dict(params)["videoCaption"] == "closedCaption"
        assert dict(params)["maxResults"] == "25"

    def test_long_hint_only_for_twenty_minutes_or_more(self):
        defaults = GlobalDefaults(min_duration_secs=0)
        window = TimeWindow()

        short = dict(build_search_params(make_preset("p", min_duration_override=600), defaults, window))
        long = dict(build_search_params(make_preset("p", min_duration_override=1200), defaults, window))

        assert "videoDuration" not in short
        assert long["videoDuration"] == "long"

    def test_unbounded_window_and_no_region(self):
        defaults = GlobalDefaults(region_code=None)
        params = dict(build_search_params(make_preset("p"), defaults, TimeWindow()))
        assert "regionCode" not in params
        assert "publishedAfter" not in params
        assert "publishedBefore" not in params

    def test_empty_query_is_invalid(self):
        preset = make_preset("empty", query=QuerySpec(not_terms=[]))
        with pytest.raises(InvalidPresetException) as exc_info:
            build_search_params(preset, GlobalDefaults(), TimeWindow())
        assert exc_info.value.preset_id == "empty"

    def test_describe_params_with_token(self):
        text = describe_params([("type", "video"), ("q", "repair")], page_token="CAUQAA")
        assert text == "type=video q=repair pageToken=CAUQAA"

    def test_rfc3339_converts_to_utc(self):
        moment = datetime(2026, 10, 17, 21, 0, tzinfo=timezone(timedelta(hours=9)))
        assert format_rfc3339(moment) == "2026-10-17T12:00:00Z"
