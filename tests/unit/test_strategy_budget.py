"""RetryStrategy / PageBudget 유닛 테스트"""

import pytest

from src.core.exceptions import (
    CredentialRejectedException,
    MalformedResponseException,
    TransientNetworkException,
)
from src.engine.budget import BudgetConfig, PageBudget
from src.engine.strategy import ErrorKind, RetryConfig, RetryStrategy


class TestRetryStrategy:
    """오류 분류 + 백오프"""

    def test_classify(self):
        assert RetryStrategy.classify(CredentialRejectedException("quotaExceeded")) is ErrorKind.CREDENTIAL
        assert RetryStrategy.classify(TransientNetworkException("search.list", "timeout")) is ErrorKind.TRANSIENT
        assert RetryStrategy.classify(MalformedResponseException("videos.list", "bad")) is ErrorKind.MALFORMED
        assert RetryStrategy.classify(RuntimeError("boom")) is None

    def test_only_transient_errors_retry(self):
        strategy = RetryStrategy(RetryConfig(max_attempts=3))
        transient = TransientNetworkException("search.list", "timeout")

        assert strategy.should_retry(transient, 1)
        assert strategy.should_retry(transient, 2)
        assert not strategy.should_retry(transient, 3)
        assert not strategy.should_retry(CredentialRejectedException("keyInvalid"), 1)
        assert not strategy.should_retry(MalformedResponseException("search.list", "bad"), 1)

    def test_backoff_doubles_and_caps(self):
        strategy = RetryStrategy(RetryConfig(base_delay=0.25, max_delay=1.0, jitter_ratio=0.2), rng=lambda: 0.0)
        assert [strategy.backoff_delay(n) for n in (1, 2, 3, 4)] == [0.25, 0.5, 1.0, 1.0]

    def test_backoff_jitter(self):
        strategy = RetryStrategy(RetryConfig(base_delay=0.25, max_delay=1.0, jitter_ratio=0.2), rng=lambda: 1.0)
        assert strategy.backoff_delay(1) == pytest.approx(0.3)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay": -1.0},
            {"base_delay": 2.0, "max_delay": 1.0},
        ],
    )
    def test_invalid_config(self, kwargs):
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)


class TestPageBudget:
    """페이지 예산"""

    @pytest.mark.parametrize("pages", [0, 11])
    def test_page_limit_bounds(self, pages):
        with pytest.raises(ValueError):
            BudgetConfig(max_pages=pages)

    def test_from_settings_override(self):
        assert BudgetConfig.from_settings(5).max_pages == 5

    def test_consumes_pages_until_exhausted(self):
        budget = PageBudget(BudgetConfig(max_pages=2))
        budget.start()

        assert budget.can_fetch_page()
        budget.record_page()
        budget.record_page()

        assert budget.is_exhausted()
        assert budget.remaining_pages() == 0
        with pytest.raises(RuntimeError):
            budget.record_page()

    def test_checkpoint_requires_start(self):
        budget = PageBudget()
        with pytest.raises(RuntimeError):
            budget.checkpoint("search_done")
        assert budget.elapsed() == 0.0

    def test_report(self):
        budget = PageBudget(BudgetConfig(max_pages=3))
        budget.start()
        budget.record_page()
        budget.checkpoint("search_done")

        report = budget.get_report()
        assert report["max_pages"] == 3
        assert report["pages_used"] == 1
        assert report["remaining_pages"] == 2
        assert "search_done" in report["checkpoints"]
        assert report["is_exhausted"] is False
