"""Engine Layer - Search Orchestration and Filter/Merge Pipeline

This module provides the core engine layer, implementing:
- SearchOrchestrator: Main entry point for a search run
- PaginatedFetcher: Per-preset search + detail resolution
- FilterEngine: Client-side post filters
- CredentialPool: Per-run API key fallback
- PageBudget: Pagination budget per preset
- RetryStrategy: Error classification and backoff
- ResultCache: Signature cache + last-run snapshot
"""

from .budget import BudgetConfig, PageBudget
from .credentials import CredentialPool
from .filters import FilterDecision, FilterEngine, FilterRule
from .merge import MergeReport, apply_cap, merge_outcomes, sort_items
from .query_builder import build_query_text, build_search_params, format_query_token, resolve_window
from .result import PresetOutcome, PresetStatus
from .strategy import ErrorKind, RetryConfig, RetryStrategy
from .cache_adapter import ResultCache
from .fetcher import PaginatedFetcher
from .orchestrator import SearchOrchestrator, compute_signature, select_presets

__all__ = [
    "SearchOrchestrator",
    "compute_signature",
    "select_presets",
    "PaginatedFetcher",
    "FilterEngine",
    "FilterDecision",
    "FilterRule",
    "CredentialPool",
    "PageBudget",
    "BudgetConfig",
    "RetryStrategy",
    "RetryConfig",
    "ErrorKind",
    "ResultCache",
    "PresetOutcome",
    "PresetStatus",
    "MergeReport",
    "merge_outcomes",
    "sort_items",
    "apply_cap",
    "build_query_text",
    "build_search_params",
    "format_query_token",
    "resolve_window",
]
