"""Pydantic 스키마 정의 - 프리셋/검색 결과 데이터 모델"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ==================== 시간 범위 ====================

class TimeWindowPreset(str, Enum):
    """이름 있는 시간 범위 프리셋"""
    TODAY = "today"  # 최근 24시간
    H48 = "h48"  # 최근 48시간
    D7 = "d7"  # 최근 7일
    D30 = "d30"  # 최근 30일
    ANY = "any"  # 기간 제한 없음
    CUSTOM = "custom"  # 절대 시각 지정


class TimeWindow(BaseModel):
    """실행 시점에 확정된 절대 시간 범위 (UTC). start/end가 None이면 해당 방향 무제한"""
    model_config = ConfigDict(frozen=True)

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def validate_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, moment: datetime) -> bool:
        moment = _as_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


class WindowSpec(BaseModel):
    """시간 범위 설정 (프리셋 이름 또는 custom 절대 범위)"""
    model_config = ConfigDict(frozen=True)

    preset: TimeWindowPreset = Field(TimeWindowPreset.D7, description="시간 범위 프리셋")
    start: Optional[datetime] = Field(None, description="custom 시작 시각 (UTC)")
    end: Optional[datetime] = Field(None, description="custom 종료 시각 (UTC)")

    @field_validator("start", "end")
    @classmethod
    def validate_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @model_validator(mode="after")
    def validate_custom_range(self) -> "WindowSpec":
        if self.preset == TimeWindowPreset.CUSTOM:
            if self.start is None or self.end is None:
                raise ValueError("custom window requires both start and end")
            if self.start > self.end:
                raise ValueError("custom window start must not be after end")
        return self

    @classmethod
    def custom(cls, start: datetime, end: datetime) -> "WindowSpec":
        return cls(preset=TimeWindowPreset.CUSTOM, start=start, end=end)


# ==================== 프리셋 ====================

class QuerySpec(BaseModel):
    """검색어 정의 (실행 중 불변)"""
    model_config = ConfigDict(frozen=True)

    q: Optional[str] = Field(None, max_length=500, description="자유 검색어")
    any_terms: List[str] = Field(default_factory=list, description="OR 조건 term")
    all_terms: List[str] = Field(default_factory=list, description="AND 조건 term")
    not_terms: List[str] = Field(default_factory=list, description="제외 term (제목 기준 재검사)")
    channel_allow: List[str] = Field(default_factory=list, description="허용 채널 (비어 있으면 제한 없음)")
    channel_deny: List[str] = Field(default_factory=list, description="차단 채널")
    category_id: Optional[int] = Field(None, ge=0, description="YouTube 카테고리 ID")


class DurationBucket(BaseModel):
    """길이 구간 필터 (min 이상, max 미만). 경계가 없으면 catch-all"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str = ""
    min_secs: int = Field(0, ge=0)
    max_secs: Optional[int] = Field(None, ge=0)
    default_selected: bool = False

    @model_validator(mode="after")
    def validate_range(self) -> "DurationBucket":
        if self.max_secs is not None and self.max_secs <= self.min_secs:
            raise ValueError(f"bucket '{self.id}' max_secs must be greater than min_secs")
        return self

    @property
    def is_catch_all(self) -> bool:
        return self.min_secs == 0 and self.max_secs is None

    def contains(self, secs: int) -> bool:
        if secs < self.min_secs:
            return False
        return self.max_secs is None or secs < self.max_secs


class GlobalDefaults(BaseModel):
    """전역 기본값 (프리셋 override가 없을 때 적용)"""
    model_config = ConfigDict(frozen=True)

    default_window: WindowSpec = Field(default_factory=WindowSpec)
    require_language: bool = Field(True, description="언어 일치 필수 여부")
    language_code: str = Field("en", min_length=2, max_length=8, description="대상 언어 코드")
    require_captions: bool = False
    min_duration_secs: int = Field(75, ge=0)
    region_code: Optional[str] = Field("US", description="ISO 3166-1 alpha-2")
    blocked_channels: List[str] = Field(default_factory=list, description="전역 차단 채널 (key|label)")
    duration_buckets: List[DurationBucket] = Field(default_factory=list)
    active_duration_bucket_ids: List[str] = Field(default_factory=list)

    @field_validator("region_code")
    @classmethod
    def validate_region_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        if not v or v == "NONE":
            return None
        if len(v) != 2 or not v.isalpha():
            raise ValueError("region_code must be a 2-letter country code")
        return v

    @field_validator("language_code")
    @classmethod
    def validate_language_code(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="before")
    @classmethod
    def ensure_bucket_selection(cls, data: Any) -> Any:
        # 구간이 정의되어 있으면 최소 1개는 선택: default_selected → catch-all → 첫 구간
        if not isinstance(data, dict) or not data.get("duration_buckets"):
            return data
        buckets = [
            b if isinstance(b, DurationBucket) else DurationBucket.model_validate(b)
            for b in data["duration_buckets"]
        ]
        known = {b.id for b in buckets}
        active = [i for i in data.get("active_duration_bucket_ids") or [] if i in known]
        if not active:
            chosen = next((b for b in buckets if b.default_selected), None)
            chosen = chosen or next((b for b in buckets if b.is_catch_all), None) or buckets[0]
            active = [chosen.id]
        data = dict(data)
        data["duration_buckets"] = buckets
        data["active_duration_bucket_ids"] = active
        return data

    def active_buckets(self) -> List[DurationBucket]:
        """선택된 길이 구간 (정의 순서 유지)"""
        active = set(self.active_duration_bucket_ids)
        return [bucket for bucket in self.duration_buckets if bucket.id in active]


class Preset(BaseModel):
    """이름 있는 검색 프리셋

    override 필드는 None이면 GlobalDefaults 값을 따릅니다.
    모든 override 해석은 effective_* 메서드를 통해서만 수행합니다.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field("", max_length=200)
    enabled: bool = True
    query: QuerySpec = Field(default_factory=QuerySpec)
    window_override: Optional[WindowSpec] = None
    require_language_override: Optional[bool] = None
    require_captions_override: Optional[bool] = None
    min_duration_override: Optional[int] = Field(None, ge=0)
    priority: int = 0

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("preset id must not be blank")
        return v

    @property
    def label(self) -> str:
        return self.name.strip() or self.id

    def effective_window(self, defaults: GlobalDefaults) -> WindowSpec:
        return self.window_override if self.window_override is not None else defaults.default_window

    def effective_require_language(self, defaults: GlobalDefaults) -> bool:
        if self.require_language_override is not None:
            return self.require_language_override
        return defaults.require_language

    def effective_require_captions(self, defaults: GlobalDefaults) -> bool:
        if self.require_captions_override is not None:
            return self.require_captions_override
        return defaults.require_captions

    def effective_min_duration(self, defaults: GlobalDefaults) -> int:
        if self.min_duration_override is not None:
            return self.min_duration_override
        return defaults.min_duration_secs


class Prefs(BaseModel):
    """환경설정 파일 전체 (API 키, 전역 기본값, 프리셋)"""

    api_keys: List[str] = Field(default_factory=list, repr=False)
    defaults: GlobalDefaults = Field(default_factory=GlobalDefaults)
    presets: List[Preset] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def accept_single_api_key(cls, data: Any) -> Any:
        # 단일 키 형식 {"api_key": "..."} 도 허용
        if isinstance(data, dict) and "api_key" in data:
            data = dict(data)
            single = data.pop("api_key") or ""
            keys = list(data.get("api_keys") or [])
            if isinstance(single, str) and single.strip() and single.strip() not in keys:
                keys.insert(0, single.strip())
            data["api_keys"] = keys
        return data


# ==================== 검색 결과 ====================

class FetchedItem(BaseModel):
    """업스트림에서 가져온 영상 1건 (필터/병합 단계에서 읽기 전용)"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    title_lower: str = ""
    channel_id: str = ""
    channel_title: str = ""
    channel_display_name: Optional[str] = None
    channel_custom_url: Optional[str] = None
    published_at: datetime
    duration_secs: int = Field(0, ge=0)
    default_audio_language: Optional[str] = None
    default_language: Optional[str] = None
    caption_language: Optional[str] = None
    thumbnail_url: Optional[str] = None
    url: str = ""

    @model_validator(mode="before")
    @classmethod
    def fill_derived_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("title_lower"):
                data["title_lower"] = str(data.get("title") or "").lower()
            if not data.get("url") and data.get("id"):
                data["url"] = WATCH_URL_TEMPLATE.format(video_id=data["id"])
        return data

    @field_validator("published_at")
    @classmethod
    def validate_published_at(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def channel_sort_key(self) -> str:
        """채널 정렬 키: 표시명 → 채널명 → 채널 ID (소문자)"""
        for candidate in (self.channel_display_name, self.channel_title, self.channel_id):
            if candidate and candidate.strip():
                return candidate.strip().lower()
        return ""


class ResultItem(FetchedItem):
    """병합 결과 항목 (매칭된 프리셋 ID 포함)"""

    matched_presets: List[str] = Field(default_factory=list)


class SortKey(str, Enum):
    """결과 정렬 기준"""
    NEWEST = "newest"
    OLDEST = "oldest"
    SHORTEST = "shortest"
    LONGEST = "longest"
    CHANNEL = "channel"


class RunMode(BaseModel):
    """실행 모드: Single(프리셋 1개) 또는 Any(활성 프리셋 합집합)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["single", "any"] = "any"
    preset_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_single(self) -> "RunMode":
        if self.kind == "single" and not (self.preset_id and self.preset_id.strip()):
            raise ValueError("single mode requires a preset_id")
        if self.kind == "any" and self.preset_id is not None:
            raise ValueError("any mode does not take a preset_id")
        return self

    @classmethod
    def single(cls, preset_id: str) -> "RunMode":
        return cls(kind="single", preset_id=preset_id)

    @classmethod
    def any(cls) -> "RunMode":
        return cls(kind="any")

    @property
    def is_any(self) -> bool:
        return self.kind == "any"

    def __str__(self) -> str:
        return "any" if self.is_any else f"single:{self.preset_id}"


class RunRequest(BaseModel):
    """검색 실행 요청 (UI/CLI → 엔진)"""
    model_config = ConfigDict(frozen=True)

    mode: RunMode = Field(default_factory=RunMode.any)
    presets: List[Preset] = Field(default_factory=list)
    defaults: GlobalDefaults = Field(default_factory=GlobalDefaults)
    credentials: List[str] = Field(default_factory=list, repr=False, exclude=True)
    sort_key: SortKey = SortKey.NEWEST
    page_budget: Optional[int] = Field(None, ge=1, le=10, description="프리셋당 페이지 상한 override")
    force_refresh: bool = False


class RunStats(BaseModel):
    """실행 통계

    - raw: 필터 전 가져온 전체 항목 수 (프리셋 합산)
    - unique: raw 중 고유 ID 수
    - passed: 필터를 통과한 고유 ID 수
    - kept: 상한 적용 후 최종 항목 수
    """

    raw: int = 0
    unique: int = 0
    passed: int = 0
    kept: int = 0
    presets_ran: int = 0
    presets_failed: int = 0
    pages_fetched: int = 0
    duplicates_within_presets: int = 0
    duplicates_across_presets: int = 0
    malformed_items: int = 0
    dropped_by_filter: int = 0

    def summary(self) -> str:
        return (
            f"presets: {self.presets_ran} pages: {self.pages_fetched} raw: {self.raw} "
            f"unique: {self.unique} passed: {self.passed} kept: {self.kept} "
            f"duplicates: {self.duplicates_within_presets + self.duplicates_across_presets}"
        )


class RunResult(BaseModel):
    """검색 실행 결과 스냅샷"""

    items: List[ResultItem] = Field(default_factory=list)
    stats: RunStats = Field(default_factory=RunStats)
    warnings: List[str] = Field(default_factory=list, description="프리셋별 비치명적 오류")
    signature: str = ""
    mode: RunMode = Field(default_factory=RunMode.any)
    sort_key: SortKey = SortKey.NEWEST
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    from_cache: bool = False

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


class CachedRun(BaseModel):
    """디스크에 저장되는 마지막 실행 스냅샷"""

    generated_at: datetime
    status_line: str = ""
    saved_at_unix: int = 0
    result: RunResult
