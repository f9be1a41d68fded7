"""설정 관리 - 환경 변수 로드 및 검증"""
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings
from pydantic import field_validator


def _default_config_dir() -> str:
    return str(Path.home() / ".config" / "ytsearch")


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # YouTube Data API
    # 쉼표로 구분된 키 목록. 앞에서부터 순서대로 사용하고 인증/쿼터 오류 시 다음 키로 넘어갑니다.
    youtube_api_keys: str = ""
    youtube_api_base_url: str = "https://www.googleapis.com/youtube/v3"
    youtube_http_timeout_s: float = 10.0
    http_impersonate: str = "chrome110"
    http_max_clients: int = 10

    # 검색 페이지네이션
    # - search_max_pages: 프리셋당 search.list 호출 상한 (쿼터 보호)
    # - detail_batch_size: videos.list 1회당 ID 개수 (API 상한 50)
    search_max_pages: int = 2
    search_page_size: int = 25
    detail_batch_size: int = 50

    # 일시적 오류 재시도 (250ms → 500ms → 1s)
    retry_max_attempts: int = 3
    retry_base_delay_s: float = 0.25
    retry_max_delay_s: float = 1.0
    retry_jitter_ratio: float = 0.2

    # 병합 후 최종 결과 상한 (0이면 제한 없음)
    results_max_kept: int = 0

    # 로컬 저장 경로
    cache_dir: str = _default_config_dir()
    prefs_path: str = ""
    api_key_file: str = "YT_API_private"

    # 로깅
    log_level: str = "INFO"

    @field_validator("search_max_pages")
    @classmethod
    def validate_search_max_pages(cls, v: int) -> int:
        if not 1 <= v <= 10:
            raise ValueError("search_max_pages must be between 1 and 10")
        return v

    @field_validator("search_page_size")
    @classmethod
    def validate_search_page_size(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError("search_page_size must be between 1 and 50")
        return v

    @field_validator("detail_batch_size")
    @classmethod
    def validate_detail_batch_size(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError("detail_batch_size must be between 1 and 50")
        return v

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_retry_max_attempts(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("retry_max_attempts must be positive")
        return v

    @field_validator("retry_base_delay_s", "retry_max_delay_s", "retry_jitter_ratio")
    @classmethod
    def validate_retry_delays(cls, v: float) -> float:
        if v < 0:
            raise ValueError("retry delays must be >= 0")
        return v

    @field_validator("results_max_kept")
    @classmethod
    def validate_results_max_kept(cls, v: int) -> int:
        if v < 0:
            raise ValueError("results_max_kept must be >= 0")
        return v

    @field_validator("youtube_http_timeout_s")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("youtube_http_timeout_s must be positive")
        return v

    @property
    def api_key_list(self) -> List[str]:
        """환경 변수에 설정된 API 키 목록 (공백/중복 제거, 순서 유지)"""
        keys: List[str] = []
        for raw in self.youtube_api_keys.split(","):
            key = raw.strip()
            if key and key not in keys:
                keys.append(key)
        return keys

    @property
    def resolved_prefs_path(self) -> Path:
        if self.prefs_path:
            return Path(self.prefs_path).expanduser()
        return Path(self.cache_dir).expanduser() / "prefs.json"

    @property
    def snapshot_path(self) -> Path:
        return Path(self.cache_dir).expanduser() / "last_results.json"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
