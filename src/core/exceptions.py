"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


# 기본 예외 클래스
class YTSearchException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 업스트림(YouTube API) 관련 예외
class UpstreamException(YTSearchException):
    """업스트림 API 호출 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "UPSTREAM_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "UPSTREAM_ERROR", details)


class CredentialRejectedException(UpstreamException):
    """단일 API 키가 인증/쿼터 사유로 거절됨 (다음 키로 폴백)"""
    def __init__(self, reason: str, status: int = 403, details: Optional[dict[str, Any]] = None):
        message = f"Credential rejected by upstream ({status}): {reason}"
        super().__init__(message, "CREDENTIAL_REJECTED",
                         details or {"reason": reason, "status": status})
        self.reason = reason
        self.status = status


class CredentialExhaustedException(UpstreamException):
    """사용 가능한 API 키가 더 이상 없음 (해당 프리셋 종료)"""
    def __init__(self, tried: int, details: Optional[dict[str, Any]] = None):
        message = f"All API keys rejected or exhausted ({tried} tried)"
        super().__init__(message, "CREDENTIAL_EXHAUSTED", details or {"tried": tried})
        self.tried = tried


class TransientNetworkException(UpstreamException):
    """네트워크/전송 오류, 5xx 등 재시도 가능한 오류"""
    def __init__(self, operation: str, reason: str, status: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        message = f"Transient failure during '{operation}': {reason}"
        super().__init__(message, "TRANSIENT_NETWORK",
                         details or {"operation": operation, "reason": reason, "status": status})
        self.operation = operation
        self.status = status


class MalformedResponseException(UpstreamException):
    """응답 JSON 디코딩 실패 또는 예상과 다른 구조"""
    def __init__(self, operation: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Malformed response from '{operation}': {reason}"
        super().__init__(message, "MALFORMED_RESPONSE",
                         details or {"operation": operation, "reason": reason})


# 설정/검증 관련 예외
class ValidationException(YTSearchException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                         details or {"field": field, "reason": reason})


class InvalidPresetException(ValidationException):
    """프리셋 설정이 검색을 만들 수 없는 상태 (예: 빈 쿼리)"""
    def __init__(self, preset_id: str, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__(f"preset:{preset_id}", reason, details)
        self.preset_id = preset_id


class MissingCredentialsException(ValidationException):
    """API 키가 하나도 설정되지 않음"""
    def __init__(self, details: Optional[dict[str, Any]] = None):
        super().__init__("api_keys", "Set a YouTube Data API key before searching", details)


class PresetNotFoundException(YTSearchException):
    """Single 모드에서 지정한 프리셋이 존재하지 않음"""
    def __init__(self, preset_id: str, details: Optional[dict[str, Any]] = None):
        message = f"Preset '{preset_id}' not found"
        super().__init__(message, "PRESET_NOT_FOUND", details or {"preset_id": preset_id})
        self.preset_id = preset_id


class NoEnabledPresetsException(YTSearchException):
    """Any 모드인데 활성화된 프리셋이 없음"""
    def __init__(self, details: Optional[dict[str, Any]] = None):
        message = "Enable at least one preset before running in Any mode"
        super().__init__(message, "NO_ENABLED_PRESETS", details)


# 캐시 관련 예외
class CacheException(YTSearchException):
    """캐시 관련 예외"""
    def __init__(self, message: str, error_code: str = "CACHE_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CACHE_ERROR", details)


class CacheSerializationException(CacheException):
    """캐시 직렬화/역직렬화 오류"""
    def __init__(self, operation: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Cache {operation} failed: {reason}"
        super().__init__(message, "CACHE_SERIALIZATION_ERROR",
                         details or {"operation": operation, "reason": reason})


# 설정 파일(prefs) 관련 예외
class PrefsException(YTSearchException):
    """환경설정 파일 읽기/쓰기 오류"""
    def __init__(self, operation: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Prefs {operation} failed: {reason}"
        super().__init__(message, "PREFS_ERROR",
                         details or {"operation": operation, "reason": reason})


class PresetImportException(PrefsException):
    """프리셋 가져오기 실패 (형식 오류, 유효 프리셋 없음)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("import", reason, details)
