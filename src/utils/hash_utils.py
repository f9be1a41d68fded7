"""해싱 유틸리티"""
import hashlib
import json
from typing import Any


def hash_string(text: str) -> str:
    """
    문자열을 MD5 해시로 변환

    Args:
        text: 해시할 문자열

    Returns:
        MD5 해시 문자열
    """
    return hashlib.md5(text.encode()).hexdigest()


def canonical_json(payload: Any) -> str:
    """키 정렬 + 공백 없는 JSON (동일 입력 → 동일 바이트)"""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def generate_run_signature(payload: Any) -> str:
    """
    실행 파라미터로 캐시 키(run signature) 생성

    Args:
        payload: 모드/프리셋/해석된 파라미터를 담은 JSON 직렬화 가능 객체

    Returns:
        결과 캐시 키
    """
    return f"run:{hash_string(canonical_json(payload))}"
