"""리소스 파일(YAML) 로더 유틸리티"""
import os
from functools import lru_cache
from typing import Any, Dict, List

import yaml

from src.core.logging import logger


def get_resource_path(relative_path: str) -> str:
    """프로젝트 루트 기준 리소스 절대 경로 반환"""
    # src/utils/resource_loader.py -> src/utils -> src -> root
    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.path.join(base_dir, "resources", relative_path)


@lru_cache(maxsize=32)
def load_yaml_resource(relative_path: str) -> Dict[str, Any]:
    """YAML 리소스 로드 및 캐싱"""
    path = get_resource_path(relative_path)
    if not os.path.exists(path):
        logger.warning(f"Resource not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load YAML resource {path}: {e}")
        return {}


def load_default_presets() -> List[Dict[str, Any]]:
    """내장 기본 프리셋 목록 로드"""
    data = load_yaml_resource("presets/defaults.yaml")
    return list(data.get("presets", []))


def load_default_globals() -> Dict[str, Any]:
    """내장 전역 기본값 로드 (길이 구간 포함)"""
    data = load_yaml_resource("presets/defaults.yaml")
    return dict(data.get("defaults", {}))
