"""환경설정 리포지토리 - prefs.json 읽기/쓰기 + 내장 기본값 병합."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from src.core.config import settings
from src.core.exceptions import PrefsException
from src.core.logging import logger
from src.schemas.search_schema import GlobalDefaults, Preset, Prefs
from src.utils.resource_loader import load_default_globals, load_default_presets
from src.utils.text_utils import normalize_block_list


def builtin_prefs() -> Prefs:
    """resources/presets/defaults.yaml 기반 내장 기본 prefs"""
    try:
        defaults = GlobalDefaults.model_validate(load_default_globals())
        presets = [Preset.model_validate(raw) for raw in load_default_presets()]
    except ValidationError as e:
        logger.error(f"[PREFS] Built-in defaults are invalid: {e}")
        return Prefs()
    return Prefs(defaults=defaults, presets=presets)


def add_missing_defaults(prefs: Prefs) -> Prefs:
    """내장 프리셋 중 같은 id가 없는 것만 뒤에 추가"""
    existing = {preset.id for preset in prefs.presets}
    missing = [preset for preset in builtin_prefs().presets if preset.id not in existing]
    if not missing:
        return prefs
    return prefs.model_copy(update={"presets": list(prefs.presets) + missing})


def normalize_prefs(prefs: Prefs) -> Prefs:
    """차단 목록 정규화 (key|label, key 정렬, 중복 제거)"""
    blocked = normalize_block_list(prefs.defaults.blocked_channels)
    if blocked == list(prefs.defaults.blocked_channels):
        return prefs
    defaults = prefs.defaults.model_copy(update={"blocked_channels": blocked})
    return prefs.model_copy(update={"defaults": defaults})


class PrefsRepository:
    """prefs.json 리포지토리

    - 파일이 없거나 손상되었으면 내장 기본값으로 시작
    - 로드할 때마다 누락된 내장 프리셋을 추가하고 차단 목록을 정규화
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        key_file: Optional[Union[str, Path]] = None,
    ):
        self.path = Path(path).expanduser() if path else settings.resolved_prefs_path
        self.key_file = Path(key_file) if key_file else Path(settings.api_key_file)

    def load(self) -> Prefs:
        """prefs 로드 (항상 유효한 Prefs 반환)"""
        prefs = self._read()
        if prefs is None:
            prefs = builtin_prefs()
        return normalize_prefs(add_missing_defaults(prefs))

    def _read(self) -> Optional[Prefs]:
        if not self.path.exists():
            logger.info(f"[PREFS] {self.path} not found, using built-in defaults")
            return None
        try:
            raw = self.path.read_text(encoding="utf-8")
            return Prefs.model_validate_json(raw)
        except OSError as e:
            logger.warning(f"[PREFS] Failed to read {self.path}: {e}")
        except ValidationError as e:
            logger.warning(f"[PREFS] {self.path} is invalid, using built-in defaults: {e.error_count()} errors")
        return None

    def save(self, prefs: Prefs) -> None:
        """prefs 저장 (임시 파일 → 교체)

        Raises:
            PrefsException: 파일 쓰기 실패
        """
        payload = json.dumps(prefs.model_dump(mode="json"), indent=2, ensure_ascii=False)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PrefsException("save", str(e), {"path": str(self.path)})
        logger.info(f"[PREFS] saved {len(prefs.presets)} presets to {self.path}")

    def read_key_file(self) -> Optional[str]:
        """API 키 파일 (기본 'YT_API_private')의 내용 (없거나 비었으면 None)"""
        try:
            contents = self.key_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"[PREFS] Failed to read key file {self.key_file}: {e}")
            return None
        return contents or None

    def resolve_api_keys(self, prefs: Prefs) -> List[str]:
        """실행에 쓸 API 키 목록 (순서 유지, 중복 제거)

        순서: prefs의 키 → 환경 변수 YOUTUBE_API_KEYS → (앞의 둘이 비었으면) 키 파일
        """
        keys: List[str] = []
        for key in list(prefs.api_keys) + settings.api_key_list:
            key = key.strip()
            if key and key not in keys:
                keys.append(key)

        if not keys:
            from_file = self.read_key_file()
            if from_file:
                logger.info(f"[PREFS] API key imported from {self.key_file}")
                keys.append(from_file)
        return keys
