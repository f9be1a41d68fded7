"""프리셋 서비스 - 가져오기/내보내기, 고유 ID 생성"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from src.core.exceptions import PresetImportException
from src.core.logging import logger
from src.schemas.search_schema import Preset
from src.utils.text_utils import slugify


@dataclass
class ImportReport:
    """가져오기 결과

    Attributes:
        presets: 가져오기 적용 후 전체 프리셋 목록
        added: 추가된 프리셋 수
        skipped: 이름이 없어 건너뛴 수
        renamed_ids: 충돌/누락으로 새로 만든 ID 목록
    """

    presets: List[Preset]
    added: int = 0
    skipped: int = 0
    renamed_ids: List[str] = field(default_factory=list)


def unique_preset_id(name: str, taken: Iterable[str]) -> str:
    """이름 기반 slug ID (충돌 시 -2, -3, ...)"""
    used = set(taken)
    base = slugify(name)
    candidate = base
    counter = 2
    while candidate in used:
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


class PresetService:
    """프리셋 가져오기/내보내기 서비스

    가져오기는 프리셋 JSON 배열 또는 prefs.json 전체를 받습니다.
    """

    def export_presets(self, presets: Iterable[Preset]) -> str:
        """프리셋 목록을 JSON 배열 문자열로 내보내기"""
        data = [preset.model_dump(mode="json") for preset in presets]
        return json.dumps(data, indent=2, ensure_ascii=False)

    def parse_import(self, raw: str) -> List[dict]:
        """가져오기 JSON에서 프리셋 dict 목록 추출

        Raises:
            PresetImportException: JSON 오류 또는 프리셋 없음
        """
        text = (raw or "").strip()
        if not text:
            raise PresetImportException("Import text is empty")
        try:
            payload: Any = json.loads(text)
        except ValueError as e:
            raise PresetImportException(f"Import failed: {e}")

        if isinstance(payload, dict):
            if "presets" in payload:
                payload = payload["presets"]
            elif "id" in payload or "query" in payload:
                payload = [payload]
            else:
                raise PresetImportException("JSON object does not contain 'presets'")

        if not isinstance(payload, list):
            raise PresetImportException("Expected a JSON array of presets or a prefs object")
        entries = [entry for entry in payload if isinstance(entry, dict)]
        if not entries:
            raise PresetImportException("No presets found in import.")
        return entries

    def import_presets(
        self,
        raw: str,
        existing: List[Preset],
        replace: bool = False,
    ) -> ImportReport:
        """프리셋 가져오기

        - 이름 앞뒤 공백 제거, 이름이 없으면 건너뜀
        - ID가 없거나 이미 쓰이는 경우 이름 기반 slug로 새 ID 생성

        Args:
            raw: 가져올 JSON 문자열
            existing: 현재 프리셋 목록
            replace: True면 기존 목록을 대체, False면 뒤에 추가

        Returns:
            ImportReport: 적용 결과

        Raises:
            PresetImportException: 형식 오류 또는 유효한 프리셋이 없는 경우
        """
        entries = self.parse_import(raw)
        result: List[Preset] = [] if replace else list(existing)
        report = ImportReport(presets=result)

        for entry in entries:
            name = str(entry.get("name") or "").strip()
            if not name:
                report.skipped += 1
                continue

            data = dict(entry)
            data["name"] = name
            taken = [preset.id for preset in result]
            requested_id = str(data.get("id") or "").strip()
            if not requested_id or requested_id in taken:
                data["id"] = unique_preset_id(name, taken)
                report.renamed_ids.append(data["id"])
            else:
                data["id"] = requested_id

            try:
                preset = Preset.model_validate(data)
            except ValidationError as e:
                raise PresetImportException(f"Preset '{name}' is invalid: {e.error_count()} errors")
            result.append(preset)
            report.added += 1

        if report.added == 0:
            raise PresetImportException("No valid presets to import.")

        logger.info(
            f"[PRESETS] imported {report.added} (skipped={report.skipped}, "
            f"renamed={len(report.renamed_ids)}, replace={replace})"
        )
        return report

    @staticmethod
    def find(presets: Iterable[Preset], preset_id: str) -> Optional[Preset]:
        for preset in presets:
            if preset.id == preset_id:
                return preset
        return None
