"""ISO-8601 duration 파싱 (YouTube contentDetails.duration)"""

from __future__ import annotations

import re
from typing import Optional

# P[nD]T[nH][nM][nS] 형식. 라이브/예정 영상은 "P0D"
_ISO_DURATION = re.compile(
    r"^P(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)(?:\.\d+)?S)?)?$"
)


def parse_iso8601_duration(value: Optional[str]) -> Optional[int]:
    """ISO-8601 기간 문자열을 초 단위로 변환

    예시:
    - "PT1H2M3S" -> 3723
    - "PT45S" -> 45
    - "P1DT2H" -> 93600
    - "P0D" -> 0

    Args:
        value: duration 문자열

    Returns:
        Optional[int]: 초. 형식이 잘못되었으면 None
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip().upper()
    if text in ("P", "PT") or text.endswith("T"):
        return None

    match = _ISO_DURATION.match(text)
    if not match:
        return None

    parts = {name: int(num) if num else 0 for name, num in match.groupdict().items()}
    return (
        parts["weeks"] * 7 * 86400
        + parts["days"] * 86400
        + parts["hours"] * 3600
        + parts["minutes"] * 60
        + parts["seconds"]
    )


def format_duration(seconds: int) -> str:
    """초를 H:MM:SS 또는 M:SS 형식으로 표시"""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
