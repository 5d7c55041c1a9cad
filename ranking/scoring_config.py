"""
점수 설정 제공자

저장된 설정("ranking_config")이 있으면 사용하고, 없거나 읽을 수 없으면 기본값 사용
"""
import copy
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from .exceptions import ConfigurationUnavailable, InvalidConfiguration
from .models import ConfigurationReport, ScoringConfiguration


# =====================================================
# 기본 설정
# =====================================================

# 1부 리그 순위별 포인트
DEFAULT_CE1_POINTS = {
    1: 1000, 2: 850, 3: 725, 4: 625, 5: 520, 6: 450, 7: 380, 8: 320,
    9: 270, 10: 230, 11: 195, 12: 165, 13: 140, 14: 120, 15: 105, 16: 90,
    17: 75, 18: 65, 19: 55, 20: 46, 21: 39, 22: 34, 23: 30, 24: 27,
}

# 2부 리그 순위별 포인트
DEFAULT_CE2_POINTS = {
    1: 230, 2: 195, 3: 165, 4: 140, 5: 120, 6: 103, 7: 86, 8: 74,
    9: 63, 10: 54, 11: 46, 12: 39, 13: 34, 14: 29, 15: 25, 16: 21,
    17: 18, 18: 15, 19: 13, 20: 11, 21: 9, 22: 8, 23: 7, 24: 6,
}

# 지역 대회 순위별 포인트
DEFAULT_REGIONAL_POINTS = {
    1: 140, 2: 120, 3: 100, 4: 85, 5: 72, 6: 60, 7: 50, 8: 42,
    9: 35, 10: 30, 11: 25, 12: 21, 13: 18, 14: 15, 15: 13, 16: 11,
    17: 9, 18: 8, 19: 7, 20: 6, 21: 5, 22: 4, 23: 3, 24: 2,
}

# 연도 차이별 가중치
DEFAULT_TEMPORAL_WEIGHTS = {
    0: 1.0,  # 올해
    1: 0.8,  # 1년 전
    2: 0.5,  # 2년 전
    3: 0.2,  # 3년 전
}

DEFAULT_REGIONAL_COEFFICIENT = {
    "floor": 0.8,
    "ceiling": 1.2,
    "increment": 0.01,
}

CONFIG_BACKUP_VERSION = "1.0.0"

POINT_TABLE_KEYS = {
    "ce1Points": "1부",
    "ce2Points": "2부",
    "regionalPoints": "지역",
}

CONFIG_SECTIONS = (
    "ce1Points",
    "ce2Points",
    "regionalPoints",
    "temporalWeights",
    "regionalCoefficient",
)


def default_document() -> Dict[str, Any]:
    """기본 설정 문서 (저장 형식)"""
    return {
        "ce1Points": dict(DEFAULT_CE1_POINTS),
        "ce2Points": dict(DEFAULT_CE2_POINTS),
        "regionalPoints": dict(DEFAULT_REGIONAL_POINTS),
        "temporalWeights": dict(DEFAULT_TEMPORAL_WEIGHTS),
        "regionalCoefficient": dict(DEFAULT_REGIONAL_COEFFICIENT),
    }


def default_configuration() -> ScoringConfiguration:
    """기본 점수 설정"""
    return ScoringConfiguration.model_validate(default_document())


def validate_document(document: Dict[str, Any]) -> ConfigurationReport:
    """
    설정 문서 검증

    errors: 빈 포인트 테이블, 0~1 범위를 벗어난 가중치, floor >= ceiling, increment <= 0
    warnings: 1위부터 시작하지 않는 테이블, 순위가 낮을수록 포인트가 늘어나는 테이블
    """
    report = ConfigurationReport()

    for key, label in POINT_TABLE_KEYS.items():
        table = document.get(key)
        if table is None:
            continue
        try:
            values = {int(p): float(v) for p, v in table.items()}
        except (AttributeError, TypeError, ValueError):
            report.errors.append(f"{label} 포인트 테이블 형식이 올바르지 않습니다")
            continue
        if not values:
            report.errors.append(f"{label} 포인트 테이블이 비어 있습니다")
            continue
        positions = sorted(values)
        if positions[0] != 1:
            report.warnings.append(f"{label} 포인트 테이블이 1위부터 시작하지 않습니다")
        ordered = [values[p] for p in positions]
        if any(b > a for a, b in zip(ordered, ordered[1:])):
            report.warnings.append(f"{label} 포인트 테이블이 순위에 따라 감소하지 않습니다")

    weights = document.get("temporalWeights")
    if weights is not None:
        try:
            if any(not 0 <= float(w) <= 1 for w in weights.values()):
                report.errors.append("연도 가중치는 0과 1 사이여야 합니다")
        except (AttributeError, TypeError, ValueError):
            report.errors.append("연도 가중치 형식이 올바르지 않습니다")

    coefficient = document.get("regionalCoefficient")
    if coefficient is not None:
        params = {**DEFAULT_REGIONAL_COEFFICIENT, **coefficient}
        try:
            floor = float(params["floor"])
            ceiling = float(params["ceiling"])
            increment = float(params["increment"])
        except (TypeError, ValueError):
            report.errors.append("지역 계수 설정 형식이 올바르지 않습니다")
        else:
            if floor >= ceiling:
                report.errors.append("floor는 ceiling보다 작아야 합니다")
            if increment <= 0:
                report.errors.append("increment는 양수여야 합니다")

    report.is_valid = not report.errors
    return report


class ConfigurationProvider:
    """점수 설정 제공자"""

    def __init__(self, store, config_key: str = "ranking_config"):
        self.store = store
        self.config_key = config_key

    def _load_document(self) -> Optional[Dict[str, Any]]:
        return self.store.get_configuration(self.config_key)

    def get_configuration(self) -> ScoringConfiguration:
        """현재 점수 설정 (저장소 오류 시 기본값)"""
        try:
            document = self._load_document()
        except ConfigurationUnavailable as e:
            logger.warning(f"설정 저장소 접근 불가, 기본 설정 사용: {e}")
            return default_configuration()

        if not document:
            return default_configuration()

        try:
            return ScoringConfiguration.model_validate(document)
        except ValidationError as e:
            logger.warning(f"저장된 설정이 올바르지 않아 기본 설정 사용: {e.error_count()}개 오류")
            return default_configuration()

    def _save(self, document: Dict[str, Any]) -> ScoringConfiguration:
        report = validate_document(document)
        if not report.is_valid:
            raise InvalidConfiguration("; ".join(report.errors), report.errors)
        try:
            config = ScoringConfiguration.model_validate(document)
        except ValidationError as e:
            raise InvalidConfiguration(str(e)) from e

        self.store.save_configuration(self.config_key, config.to_document())
        return config

    def update_configuration(self, changes: Dict[str, Any]) -> ScoringConfiguration:
        """
        설정 일부 변경

        전달된 섹션만 현재 설정 위에 덮어쓴 뒤 검증 후 저장

        Args:
            changes: {"ce1Points": {...}, "regionalCoefficient": {...}} 형식

        Raises:
            InvalidConfiguration: floor >= ceiling, increment <= 0 등
        """
        unknown = set(changes) - set(CONFIG_SECTIONS)
        if unknown:
            raise InvalidConfiguration(f"알 수 없는 설정 항목: {', '.join(sorted(unknown))}")

        document = self.get_configuration().to_document()
        for key in CONFIG_SECTIONS:
            if key in changes:
                document[key] = copy.deepcopy(changes[key])

        config = self._save(document)
        logger.info(f"점수 설정 변경: {', '.join(k for k in CONFIG_SECTIONS if k in changes)}")
        return config

    def reset_configuration(self) -> ScoringConfiguration:
        """기본 설정으로 초기화"""
        config = self._save(default_document())
        logger.info("점수 설정을 기본값으로 초기화")
        return config

    def validate_configuration(self) -> ConfigurationReport:
        """저장된 설정 검증 (저장된 설정이 없으면 기본값으로 유효)"""
        try:
            document = self._load_document()
        except ConfigurationUnavailable as e:
            logger.warning(f"설정 저장소 접근 불가: {e}")
            document = None

        if not document:
            return ConfigurationReport()
        return validate_document(document)

    def backup_configuration(self) -> Dict[str, Any]:
        """설정 백업 문서"""
        return {
            "timestamp": datetime.now().isoformat(),
            "configuration": self.get_configuration().to_document(),
            "version": CONFIG_BACKUP_VERSION,
        }

    def restore_configuration(self, document: Dict[str, Any]) -> ScoringConfiguration:
        """백업 문서에서 설정 복원"""
        if not document:
            raise InvalidConfiguration("복원할 설정 데이터가 없습니다")
        config = self._save(document)
        logger.info("점수 설정 복원 완료")
        return config
