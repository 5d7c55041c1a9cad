"""
지역 계수 계산

지역 소속 팀들의 1부/2부 리그 포인트 합계로 지역 대회 포인트 배율을 결정
공식: clamp(floor + 합계 × increment, floor, ceiling)
"""
import threading
from typing import Dict, Iterable, Tuple

from loguru import logger

from .models import COEFFICIENT_TIERS, Position, RegionalCoefficientConfig, ScoringConfiguration
from .scorer import points_for_position


def clamp_coefficient(total_points: float, params: RegionalCoefficientConfig) -> float:
    """포인트 합계 → 지역 계수 (floor ~ ceiling)"""
    raw = params.floor + total_points * params.increment
    return max(params.floor, min(params.ceiling, raw))


def sum_coefficient_points(positions: Iterable[Position], config: ScoringConfiguration) -> float:
    """1부/2부 순위 포인트 합계 (지역 대회 결과는 제외)"""
    total = 0.0
    for p in positions:
        if p.tier not in COEFFICIENT_TIERS:
            continue
        total += points_for_position(config.points_table(p.tier), p.position)
    return total


class RegionalCoefficientCalculator:
    """
    지역 계수 계산기

    한 번의 랭킹 계산 동안 (지역, 연도)별 결과를 캐시
    캐시는 락으로 보호되어 워커 스레드 간 공유 가능
    """

    def __init__(self, store, config: ScoringConfiguration):
        self.store = store
        self.config = config
        self._cache: Dict[Tuple[str, int], float] = {}
        self._lock = threading.Lock()

    def compute_coefficient(self, region_id: str, year: int) -> float:
        """지역 계수 조회 (캐시 우선)"""
        key = (region_id, year)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        positions = self.store.get_region_positions(region_id, year, COEFFICIENT_TIERS)
        total_points = sum_coefficient_points(positions, self.config)
        coefficient = clamp_coefficient(total_points, self.config.regional_coefficient)

        with self._lock:
            # 동시에 계산된 경우 먼저 저장된 값 유지
            coefficient = self._cache.setdefault(key, coefficient)

        logger.debug(f"지역 계수 {region_id}/{year}: {total_points:.1f}pt → {coefficient:.3f}")
        return coefficient

    def computed_for_year(self, year: int) -> Dict[str, float]:
        """해당 연도에 계산된 지역별 계수"""
        with self._lock:
            return {region_id: c for (region_id, y), c in self._cache.items() if y == year}
