"""
팀-연도 점수 계산

공식: (1부/2부 포인트 + 지역 포인트 × 지역 계수) × 연도 가중치
"""
from typing import Dict, Optional

from .exceptions import NotFound
from .models import ScoringConfiguration, Team, Tier, YearScore
from .scoring_config import DEFAULT_TEMPORAL_WEIGHTS


def points_for_position(table: Dict[int, float], position: int) -> float:
    """순위별 포인트 (테이블 범위 밖이면 0)"""
    if position < 1:
        return 0.0
    return float(table.get(position, 0))


def temporal_weight(weights: Dict[int, float], current_year: int, year: int) -> float:
    """연도 가중치 (설정된 범위 밖이면 0)"""
    return float(weights.get(current_year - year, 0.0))


def fallback_year_score(team_id: str, year: int, current_year: int) -> YearScore:
    """
    계산 실패 시 대체 값

    포인트 0, 지역 계수 1.0, 연도 가중치는 기본 가중치 테이블에서 가져옴
    """
    return YearScore(
        team_id=team_id,
        year=year,
        regional_coefficient=1.0,
        temporal_weight=temporal_weight(DEFAULT_TEMPORAL_WEIGHTS, current_year, year),
        is_fallback=True,
    )


class TeamYearScorer:
    """팀-연도 점수 계산기"""

    def __init__(self, store, config: ScoringConfiguration, coefficient_calculator, current_year: int):
        self.store = store
        self.config = config
        self.coefficients = coefficient_calculator
        self.current_year = current_year

    def _resolve_team(self, team_id: str) -> Team:
        team = self.store.get_team(team_id)
        if team is None:
            raise NotFound(f"팀을 찾을 수 없습니다: {team_id}")
        return team

    def score_team_year(self, team_id: str, year: int, team: Optional[Team] = None) -> YearScore:
        """
        팀의 한 해 점수 계산

        Args:
            team_id: 팀 ID
            year: 대상 연도
            team: 이미 조회한 팀 (없으면 저장소에서 조회)

        Raises:
            NotFound: 팀 또는 소속 지역이 없는 경우
        """
        if team is None:
            team = self._resolve_team(team_id)
        if team.region is None:
            raise NotFound(f"팀 {team.name}의 지역을 찾을 수 없습니다: {team.region_id}")

        ce_points = 0.0
        regional_points = 0.0
        for p in self.store.get_team_positions(team_id, year):
            points = points_for_position(self.config.points_table(p.tier), p.position)
            if p.tier == Tier.REGIONAL:
                regional_points += points
            else:
                # 1부와 2부는 구분 없이 합산
                ce_points += points

        regional_coefficient = self.coefficients.compute_coefficient(team.region_id, year)
        adjusted_regional = regional_points * regional_coefficient

        weight = temporal_weight(self.config.temporal_weights, self.current_year, year)
        weighted_points = (ce_points + adjusted_regional) * weight

        return YearScore(
            team_id=team_id,
            year=year,
            ce_points=ce_points,
            regional_points=regional_points,
            regional_coefficient=regional_coefficient,
            temporal_weight=weight,
            weighted_points=weighted_points,
        )
