"""
팀 랭킹 계산 모듈

최근 4년 대회 결과를 합산하는 랭킹 시스템
- 대회 등급별 순위 포인트 (1부 / 2부 / 지역)
- 지역 대회 포인트에만 적용되는 지역 계수
- 연도별 가중치 (올해 1.0 → 3년 전 0.2)
- 계산 결과는 연도별 히스토리로 저장 (같은 연도는 최신 계산으로 교체)
"""
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .coefficient import RegionalCoefficientCalculator
from .config import ranking_settings
from .exceptions import DataAccessError, NotFound
from .models import (
    RankingEntry,
    RankingFilters,
    RankingHistoryEntry,
    RankingStats,
    Team,
    TeamSummary,
    YearScore,
)
from .scorer import TeamYearScorer, fallback_year_score
from .scoring_config import ConfigurationProvider


# =====================================================
# 상수 정의
# =====================================================

# 랭킹 윈도우: 올해 포함 4년 (연도 가중치 테이블 범위와 동일)
RANKING_WINDOW_YEARS = 4

# 팀 비교 최대 개수
MAX_COMPARE_TEAMS = 10

# 상위 N팀 조회 최대 개수
MAX_TOP_TEAMS = 50


def ranking_window(current_year: int, window_years: int = RANKING_WINDOW_YEARS) -> List[int]:
    """랭킹 대상 연도 [올해, 1년 전, 2년 전, 3년 전]"""
    return [current_year - offset for offset in range(window_years)]


def ranking_sort_key(entry: RankingEntry):
    """포인트 내림차순, 동점이면 팀 ID 오름차순"""
    return (-entry.total_points, entry.team.id)


def history_to_entry(row: RankingHistoryEntry) -> RankingEntry:
    """히스토리 행 → 랭킹 항목"""
    if row.team is not None:
        team = TeamSummary.from_team(row.team)
    else:
        team = TeamSummary(id=row.team_id, name=row.team_id)

    breakdown = {
        int(year): YearScore.from_dict(detail)
        for year, detail in (row.details or {}).items()
    }
    return RankingEntry(
        rank=row.rank,
        team=team,
        total_points=row.points,
        year_breakdown=breakdown,
    )


class RankingCalculator:
    """팀 랭킹 계산기"""

    def __init__(
        self,
        store,
        config_provider: Optional[ConfigurationProvider] = None,
        max_workers: Optional[int] = None,
        window_years: int = RANKING_WINDOW_YEARS,
    ):
        self.store = store
        self.config_provider = config_provider or ConfigurationProvider(
            store, config_key=ranking_settings.config_key
        )
        self.max_workers = max_workers or ranking_settings.max_workers
        self.window_years = window_years

        # 같은 연도의 계산은 한 번에 하나만 실행
        self._locks_guard = threading.Lock()
        self._year_locks: Dict[int, threading.Lock] = {}

    @staticmethod
    def _resolve_year(current_year: Optional[int]) -> int:
        return current_year if current_year is not None else date.today().year

    def _year_lock(self, year: int) -> threading.Lock:
        with self._locks_guard:
            return self._year_locks.setdefault(year, threading.Lock())

    # =====================================================
    # 랭킹 계산
    # =====================================================

    def _score_team(self, scorer: TeamYearScorer, team: Team, years: Sequence[int]) -> RankingEntry:
        """팀 한 개의 연도별 점수 계산 (실패한 연도는 0점 처리)"""
        breakdown: Dict[int, YearScore] = {}
        for year in years:
            try:
                breakdown[year] = scorer.score_team_year(team.id, year, team=team)
            except (NotFound, DataAccessError) as e:
                logger.warning(f"{team.name} {year}년 점수 계산 실패, 0점 처리: {e}")
                breakdown[year] = fallback_year_score(team.id, year, scorer.current_year)

        total_points = sum(score.weighted_points for score in breakdown.values())
        return RankingEntry(
            rank=0,  # 정렬 후 부여
            team=TeamSummary.from_team(team),
            total_points=total_points,
            year_breakdown=breakdown,
        )

    def _score_all(self, scorer: TeamYearScorer, teams: List[Team], years: Sequence[int]) -> List[RankingEntry]:
        if self.max_workers > 1 and len(teams) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(lambda t: self._score_team(scorer, t, years), teams))
        return [self._score_team(scorer, team, years) for team in teams]

    def _persist_coefficients(self, coefficients: RegionalCoefficientCalculator, year: int):
        """이번 계산에서 사용한 올해 지역 계수를 지역에 기록"""
        for region_id, coefficient in sorted(coefficients.computed_for_year(year).items()):
            self.store.update_region_coefficient(region_id, coefficient)

    def _save_ranking_history(self, ranking: List[RankingEntry], year: int):
        """랭킹 히스토리 저장 (해당 연도 기록을 통째로 교체)"""
        rows = [
            {
                "team_id": entry.team.id,
                "year": year,
                "points": entry.total_points,
                "rank": entry.rank,
                "details": entry.breakdown_document(),
            }
            for entry in ranking
        ]
        self.store.replace_ranking_history(year, rows)

    def compute_ranking(self, current_year: Optional[int] = None) -> List[RankingEntry]:
        """
        전체 팀 랭킹 계산 및 히스토리 저장

        Args:
            current_year: 기준 연도 (생략 시 올해)

        Returns:
            순위순 랭킹 리스트

        Raises:
            PersistenceFailure: 히스토리 또는 지역 계수 저장 실패
        """
        current_year = self._resolve_year(current_year)
        years = ranking_window(current_year, self.window_years)

        with self._year_lock(current_year):
            config = self.config_provider.get_configuration()
            coefficients = RegionalCoefficientCalculator(self.store, config)
            scorer = TeamYearScorer(self.store, config, coefficients, current_year)

            teams = self.store.list_teams()
            ranking = self._score_all(scorer, teams, years)

            ranking.sort(key=ranking_sort_key)
            for i, entry in enumerate(ranking, 1):
                entry.rank = i

            self._persist_coefficients(coefficients, current_year)
            self._save_ranking_history(ranking, current_year)

        logger.info(f"{current_year}년 랭킹 계산 완료: {len(ranking)}팀")
        return ranking

    def recalculate_ranking(self, current_year: Optional[int] = None) -> List[RankingEntry]:
        """랭킹 재계산 (관리자 실행용)"""
        logger.info("랭킹 재계산 시작...")
        try:
            ranking = self.compute_ranking(current_year)
        except Exception as e:
            logger.error(f"랭킹 재계산 오류: {e}")
            raise
        logger.info(f"랭킹 재계산 완료. {len(ranking)}팀 처리")
        return ranking

    # =====================================================
    # 조회
    # =====================================================

    def get_historical_ranking(self, year: int) -> List[RankingEntry]:
        """저장된 연도별 랭킹 조회"""
        rows = self.store.get_ranking_history(year)
        return [history_to_entry(row) for row in sorted(rows, key=lambda r: r.rank)]

    def get_ranking(
        self,
        filters: Optional[RankingFilters] = None,
        current_year: Optional[int] = None,
    ) -> List[RankingEntry]:
        """
        랭킹 조회

        - 올해가 아닌 연도: 저장된 히스토리 반환 (재계산하지 않음)
        - 그 외: 새로 계산 후 지역 필터, offset/limit 적용
        """
        filters = filters or RankingFilters()
        current_year = self._resolve_year(current_year)

        if filters.year is not None and filters.year != current_year:
            ranking = self.get_historical_ranking(filters.year)
        else:
            ranking = self.compute_ranking(current_year)

        if filters.region_id:
            ranking = [e for e in ranking if e.team.region_id == filters.region_id]

        offset = filters.offset or 0
        if filters.limit is not None:
            ranking = ranking[offset:offset + filters.limit]
        elif offset:
            ranking = ranking[offset:]

        return ranking

    def get_ranking_stats(self, current_year: Optional[int] = None, top_n: Optional[int] = None) -> RankingStats:
        """랭킹 통계 (팀 수, 평균 포인트, 상위 팀, 지역별 요약)"""
        current_year = self._resolve_year(current_year)
        top_n = top_n or ranking_settings.top_n
        ranking = self.get_ranking(current_year=current_year)

        average_points = 0.0
        if ranking:
            average_points = sum(e.total_points for e in ranking) / len(ranking)

        region_breakdown: Dict[str, Dict[str, Any]] = defaultdict(
            lambda: {"name": "", "teams": 0, "total_points": 0.0, "average_points": 0.0}
        )
        for entry in ranking:
            name = entry.team.region_name or entry.team.region_id or "-"
            region = region_breakdown[name]
            region["name"] = name
            region["teams"] += 1
            region["total_points"] += entry.total_points

        for region in region_breakdown.values():
            region["average_points"] = region["total_points"] / region["teams"]

        return RankingStats(
            total_teams=len(ranking),
            year=current_year,
            last_updated=datetime.now(),
            average_points=average_points,
            top_teams=ranking[:top_n],
            region_breakdown=dict(region_breakdown),
        )

    def get_team_ranking(
        self,
        team_id: str,
        year: Optional[int] = None,
        current_year: Optional[int] = None,
    ) -> RankingEntry:
        """팀 한 개의 랭킹 조회"""
        ranking = self.get_ranking(RankingFilters(year=year), current_year=current_year)
        for entry in ranking:
            if entry.team.id == team_id:
                return entry
        raise NotFound(f"랭킹에 없는 팀입니다: {team_id}")

    def get_team_evolution(
        self,
        team_id: str,
        years: int = RANKING_WINDOW_YEARS,
        current_year: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        팀의 연도별 순위 변화 (오래된 연도부터)

        올해는 새로 계산하고 지난 연도는 히스토리 사용, 기록이 없는 연도는 건너뜀
        """
        current_year = self._resolve_year(current_year)
        evolution = []

        for year in ranking_window(current_year, years):
            try:
                entry = self.get_team_ranking(team_id, year=year, current_year=current_year)
            except NotFound:
                logger.debug(f"{year}년 {team_id} 랭킹 기록 없음")
                continue
            except DataAccessError as e:
                logger.warning(f"{year}년 랭킹 조회 실패, 건너뜀: {e}")
                continue
            evolution.append({
                "year": year,
                "rank": entry.rank,
                "points": entry.total_points,
                "year_breakdown": entry.year_breakdown,
            })

        evolution.reverse()
        return evolution

    def compare_teams(self, team_ids: List[str], current_year: Optional[int] = None) -> List[RankingEntry]:
        """팀 비교 (최대 10팀, 랭킹에 없는 팀은 제외)"""
        if not team_ids:
            raise ValueError("비교할 팀 ID가 필요합니다")
        if len(team_ids) > MAX_COMPARE_TEAMS:
            raise ValueError(f"최대 {MAX_COMPARE_TEAMS}팀까지 비교할 수 있습니다")

        by_id = {e.team.id: e for e in self.get_ranking(current_year=current_year)}
        return [by_id[team_id] for team_id in team_ids if team_id in by_id]

    def get_top_teams(
        self,
        limit: int = 10,
        year: Optional[int] = None,
        current_year: Optional[int] = None,
    ) -> List[RankingEntry]:
        """상위 N팀 (최대 50)"""
        limit = max(1, min(limit, MAX_TOP_TEAMS))
        ranking = self.get_ranking(RankingFilters(year=year), current_year=current_year)
        return ranking[:limit]

    # =====================================================
    # 출력
    # =====================================================

    def print_ranking_summary(self, ranking: List[RankingEntry], title: str = "", top_n: int = 20):
        """랭킹 요약 출력"""
        print(f"\n{'='*64}")
        print(f" {title}")
        print(f"{'='*64}")
        print(f"{'순위':>4} {'팀':<20} {'지역':<15} {'포인트':>10}")
        print(f"{'-'*64}")

        for e in ranking[:top_n]:
            name = e.team.name if len(e.team.name) <= 18 else e.team.name[:18] + ".."
            region = e.team.region_name or "-"
            print(f"{e.rank:>4} {name:<20} {region:<15} {e.total_points:>10.1f}")
