"""
랭킹 데이터 저장소 인터페이스

SupabaseRankingDB, InMemoryRankingStore 가 같은 메서드를 구현
"""
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from ranking.models import Position, Region, RankingHistoryEntry, Team, Tier


@runtime_checkable
class RankingStore(Protocol):
    """랭킹 계산에 필요한 조회/저장 메서드"""

    def list_teams(self) -> List[Team]:
        """전체 팀 (지역 포함)"""

    def get_team(self, team_id: str) -> Optional[Team]:
        """팀 조회 (없으면 None)"""

    def list_regions(self) -> List[Region]:
        """전체 지역"""

    def get_team_positions(self, team_id: str, year: int) -> List[Position]:
        """팀의 해당 연도 대회 순위"""

    def get_region_positions(self, region_id: str, year: int, tiers: Iterable[Tier]) -> List[Position]:
        """지역 소속 팀들의 해당 연도 순위 (등급 제한)"""

    def get_configuration(self, key: str) -> Optional[Dict[str, Any]]:
        """저장된 점수 설정 문서"""

    def save_configuration(self, key: str, document: Dict[str, Any]) -> None:
        """점수 설정 저장"""

    def update_region_coefficient(self, region_id: str, coefficient: float) -> None:
        """지역 계수 기록"""

    def replace_ranking_history(self, year: int, rows: List[Dict[str, Any]]) -> None:
        """연도별 랭킹 히스토리 교체 (원자적)"""

    def get_ranking_history(self, year: int) -> List[RankingHistoryEntry]:
        """연도별 랭킹 히스토리"""
