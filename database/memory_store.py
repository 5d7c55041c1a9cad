"""
메모리 저장소

Supabase 없이 JSON 파일 / 딕셔너리 데이터로 랭킹을 계산할 때 사용
"""
import copy
import json
import threading
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ranking.models import Position, Region, RankingHistoryEntry, Team, Tier, Tournament


class InMemoryRankingStore:
    """메모리 기반 랭킹 저장소"""

    def __init__(self):
        self.regions: Dict[str, Region] = {}
        self.teams: Dict[str, Team] = {}
        self.tournaments: Dict[str, Tournament] = {}
        # (team_id, tournament_id) → 순위
        self.positions: Dict[tuple, int] = {}
        self.configuration: Dict[str, Dict[str, Any]] = {}
        self.history: Dict[int, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    # ==================== 데이터 로드 ====================

    @classmethod
    def from_json_file(cls, data_file: str) -> "InMemoryRankingStore":
        """JSON 데이터 파일 로드"""
        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        store = cls()
        store.load_from_data(data)
        return store

    def load_from_data(self, data: dict):
        """
        딕셔너리 데이터 로드

        Args:
            data: {"regions": [...], "teams": [...], "tournaments": [...],
                   "positions": [...], "configuration": {...}} 형식
        """
        for r in data.get("regions", []):
            self.add_region(Region.model_validate(r))
        for t in data.get("teams", []):
            self.add_team(Team.model_validate(t))
        for t in data.get("tournaments", []):
            self.add_tournament(Tournament.model_validate(t))
        for p in data.get("positions", []):
            self.add_position(str(p["team_id"]), str(p["tournament_id"]), int(p["position"]))
        if data.get("configuration"):
            self.configuration["ranking_config"] = copy.deepcopy(data["configuration"])

        logger.info(
            f"데이터 로드 완료: 지역 {len(self.regions)}개, 팀 {len(self.teams)}개, "
            f"대회 {len(self.tournaments)}개, 순위 {len(self.positions)}개"
        )

    def add_region(self, region: Region) -> Region:
        self.regions[region.id] = region
        return region

    def add_team(self, team: Team) -> Team:
        self.teams[team.id] = team
        return team

    def add_tournament(self, tournament: Tournament) -> Tournament:
        self.tournaments[tournament.id] = tournament
        return tournament

    def add_position(self, team_id: str, tournament_id: str, position: int):
        """순위 등록 (팀-대회당 하나, 다시 등록하면 덮어씀)"""
        if tournament_id not in self.tournaments:
            raise KeyError(f"등록되지 않은 대회: {tournament_id}")
        self.positions[(team_id, tournament_id)] = position

    # ==================== 조회 ====================

    def _with_region(self, team: Team) -> Team:
        return team.model_copy(update={"region": self.regions.get(team.region_id)})

    def list_teams(self) -> List[Team]:
        return [self._with_region(t) for t in self.teams.values()]

    def get_team(self, team_id: str) -> Optional[Team]:
        team = self.teams.get(team_id)
        return self._with_region(team) if team else None

    def list_regions(self) -> List[Region]:
        return list(self.regions.values())

    def _positions(self, predicate) -> List[Position]:
        result = []
        for (team_id, tournament_id), position in self.positions.items():
            tournament = self.tournaments[tournament_id]
            if predicate(team_id, tournament):
                result.append(Position(
                    team_id=team_id,
                    tournament_id=tournament_id,
                    position=position,
                    tier=tournament.tier,
                    year=tournament.year,
                ))
        return result

    def get_team_positions(self, team_id: str, year: int) -> List[Position]:
        return self._positions(lambda tid, t: tid == team_id and t.year == year)

    def get_region_positions(self, region_id: str, year: int, tiers: Iterable[Tier]) -> List[Position]:
        tiers = set(tiers)
        region_teams = {t.id for t in self.teams.values() if t.region_id == region_id}
        return self._positions(
            lambda tid, t: tid in region_teams and t.year == year and t.tier in tiers
        )

    # ==================== 설정 ====================

    def get_configuration(self, key: str) -> Optional[Dict[str, Any]]:
        document = self.configuration.get(key)
        return copy.deepcopy(document) if document else None

    def save_configuration(self, key: str, document: Dict[str, Any]) -> None:
        self.configuration[key] = copy.deepcopy(document)

    # ==================== 계산 결과 ====================

    def update_region_coefficient(self, region_id: str, coefficient: float) -> None:
        region = self.regions.get(region_id)
        if region is None:
            logger.warning(f"등록되지 않은 지역의 계수는 저장하지 않음: {region_id}")
            return
        self.regions[region_id] = region.model_copy(update={"coefficient": coefficient})

    def replace_ranking_history(self, year: int, rows: List[Dict[str, Any]]) -> None:
        snapshot = copy.deepcopy(rows)
        with self._lock:
            self.history[year] = snapshot

    def get_ranking_history(self, year: int) -> List[RankingHistoryEntry]:
        with self._lock:
            rows = copy.deepcopy(self.history.get(year, []))

        entries = []
        for row in rows:
            team = self.teams.get(row["team_id"])
            entries.append(RankingHistoryEntry(
                **row,
                team=self._with_region(team) if team else None,
            ))
        return sorted(entries, key=lambda e: e.rank)
