"""
Supabase 데이터베이스 클라이언트 (랭킹 저장소)
"""
from typing import Any, Dict, Iterable, List, Optional

from supabase import create_client, Client
from loguru import logger

from ranking.config import supabase_config, Tables
from ranking.exceptions import ConfigurationUnavailable, DataAccessError, PersistenceFailure
from ranking.models import Position, Region, RankingHistoryEntry, Team, Tier


# 싱글톤 클라이언트
_supabase_client: Optional[Client] = None

TEAM_COLUMNS = "id, name, club, region_id, region:regions(id, name, code, coefficient)"


def get_supabase_client() -> Client:
    """Supabase 클라이언트 인스턴스 반환 (싱글톤)"""
    global _supabase_client
    if _supabase_client is None:
        if not supabase_config.supabase_url or not supabase_config.supabase_key:
            raise ValueError("SUPABASE_URL과 SUPABASE_KEY 환경변수를 설정해주세요")
        _supabase_client = create_client(
            supabase_config.supabase_url,
            supabase_config.supabase_key
        )
    return _supabase_client


def _row_to_team(row: Dict[str, Any]) -> Team:
    region = row.get("region")
    return Team(
        id=str(row["id"]),
        name=row["name"],
        club=row.get("club"),
        region_id=str(row["region_id"]),
        region=Region.model_validate({**region, "id": str(region["id"])}) if region else None,
    )


def _row_to_position(row: Dict[str, Any]) -> Position:
    tournament = row.get("tournament") or {}
    return Position(
        team_id=str(row["team_id"]),
        tournament_id=str(row["tournament_id"]),
        position=int(row["position"]),
        tier=Tier(tournament["type"]),
        year=int(tournament["year"]),
    )


def _row_to_history(row: Dict[str, Any]) -> RankingHistoryEntry:
    team = row.get("team")
    return RankingHistoryEntry(
        team_id=str(row["team_id"]),
        year=int(row["year"]),
        points=float(row["points"]),
        rank=int(row["rank"]),
        details=row.get("details") or {},
        team=_row_to_team(team) if team else None,
    )


def _convert_rows(rows, converter, context: str) -> list:
    """조회 행 변환 (잘못된 행은 DataAccessError)"""
    try:
        return [converter(row) for row in rows or []]
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"{context} 데이터 변환 오류: {e}")
        raise DataAccessError(f"{context} 데이터 형식 오류: {e}") from e


class SupabaseRankingDB:
    """Supabase 랭킹 저장소"""

    def __init__(self, client: Optional[Client] = None):
        self.client: Client = client or get_supabase_client()

    # ==================== 팀/지역 ====================

    def list_teams(self) -> List[Team]:
        """전체 팀 조회 (지역 포함)"""
        try:
            result = self.client.table(Tables.TEAMS).select(TEAM_COLUMNS).order("id").execute()
        except Exception as e:
            logger.error(f"팀 목록 조회 오류: {e}")
            raise DataAccessError(f"팀 목록 조회 실패: {e}") from e
        return _convert_rows(result.data, _row_to_team, "팀 목록")

    def get_team(self, team_id: str) -> Optional[Team]:
        """팀 조회"""
        try:
            result = self.client.table(Tables.TEAMS).select(TEAM_COLUMNS).eq(
                "id", team_id
            ).limit(1).execute()
        except Exception as e:
            logger.error(f"팀 조회 오류 ({team_id}): {e}")
            raise DataAccessError(f"팀 조회 실패: {team_id}") from e

        if result.data:
            return _convert_rows(result.data[:1], _row_to_team, f"팀 {team_id}")[0]
        return None

    def list_regions(self) -> List[Region]:
        """전체 지역 조회"""
        try:
            result = self.client.table(Tables.REGIONS).select("id, name, code, coefficient").execute()
        except Exception as e:
            logger.error(f"지역 목록 조회 오류: {e}")
            raise DataAccessError(f"지역 목록 조회 실패: {e}") from e
        return _convert_rows(
            result.data,
            lambda row: Region.model_validate({**row, "id": str(row["id"])}),
            "지역 목록"
        )

    # ==================== 대회 순위 ====================

    def get_team_positions(self, team_id: str, year: int) -> List[Position]:
        """팀의 해당 연도 대회 순위"""
        try:
            result = self.client.table(Tables.POSITIONS).select(
                "team_id, tournament_id, position, tournament:tournaments!inner(year, type)"
            ).eq("team_id", team_id).eq("tournament.year", year).execute()
        except Exception as e:
            logger.error(f"팀 순위 조회 오류 ({team_id}/{year}): {e}")
            raise DataAccessError(f"팀 순위 조회 실패: {team_id}/{year}") from e
        return _convert_rows(result.data, _row_to_position, f"팀 순위 {team_id}/{year}")

    def get_region_positions(self, region_id: str, year: int, tiers: Iterable[Tier]) -> List[Position]:
        """지역 소속 팀들의 해당 연도 순위 (등급 제한)"""
        tier_values = [Tier(t).value for t in tiers]
        try:
            result = self.client.table(Tables.POSITIONS).select(
                "team_id, tournament_id, position, "
                "team:teams!inner(region_id), tournament:tournaments!inner(year, type)"
            ).eq("team.region_id", region_id).eq(
                "tournament.year", year
            ).in_("tournament.type", tier_values).execute()
        except Exception as e:
            logger.error(f"지역 순위 조회 오류 ({region_id}/{year}): {e}")
            raise DataAccessError(f"지역 순위 조회 실패: {region_id}/{year}") from e
        return _convert_rows(result.data, _row_to_position, f"지역 순위 {region_id}/{year}")

    # ==================== 설정 ====================

    def get_configuration(self, key: str) -> Optional[Dict[str, Any]]:
        """저장된 점수 설정 조회"""
        try:
            result = self.client.table(Tables.CONFIGURATION).select("value").eq(
                "key", key
            ).limit(1).execute()
        except Exception as e:
            raise ConfigurationUnavailable(f"설정 조회 실패: {e}") from e

        if result.data:
            return result.data[0].get("value")
        return None

    def save_configuration(self, key: str, document: Dict[str, Any]) -> None:
        """점수 설정 저장/업데이트"""
        try:
            self.client.table(Tables.CONFIGURATION).upsert(
                {"key": key, "value": document},
                on_conflict="key"
            ).execute()
        except Exception as e:
            logger.error(f"설정 저장 오류: {e}")
            raise PersistenceFailure(f"설정 저장 실패: {e}") from e

    # ==================== 계산 결과 ====================

    def update_region_coefficient(self, region_id: str, coefficient: float) -> None:
        """지역 계수 기록"""
        try:
            self.client.table(Tables.REGIONS).update(
                {"coefficient": coefficient}
            ).eq("id", region_id).execute()
        except Exception as e:
            logger.error(f"지역 계수 저장 오류 ({region_id}): {e}")
            raise PersistenceFailure(f"지역 계수 저장 실패: {region_id}") from e

    def replace_ranking_history(self, year: int, rows: List[Dict[str, Any]]) -> None:
        """
        연도별 랭킹 히스토리 교체

        삭제와 삽입을 DB 함수 한 번으로 처리 (중간에 빈 히스토리가 보이지 않음)
        """
        try:
            self.client.rpc(
                Tables.REPLACE_HISTORY_RPC,
                {"p_year": year, "p_rows": rows}
            ).execute()
        except Exception as e:
            logger.error(f"{year}년 랭킹 히스토리 저장 오류: {e}")
            raise PersistenceFailure(f"{year}년 랭킹 히스토리 저장 실패") from e

        logger.debug(f"{year}년 랭킹 히스토리 {len(rows)}건 저장")

    def get_ranking_history(self, year: int) -> List[RankingHistoryEntry]:
        """연도별 랭킹 히스토리 조회"""
        try:
            result = self.client.table(Tables.RANKING_HISTORY).select(
                f"team_id, year, points, rank, details, team:teams({TEAM_COLUMNS})"
            ).eq("year", year).order("rank").execute()
        except Exception as e:
            logger.error(f"{year}년 랭킹 히스토리 조회 오류: {e}")
            raise DataAccessError(f"{year}년 랭킹 히스토리 조회 실패") from e

        return _convert_rows(result.data, _row_to_history, f"{year}년 랭킹 히스토리")
