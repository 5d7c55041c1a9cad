"""
랭킹 데이터 모델 정의

- 저장소 레코드: Pydantic 모델 (Region, Team, Tournament, Position, ScoringConfiguration)
- 계산 결과: 데이터클래스 (YearScore, RankingEntry)
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Tier(str, Enum):
    """대회 등급"""
    CE1 = "CE1"            # 1부 리그
    CE2 = "CE2"            # 2부 리그
    REGIONAL = "REGIONAL"  # 지역 대회


# 지역 계수 계산에 들어가는 등급 (지역 대회 제외)
COEFFICIENT_TIERS = (Tier.CE1, Tier.CE2)


# =====================================================
# 저장소 레코드
# =====================================================

class Region(BaseModel):
    """지역"""
    id: str = Field(..., description="지역 ID")
    name: str = Field(..., description="지역명")
    code: Optional[str] = Field(None, description="지역 코드")
    coefficient: float = Field(default=1.0, description="마지막으로 계산된 지역 계수")


class Team(BaseModel):
    """팀"""
    id: str = Field(..., description="팀 ID")
    name: str = Field(..., description="팀명")
    club: Optional[str] = Field(None, description="클럽명")
    region_id: str = Field(..., description="소속 지역 ID")
    region: Optional[Region] = Field(None, description="소속 지역")


class Tournament(BaseModel):
    """대회"""
    id: str = Field(..., description="대회 ID")
    name: str = Field(..., description="대회명")
    year: int = Field(..., description="개최 연도")
    tier: Tier = Field(..., description="대회 등급")
    region_id: Optional[str] = Field(None, description="지역 대회의 지역 ID")


class Position(BaseModel):
    """대회 최종 순위 (대회 연도/등급 포함)"""
    team_id: str = Field(..., description="팀 ID")
    tournament_id: str = Field(..., description="대회 ID")
    position: int = Field(..., description="최종 순위 (1 = 우승)")
    tier: Tier = Field(..., description="대회 등급")
    year: int = Field(..., description="대회 연도")


class RegionalCoefficientConfig(BaseModel):
    """지역 계수 범위"""
    floor: float = Field(default=0.8, description="하한")
    ceiling: float = Field(default=1.2, description="상한")
    increment: float = Field(default=0.01, description="포인트당 증가량")

    @model_validator(mode="after")
    def check_bounds(self):
        if self.floor >= self.ceiling:
            raise ValueError("floor must be lower than ceiling")
        if self.increment <= 0:
            raise ValueError("increment must be positive")
        return self


class ScoringConfiguration(BaseModel):
    """
    점수 설정

    저장 시에는 camelCase 키 문서로 직렬화 (ce1Points, temporalWeights ...)
    """
    ce1_points: Dict[int, float] = Field(..., alias="ce1Points", description="1부 순위별 포인트")
    ce2_points: Dict[int, float] = Field(..., alias="ce2Points", description="2부 순위별 포인트")
    regional_points: Dict[int, float] = Field(..., alias="regionalPoints", description="지역 대회 순위별 포인트")
    temporal_weights: Dict[int, float] = Field(..., alias="temporalWeights", description="연도 차이별 가중치")
    regional_coefficient: RegionalCoefficientConfig = Field(
        default_factory=RegionalCoefficientConfig,
        alias="regionalCoefficient",
        description="지역 계수 범위",
    )

    class Config:
        populate_by_name = True

    @field_validator("temporal_weights")
    @classmethod
    def check_weights(cls, v: Dict[int, float]) -> Dict[int, float]:
        for offset, weight in v.items():
            if offset < 0 or not 0 <= weight <= 1:
                raise ValueError(f"invalid temporal weight {offset}: {weight}")
        return v

    def points_table(self, tier: Tier) -> Dict[int, float]:
        """등급별 포인트 테이블"""
        if tier == Tier.CE1:
            return self.ce1_points
        if tier == Tier.CE2:
            return self.ce2_points
        return self.regional_points

    def to_document(self) -> Dict[str, Any]:
        """저장용 문서 (camelCase, JSON 호환)"""
        return self.model_dump(by_alias=True, mode="json")


class RankingFilters(BaseModel):
    """랭킹 조회 필터"""
    year: Optional[int] = Field(None, description="연도 (현재 연도가 아니면 히스토리 조회)")
    region_id: Optional[str] = Field(None, description="지역 필터")
    limit: Optional[int] = Field(None, ge=1, le=100, description="페이지 크기")
    offset: Optional[int] = Field(None, ge=0, description="시작 위치")


class RankingHistoryEntry(BaseModel):
    """연도별 랭킹 스냅샷 행"""
    team_id: str = Field(..., description="팀 ID")
    year: int = Field(..., description="계산 연도")
    points: float = Field(..., description="가중 포인트 합계")
    rank: int = Field(..., description="순위")
    details: Dict[str, Any] = Field(default_factory=dict, description="연도별 상세")
    team: Optional[Team] = Field(None, description="팀 정보")


# =====================================================
# 계산 결과
# =====================================================

@dataclass
class YearScore:
    """팀-연도 점수 상세"""
    team_id: str
    year: int
    ce_points: float = 0.0
    regional_points: float = 0.0
    regional_coefficient: float = 1.0
    temporal_weight: float = 0.0
    weighted_points: float = 0.0
    is_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YearScore":
        return cls(
            team_id=str(data["team_id"]),
            year=int(data["year"]),
            ce_points=float(data.get("ce_points", 0.0)),
            regional_points=float(data.get("regional_points", 0.0)),
            regional_coefficient=float(data.get("regional_coefficient", 1.0)),
            temporal_weight=float(data.get("temporal_weight", 0.0)),
            weighted_points=float(data.get("weighted_points", 0.0)),
            is_fallback=bool(data.get("is_fallback", False)),
        )


@dataclass
class TeamSummary:
    """랭킹에 표시되는 팀 정보"""
    id: str
    name: str
    club: Optional[str] = None
    region_id: Optional[str] = None
    region_name: Optional[str] = None
    region_code: Optional[str] = None

    @classmethod
    def from_team(cls, team: Team) -> "TeamSummary":
        region = team.region
        return cls(
            id=team.id,
            name=team.name,
            club=team.club,
            region_id=team.region_id,
            region_name=region.name if region else None,
            region_code=region.code if region else None,
        )


@dataclass
class RankingEntry:
    """팀 랭킹 정보"""
    rank: int
    team: TeamSummary
    total_points: float
    year_breakdown: Dict[int, YearScore] = field(default_factory=dict)

    def breakdown_document(self) -> Dict[str, Any]:
        """히스토리 저장용 연도별 상세 (JSON 키는 문자열)"""
        return {str(year): score.to_dict() for year, score in self.year_breakdown.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "team": asdict(self.team),
            "total_points": self.total_points,
            "year_breakdown": self.breakdown_document(),
        }


@dataclass
class ConfigurationReport:
    """설정 검증 결과"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return "valid configuration" if self.is_valid else "configuration has errors"


@dataclass
class RankingStats:
    """랭킹 통계"""
    total_teams: int
    year: int
    last_updated: datetime
    average_points: float
    top_teams: List[RankingEntry]
    region_breakdown: Dict[str, Dict[str, Any]]
