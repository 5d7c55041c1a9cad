"""
팀 랭킹 시스템

최근 4년 대회 결과 + 지역 계수 + 연도 가중치 기반 랭킹 계산 모듈
"""
from .calculator import (
    RankingCalculator,
    ranking_window,
    RANKING_WINDOW_YEARS,
)
from .coefficient import RegionalCoefficientCalculator, clamp_coefficient
from .exceptions import (
    RankingError,
    NotFound,
    DataAccessError,
    ConfigurationUnavailable,
    PersistenceFailure,
    InvalidConfiguration,
)
from .models import (
    Tier,
    Region,
    Team,
    Tournament,
    Position,
    ScoringConfiguration,
    RankingFilters,
    RankingHistoryEntry,
    RankingEntry,
    RankingStats,
    YearScore,
)
from .scorer import TeamYearScorer, points_for_position, fallback_year_score
from .scoring_config import ConfigurationProvider, default_configuration

__all__ = [
    "RankingCalculator",
    "ranking_window",
    "RANKING_WINDOW_YEARS",
    "RegionalCoefficientCalculator",
    "clamp_coefficient",
    "RankingError",
    "NotFound",
    "DataAccessError",
    "ConfigurationUnavailable",
    "PersistenceFailure",
    "InvalidConfiguration",
    "Tier",
    "Region",
    "Team",
    "Tournament",
    "Position",
    "ScoringConfiguration",
    "RankingFilters",
    "RankingHistoryEntry",
    "RankingEntry",
    "RankingStats",
    "YearScore",
    "TeamYearScorer",
    "points_for_position",
    "fallback_year_score",
    "ConfigurationProvider",
    "default_configuration",
]
