"""
랭킹 엔진 설정
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class SupabaseConfig(BaseSettings):
    """Supabase 설정"""

    supabase_url: str = Field(default="", description="Supabase Project URL")
    supabase_key: str = Field(default="", description="Supabase anon key")

    class Config:
        env_prefix = ""
        case_sensitive = False


class RankingSettings(BaseSettings):
    """랭킹 계산 설정"""

    # 현재 연도 포함 최근 4년
    window_years: int = Field(default=4, description="랭킹 윈도우 (년)")
    max_workers: int = Field(default=1, description="팀 점수 계산 워커 수 (1이면 순차 처리)")
    top_n: int = Field(default=10, description="통계에 포함할 상위 팀 수")
    config_key: str = Field(default="ranking_config", description="저장된 점수 설정 키")

    class Config:
        env_prefix = "RANKING_"
        case_sensitive = False


class SchedulerConfig(BaseSettings):
    """스케줄러 설정"""

    daily_recalc_hour: int = Field(default=4, description="매일 랭킹 재계산 시간")
    daily_recalc_minute: int = Field(default=0, description="매일 랭킹 재계산 분")
    recalc_enabled: bool = Field(default=True, description="자동 재계산 활성화")

    class Config:
        env_prefix = ""
        case_sensitive = False


# 전역 설정 인스턴스
supabase_config = SupabaseConfig()
ranking_settings = RankingSettings()
scheduler_config = SchedulerConfig()


class Tables:
    """Supabase 테이블 / RPC 이름"""

    REGIONS = "regions"
    TEAMS = "teams"
    TOURNAMENTS = "tournaments"
    POSITIONS = "positions"
    CONFIGURATION = "configuration"
    RANKING_HISTORY = "ranking_history"

    # 연도별 히스토리를 한 트랜잭션에서 교체하는 함수
    REPLACE_HISTORY_RPC = "replace_ranking_history"
