"""
Pytest configuration and fixtures for team ranking tests
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.memory_store import InMemoryRankingStore
from ranking import RankingCalculator


CURRENT_YEAR = 2024


@pytest.fixture(scope="session")
def current_year():
    """기준 연도 (시스템 시계 대신 고정)"""
    return CURRENT_YEAR


@pytest.fixture(scope="function")
def sample_ranking_data():
    """
    기본 시나리오 데이터

    - 서울 팀 A: 올해 1부 우승 (1000pt)
    - 부산 팀 B: 올해 지역 대회 우승 (140pt × 지역 계수 0.8 = 112pt)
    - 제주 팀 C: 기록 없음
    """
    return {
        "regions": [
            {"id": "seoul", "name": "서울", "code": "SEO"},
            {"id": "busan", "name": "부산", "code": "BUS"},
            {"id": "jeju", "name": "제주", "code": "JEJ"},
        ],
        "teams": [
            {"id": "team-a", "name": "서울 유나이티드", "club": "서울FC", "region_id": "seoul"},
            {"id": "team-b", "name": "부산 하버", "club": "부산SC", "region_id": "busan"},
            {"id": "team-c", "name": "제주 아일랜드", "region_id": "jeju"},
        ],
        "tournaments": [
            {"id": "ce1-2024", "name": "2024 1부 리그", "year": 2024, "tier": "CE1"},
            {"id": "reg-busan-2024", "name": "2024 부산 지역 대회", "year": 2024,
             "tier": "REGIONAL", "region_id": "busan"},
        ],
        "positions": [
            {"team_id": "team-a", "tournament_id": "ce1-2024", "position": 1},
            {"team_id": "team-b", "tournament_id": "reg-busan-2024", "position": 1},
        ],
    }


@pytest.fixture(scope="function")
def store(sample_ranking_data):
    """시나리오 데이터가 로드된 메모리 저장소"""
    store = InMemoryRankingStore()
    store.load_from_data(sample_ranking_data)
    return store


@pytest.fixture(scope="function")
def empty_store():
    """빈 메모리 저장소"""
    return InMemoryRankingStore()


@pytest.fixture(scope="function")
def calculator(store):
    """순차 처리 랭킹 계산기"""
    return RankingCalculator(store, max_workers=1)
