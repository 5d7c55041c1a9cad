"""
Unit tests for RankingCalculator

Tests cover:
1. Ranking order, tie-break and gapless ranks
2. Per team-year fallback and persistence failures
3. Ranking history (replace per year, past years frozen)
4. Query surface (filters, stats, team / compare / top)
"""

import copy
import threading
import time

import pytest

from database.memory_store import InMemoryRankingStore
from ranking import (
    DataAccessError,
    NotFound,
    PersistenceFailure,
    RankingCalculator,
    RankingFilters,
    ranking_window,
)


class FlakyStore(InMemoryRankingStore):
    """지정한 (팀, 연도) 조회에서 DataAccessError 발생"""

    def __init__(self, failing):
        super().__init__()
        self.failing = set(failing)

    def get_team_positions(self, team_id, year):
        if (team_id, year) in self.failing:
            raise DataAccessError("timeout")
        return super().get_team_positions(team_id, year)


class ReadOnlyStore(InMemoryRankingStore):
    """히스토리 저장이 항상 실패하는 저장소"""

    def replace_ranking_history(self, year, rows):
        raise PersistenceFailure("write refused")


class RecordingStore(InMemoryRankingStore):
    """히스토리 저장 시작/종료 시점을 기록하는 저장소"""

    def __init__(self):
        super().__init__()
        self.events = []

    def replace_ranking_history(self, year, rows):
        self.events.append(("enter", year))
        time.sleep(0.05)
        super().replace_ranking_history(year, rows)
        self.events.append(("exit", year))


class HistoryOutageStore(InMemoryRankingStore):
    """지정한 연도의 히스토리 조회에서 DataAccessError 발생"""

    def __init__(self, failing_years):
        super().__init__()
        self.failing_years = set(failing_years)

    def get_ranking_history(self, year):
        if year in self.failing_years:
            raise DataAccessError("history timeout")
        return super().get_ranking_history(year)


def team_ids(ranking):
    return [e.team.id for e in ranking]


# =============================================================================
# compute_ranking Tests
# =============================================================================

class TestComputeRanking:
    """Tests for compute_ranking"""

    def test_window(self):
        assert ranking_window(2024) == [2024, 2023, 2022, 2021]

    def test_top_division_beats_weak_regional(self, calculator, current_year):
        """1부 우승(1000) 팀이 약한 지역 우승(112) 팀보다 위"""
        ranking = calculator.compute_ranking(current_year)

        assert team_ids(ranking) == ["team-a", "team-b", "team-c"]
        assert ranking[0].total_points == pytest.approx(1000)
        assert ranking[1].total_points == pytest.approx(112)

    def test_team_without_results_is_ranked_last(self, calculator, current_year):
        """기록 없는 팀도 0점으로 포함"""
        ranking = calculator.compute_ranking(current_year)
        last = ranking[-1]

        assert last.team.id == "team-c"
        assert last.total_points == 0
        assert sorted(last.year_breakdown) == [2021, 2022, 2023, 2024]

    def test_ranks_are_gapless_and_sorted(self, store, current_year):
        """순위는 1..N, 포인트 내림차순"""
        store.load_from_data({
            "teams": [
                {"id": "team-d", "name": "대전", "region_id": "jeju"},
                {"id": "team-e", "name": "광주", "region_id": "jeju"},
            ],
            "tournaments": [{"id": "ce2-2023", "name": "2023 2부", "year": 2023, "tier": "CE2"}],
            "positions": [
                {"team_id": "team-d", "tournament_id": "ce2-2023", "position": 1},
                {"team_id": "team-e", "tournament_id": "ce2-2023", "position": 5},
            ],
        })
        ranking = RankingCalculator(store).compute_ranking(current_year)

        assert [e.rank for e in ranking] == list(range(1, len(ranking) + 1))
        points = [e.total_points for e in ranking]
        assert points == sorted(points, reverse=True)

    def test_tie_break_by_team_id(self, empty_store, current_year):
        """동점이면 팀 ID 오름차순, 순위는 서로 다름"""
        empty_store.load_from_data({
            "regions": [{"id": "seoul", "name": "서울"}],
            "teams": [
                {"id": "tie-b", "name": "B", "region_id": "seoul"},
                {"id": "tie-a", "name": "A", "region_id": "seoul"},
            ],
            "tournaments": [
                {"id": "cup-1", "name": "1부 A조", "year": 2024, "tier": "CE1"},
                {"id": "cup-2", "name": "1부 B조", "year": 2024, "tier": "CE1"},
            ],
            "positions": [
                {"team_id": "tie-b", "tournament_id": "cup-1", "position": 1},
                {"team_id": "tie-a", "tournament_id": "cup-2", "position": 1},
            ],
        })
        ranking = RankingCalculator(empty_store).compute_ranking(current_year)

        assert team_ids(ranking) == ["tie-a", "tie-b"]
        assert [e.rank for e in ranking] == [1, 2]

    def test_results_older_than_window_ignored(self, store, current_year):
        store.load_from_data({
            "tournaments": [{"id": "ce1-2019", "name": "2019 1부", "year": 2019, "tier": "CE1"}],
            "positions": [{"team_id": "team-c", "tournament_id": "ce1-2019", "position": 1}],
        })
        ranking = RankingCalculator(store).compute_ranking(current_year)
        assert ranking[-1].team.id == "team-c"
        assert ranking[-1].total_points == 0

    def test_idempotent(self, calculator, store, current_year):
        """같은 데이터로 두 번 계산하면 결과와 히스토리가 동일"""
        first = [e.to_dict() for e in calculator.compute_ranking(current_year)]
        first_history = copy.deepcopy(store.history[current_year])

        second = [e.to_dict() for e in calculator.compute_ranking(current_year)]

        assert first == second
        assert store.history[current_year] == first_history

    def test_parallel_matches_sequential(self, store, current_year):
        """워커 수와 관계없이 같은 결과"""
        sequential = RankingCalculator(store, max_workers=1).compute_ranking(current_year)
        parallel = RankingCalculator(store, max_workers=4).compute_ranking(current_year)
        assert [e.to_dict() for e in parallel] == [e.to_dict() for e in sequential]

    def test_region_coefficients_persisted(self, calculator, store, current_year):
        """올해 지역 계수가 지역에 기록됨"""
        calculator.compute_ranking(current_year)

        assert store.regions["seoul"].coefficient == 1.2
        assert store.regions["busan"].coefficient == 0.8
        assert store.regions["jeju"].coefficient == 0.8


# =============================================================================
# Failure Handling Tests
# =============================================================================

class TestFailureHandling:
    """Tests for fallback entries and persistence failures"""

    def test_failed_year_is_zero_filled(self, sample_ranking_data, current_year):
        """한 해 조회 실패는 0점 대체, 나머지 연도/팀은 계속 계산"""
        store = FlakyStore({("team-a", 2023), ("team-b", 2024)})
        store.load_from_data(sample_ranking_data)

        ranking = RankingCalculator(store).compute_ranking(current_year)
        by_id = {e.team.id: e for e in ranking}

        fallback = by_id["team-a"].year_breakdown[2023]
        assert fallback.is_fallback
        assert fallback.weighted_points == 0
        assert fallback.regional_coefficient == 1.0
        assert fallback.temporal_weight == 0.8
        assert by_id["team-a"].total_points == pytest.approx(1000)

        assert by_id["team-b"].total_points == 0
        assert by_id["team-b"].year_breakdown[2024].is_fallback
        assert len(ranking) == 3

    def test_team_with_unknown_region_is_zero_filled(self, store, current_year):
        """지역이 없는 팀은 연도별 0점 처리 후에도 순위에 포함"""
        store.load_from_data({
            "teams": [{"id": "team-x", "name": "미등록 지역 팀", "region_id": "atlantis"}],
            "tournaments": [{"id": "ce2-2024", "name": "2024 2부", "year": 2024, "tier": "CE2"}],
            "positions": [{"team_id": "team-x", "tournament_id": "ce2-2024", "position": 1}],
        })
        ranking = RankingCalculator(store, max_workers=1).compute_ranking(current_year)
        by_id = {e.team.id: e for e in ranking}

        assert len(ranking) == 4
        assert by_id["team-x"].total_points == 0
        assert all(score.is_fallback for score in by_id["team-x"].year_breakdown.values())
        assert "atlantis" not in store.regions

    def test_persistence_failure_propagates(self, sample_ranking_data, current_year):
        store = ReadOnlyStore()
        store.load_from_data(sample_ranking_data)

        with pytest.raises(PersistenceFailure):
            RankingCalculator(store).compute_ranking(current_year)

    def test_recalculate_rethrows(self, sample_ranking_data, current_year):
        """관리자 재계산도 저장 실패를 호출자에게 전달"""
        store = ReadOnlyStore()
        store.load_from_data(sample_ranking_data)

        with pytest.raises(PersistenceFailure):
            RankingCalculator(store).recalculate_ranking(current_year)

    def test_recalculate_returns_ranking(self, calculator, current_year):
        ranking = calculator.recalculate_ranking(current_year)
        assert len(ranking) == 3


# =============================================================================
# Concurrency Tests
# =============================================================================

class TestConcurrentRuns:
    """Tests for runs of the same year started concurrently"""

    def test_same_year_runs_do_not_overlap(self, sample_ranking_data, current_year):
        """같은 연도의 히스토리 교체는 겹치지 않음"""
        store = RecordingStore()
        store.load_from_data(sample_ranking_data)
        calculator = RankingCalculator(store, max_workers=1)
        results = []

        threads = [
            threading.Thread(target=lambda: results.append(calculator.compute_ranking(current_year)))
            for _ in range(2)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert [kind for kind, _ in store.events] == ["enter", "exit", "enter", "exit"]
        assert len(results) == 2
        assert [e.to_dict() for e in results[0]] == [e.to_dict() for e in results[1]]


# =============================================================================
# History Tests
# =============================================================================

class TestRankingHistory:
    """Tests for year-scoped ranking history"""

    def test_history_rows(self, calculator, store, current_year):
        calculator.compute_ranking(current_year)
        rows = store.history[current_year]

        assert [r["team_id"] for r in rows] == ["team-a", "team-b", "team-c"]
        assert rows[0]["rank"] == 1
        assert rows[0]["year"] == current_year
        assert set(rows[0]["details"]) == {"2021", "2022", "2023", "2024"}

    def test_history_replaced_per_year(self, calculator, store, current_year):
        """같은 연도는 최신 계산으로 교체"""
        calculator.compute_ranking(current_year)
        store.load_from_data({
            "tournaments": [{"id": "ce1-2024-b", "name": "2024 1부 후반기", "year": 2024, "tier": "CE1"}],
            "positions": [{"team_id": "team-c", "tournament_id": "ce1-2024-b", "position": 1}],
        })
        calculator.compute_ranking(current_year)

        rows = store.history[current_year]
        assert len(rows) == 3
        assert {r["team_id"] for r in rows if r["rank"] <= 2} == {"team-a", "team-c"}

    def test_past_year_snapshot_untouched(self, calculator, store, current_year):
        """올해 재계산 후에도 지난 연도 스냅샷은 그대로"""
        past_year = current_year - 1
        store.load_from_data({
            "tournaments": [{"id": "ce1-2023", "name": "2023 1부", "year": 2023, "tier": "CE1"}],
            "positions": [{"team_id": "team-c", "tournament_id": "ce1-2023", "position": 1}],
        })
        snapshot = [e.to_dict() for e in calculator.compute_ranking(past_year)]

        store.load_from_data({
            "tournaments": [{"id": "ce2-2023", "name": "2023 2부", "year": 2023, "tier": "CE2"}],
            "positions": [{"team_id": "team-b", "tournament_id": "ce2-2023", "position": 1}],
        })
        calculator.compute_ranking(current_year)

        historical = calculator.get_ranking(RankingFilters(year=past_year), current_year=current_year)
        assert [e.to_dict() for e in historical] == snapshot
        assert historical[0].team.id == "team-c"

    def test_past_year_without_history(self, calculator, current_year):
        assert calculator.get_ranking(RankingFilters(year=2000), current_year=current_year) == []


# =============================================================================
# Query Tests
# =============================================================================

class TestRankingQueries:
    """Tests for the query surface"""

    def test_region_filter(self, calculator, current_year):
        """지역 필터 적용 후에도 전체 순위 유지"""
        ranking = calculator.get_ranking(RankingFilters(region_id="busan"), current_year=current_year)
        assert team_ids(ranking) == ["team-b"]
        assert ranking[0].rank == 2

    def test_limit_and_offset(self, calculator, current_year):
        page = calculator.get_ranking(RankingFilters(limit=1, offset=1), current_year=current_year)
        assert team_ids(page) == ["team-b"]

    def test_offset_without_limit(self, calculator, current_year):
        page = calculator.get_ranking(RankingFilters(offset=2), current_year=current_year)
        assert team_ids(page) == ["team-c"]

    def test_filters_validated(self):
        with pytest.raises(ValueError):
            RankingFilters(limit=0)

    def test_stats(self, calculator, current_year):
        stats = calculator.get_ranking_stats(current_year, top_n=2)

        assert stats.total_teams == 3
        assert stats.year == current_year
        assert stats.average_points == pytest.approx((1000 + 112) / 3)
        assert team_ids(stats.top_teams) == ["team-a", "team-b"]
        assert stats.region_breakdown["부산"]["teams"] == 1
        assert stats.region_breakdown["부산"]["total_points"] == pytest.approx(112)
        assert stats.region_breakdown["제주"]["average_points"] == 0

    def test_stats_empty(self, empty_store, current_year):
        stats = RankingCalculator(empty_store).get_ranking_stats(current_year)
        assert stats.total_teams == 0
        assert stats.average_points == 0
        assert stats.region_breakdown == {}

    def test_team_ranking(self, calculator, current_year):
        assert calculator.get_team_ranking("team-b", current_year=current_year).rank == 2

    def test_team_ranking_not_found(self, calculator, current_year):
        with pytest.raises(NotFound):
            calculator.get_team_ranking("ghost", current_year=current_year)

    def test_team_evolution(self, calculator, store, current_year):
        """연도별 순위 변화 (기록 없는 연도는 제외, 오래된 연도부터)"""
        store.load_from_data({
            "tournaments": [{"id": "ce1-2023", "name": "2023 1부", "year": 2023, "tier": "CE1"}],
            "positions": [{"team_id": "team-b", "tournament_id": "ce1-2023", "position": 1}],
        })
        calculator.compute_ranking(current_year - 1)

        evolution = calculator.get_team_evolution("team-b", current_year=current_year)

        assert [item["year"] for item in evolution] == [current_year - 1, current_year]
        assert evolution[0]["rank"] == 1
        assert evolution[1]["points"] == pytest.approx(800 + 112)

    def test_team_evolution_skips_unreadable_year(self, sample_ranking_data, current_year):
        """히스토리 조회에 실패한 연도는 건너뛰고 나머지 연도 반환"""
        store = HistoryOutageStore({current_year - 1})
        store.load_from_data(sample_ranking_data)
        calculator = RankingCalculator(store, max_workers=1)
        calculator.compute_ranking(current_year - 2)
        calculator.compute_ranking(current_year - 1)

        evolution = calculator.get_team_evolution("team-b", current_year=current_year)

        assert [item["year"] for item in evolution] == [current_year - 2, current_year]

    def test_compare_teams(self, calculator, current_year):
        """요청 순서 유지, 랭킹에 없는 팀은 제외"""
        compared = calculator.compare_teams(["team-c", "team-a", "ghost"], current_year=current_year)
        assert team_ids(compared) == ["team-c", "team-a"]

    @pytest.mark.parametrize("team_ids_arg", [[], [f"t{i}" for i in range(11)]])
    def test_compare_teams_limits(self, calculator, team_ids_arg):
        with pytest.raises(ValueError):
            calculator.compare_teams(team_ids_arg)

    def test_top_teams(self, calculator, current_year):
        assert team_ids(calculator.get_top_teams(limit=2, current_year=current_year)) == ["team-a", "team-b"]
        assert len(calculator.get_top_teams(limit=0, current_year=current_year)) == 1
        assert len(calculator.get_top_teams(limit=500, current_year=current_year)) == 3
