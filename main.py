"""
팀 랭킹 엔진 메인
"""
import asyncio
import json
import sys
from typing import Optional
from loguru import logger

from database.memory_store import InMemoryRankingStore
from database.store import RankingStore
from database.supabase_client import SupabaseRankingDB
from ranking import RankingCalculator, RankingError, RankingFilters
from ranking.config import ranking_settings
from scheduler.scheduler import RankingScheduler


# 로깅 설정
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/ranking_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


def create_store(data_file: Optional[str] = None) -> RankingStore:
    """저장소 생성 (데이터 파일이 있으면 메모리 저장소)"""
    if data_file:
        logger.info(f"오프라인 모드: {data_file}")
        return InMemoryRankingStore.from_json_file(data_file)
    return SupabaseRankingDB()


def print_json(data):
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def run_config_action(calculator: RankingCalculator, action: str, file: Optional[str]):
    """점수 설정 관리"""
    provider = calculator.config_provider

    if action == "show":
        print_json(provider.get_configuration().to_document())

    elif action == "validate":
        report = provider.validate_configuration()
        print(f"\n=== 설정 검증: {report.message} ===")
        for error in report.errors:
            print(f"  [오류] {error}")
        for warning in report.warnings:
            print(f"  [경고] {warning}")
        if not report.is_valid:
            sys.exit(1)

    elif action == "reset":
        provider.reset_configuration()
        logger.info("점수 설정을 기본값으로 초기화했습니다")

    elif action == "backup":
        backup = provider.backup_configuration()
        if file:
            with open(file, "w", encoding="utf-8") as f:
                json.dump(backup, f, ensure_ascii=False, indent=2)
            logger.info(f"설정 백업 저장: {file}")
        else:
            print_json(backup)

    elif action == "restore":
        if not file:
            logger.error("--file 옵션으로 백업 파일을 지정해주세요")
            sys.exit(1)
        with open(file, "r", encoding="utf-8") as f:
            backup = json.load(f)
        provider.restore_configuration(backup.get("configuration", backup))
        logger.info(f"설정 복원 완료: {file}")


async def main():
    """메인 함수"""
    import argparse

    parser = argparse.ArgumentParser(description="팀 랭킹 엔진")
    parser.add_argument(
        "--mode",
        choices=["recalculate", "ranking", "stats", "history", "team", "config", "scheduler"],
        default="recalculate",
        help="실행 모드"
    )
    parser.add_argument("--data", type=str, help="오프라인 데이터 JSON 파일 (없으면 Supabase 사용)")
    parser.add_argument("--year", type=int, help="조회 연도 (history/ranking/team)")
    parser.add_argument("--current-year", type=int, help="기준 연도 (기본: 올해)")
    parser.add_argument("--region", type=str, help="지역 ID 필터")
    parser.add_argument("--limit", type=int, help="조회 개수")
    parser.add_argument("--offset", type=int, help="시작 위치")
    parser.add_argument("--team", type=str, help="팀 ID (team 모드)")
    parser.add_argument(
        "--config-action",
        choices=["show", "validate", "reset", "backup", "restore"],
        default="show",
        help="설정 관리 작업 (config 모드)"
    )
    parser.add_argument("--file", type=str, help="설정 백업/복원 파일")
    parser.add_argument("--workers", type=int, help="팀 점수 계산 워커 수")
    parser.add_argument("--json", action="store_true", help="JSON 출력")

    args = parser.parse_args()

    store = create_store(args.data)
    calculator = RankingCalculator(
        store,
        max_workers=args.workers,
        window_years=ranking_settings.window_years,
    )

    try:
        if args.mode == "recalculate":
            ranking = calculator.recalculate_ranking(args.current_year)
            if args.json:
                print_json([e.to_dict() for e in ranking])
            else:
                calculator.print_ranking_summary(ranking, "랭킹 재계산 결과")
                print(f"\n총 {len(ranking)}팀 처리")

        elif args.mode == "ranking":
            filters = RankingFilters(
                year=args.year,
                region_id=args.region,
                limit=args.limit,
                offset=args.offset,
            )
            ranking = calculator.get_ranking(filters, current_year=args.current_year)
            if args.json:
                print_json([e.to_dict() for e in ranking])
            else:
                calculator.print_ranking_summary(ranking, "팀 랭킹", top_n=len(ranking))

        elif args.mode == "stats":
            stats = calculator.get_ranking_stats(args.current_year)
            print(f"\n=== {stats.year}년 랭킹 통계 ===")
            print(f"  팀 수: {stats.total_teams}")
            print(f"  평균 포인트: {stats.average_points:.1f}")
            for region in sorted(stats.region_breakdown.values(), key=lambda r: -r["total_points"]):
                print(f"  {region['name']}: {region['teams']}팀, 평균 {region['average_points']:.1f}")
            calculator.print_ranking_summary(stats.top_teams, "상위 팀")

        elif args.mode == "history":
            if args.year is None:
                logger.error("--year 옵션이 필요합니다")
                sys.exit(1)
            ranking = calculator.get_historical_ranking(args.year)
            if args.json:
                print_json([e.to_dict() for e in ranking])
            else:
                calculator.print_ranking_summary(ranking, f"{args.year}년 랭킹 히스토리", top_n=len(ranking))

        elif args.mode == "team":
            if not args.team:
                logger.error("--team 옵션이 필요합니다")
                sys.exit(1)
            evolution = calculator.get_team_evolution(args.team, current_year=args.current_year)
            print_json([
                {
                    "year": item["year"],
                    "rank": item["rank"],
                    "points": item["points"],
                }
                for item in evolution
            ])

        elif args.mode == "config":
            run_config_action(calculator, args.config_action, args.file)

        elif args.mode == "scheduler":
            # 스케줄러 모드
            scheduler = RankingScheduler(recalculate_func=calculator.recalculate_ranking)
            scheduler.start()

            logger.info("스케줄러 모드로 실행 중... (Ctrl+C로 종료)")

            try:
                # 무한 대기
                while True:
                    await asyncio.sleep(60)
                    status = scheduler.get_status()
                    logger.debug(f"스케줄러 상태: {status}")
            except (KeyboardInterrupt, asyncio.CancelledError):
                scheduler.stop()
                logger.info("스케줄러 종료됨")

    except RankingError as e:
        logger.error(f"실행 오류: {e}")
        sys.exit(1)


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
