"""
랭킹 스키마 확인 / 마이그레이션 안내 스크립트

Supabase Python 클라이언트는 DDL을 직접 실행하지 못하므로
테이블이 없으면 SQL Editor에서 실행할 마이그레이션 SQL을 출력
"""
import sys
from pathlib import Path
from typing import List

from loguru import logger

from database.supabase_client import get_supabase_client
from ranking.config import Tables

MIGRATION_FILE = Path(__file__).parent / "migrations" / "001_ranking_schema.sql"

REQUIRED_TABLES = (
    Tables.REGIONS,
    Tables.TEAMS,
    Tables.TOURNAMENTS,
    Tables.POSITIONS,
    Tables.CONFIGURATION,
    Tables.RANKING_HISTORY,
)


def find_missing_tables(client) -> List[str]:
    """존재하지 않는 랭킹 테이블 목록"""
    missing = []
    for table in REQUIRED_TABLES:
        try:
            client.table(table).select("id").limit(1).execute()
        except Exception as e:
            logger.warning(f"{table} 테이블 확인 실패: {e}")
            missing.append(table)
    return missing


def run_migration() -> bool:
    """스키마 확인 후 필요하면 마이그레이션 SQL 출력"""
    if not MIGRATION_FILE.exists():
        logger.error(f"마이그레이션 파일을 찾을 수 없습니다: {MIGRATION_FILE}")
        return False

    missing = find_missing_tables(get_supabase_client())
    if not missing:
        logger.info("✅ 랭킹 테이블이 모두 존재합니다")
        return True

    logger.info(f"생성이 필요한 테이블: {', '.join(missing)}")
    logger.info("=" * 60)
    logger.info("Supabase Dashboard → SQL Editor 에서 아래 SQL을 실행해주세요")
    logger.info("=" * 60)
    print("\n" + MIGRATION_FILE.read_text(encoding="utf-8") + "\n")
    return False


if __name__ == "__main__":
    logger.remove()
    logger.add(sys.stdout, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}")
    sys.exit(0 if run_migration() else 1)
