"""
랭킹 자동 재계산 스케줄러
"""
import asyncio
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from ranking.config import scheduler_config


class RankingScheduler:
    """매일 정해진 시간에 랭킹을 재계산하는 스케줄러"""

    def __init__(self, recalculate_func: Callable[[], object]):
        """
        Args:
            recalculate_func: 랭킹 재계산 함수 (동기, 스레드에서 실행)
        """
        self.scheduler = AsyncIOScheduler()
        self.recalculate_func = recalculate_func
        self._is_running = False
        self._last_recalc: Optional[datetime] = None
        self._last_error: Optional[str] = None

    def setup(self):
        """스케줄러 설정"""
        if not scheduler_config.recalc_enabled:
            logger.info("자동 재계산 비활성화됨")
            return

        self.scheduler.add_job(
            self._run_recalculation,
            CronTrigger(
                hour=scheduler_config.daily_recalc_hour,
                minute=scheduler_config.daily_recalc_minute
            ),
            id="daily_ranking_recalc",
            name="Daily Ranking Recalculation",
            replace_existing=True
        )
        logger.info(
            f"매일 {scheduler_config.daily_recalc_hour:02d}:{scheduler_config.daily_recalc_minute:02d} "
            f"랭킹 재계산 스케줄 등록"
        )

    async def _run_recalculation(self):
        """랭킹 재계산 실행"""
        if self._is_running:
            logger.warning("이미 랭킹 재계산이 진행 중입니다")
            return

        self._is_running = True
        logger.info("=== 랭킹 재계산 시작 ===")

        try:
            await asyncio.to_thread(self.recalculate_func)
            self._last_recalc = datetime.now()
            self._last_error = None
            logger.info(f"랭킹 재계산 완료: {self._last_recalc}")
        except Exception as e:
            # 다음 스케줄에서 다시 시도
            self._last_error = str(e)
            logger.error(f"랭킹 재계산 오류: {e}")
        finally:
            self._is_running = False

    def start(self):
        """스케줄러 시작"""
        self.setup()
        self.scheduler.start()
        logger.info("스케줄러 시작됨")

    def stop(self):
        """스케줄러 중지"""
        self.scheduler.shutdown()
        logger.info("스케줄러 중지됨")

    def get_status(self) -> dict:
        """스케줄러 상태 조회"""
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None
            })

        return {
            "is_running": self._is_running,
            "last_recalc": self._last_recalc.isoformat() if self._last_recalc else None,
            "last_error": self._last_error,
            "jobs": jobs
        }

    async def run_now(self):
        """즉시 실행"""
        await self._run_recalculation()
