"""
调度器核心模块单元测试
"""

import pytest
import asyncio
import logging
from unittest.mock import AsyncMock
from core.scheduler import Scheduler, get_scheduler


class TestScheduler:
    """任务调度器测试"""

    @pytest.mark.asyncio
    async def test_schedule_periodic(self):
        """测试周期性任务调度"""
        scheduler = Scheduler()
        scheduler.start()

        mock_func = AsyncMock()
        # 设置一个短间隔进行测试
        await scheduler.schedule_periodic(mock_func, 0.1, name="test_task")

        # 等待任务执行几次
        await asyncio.sleep(0.35)

        await scheduler.stop()

        # 验证是否至少执行了 2 次 (0s, 0.1s, 0.2s, 0.3s)
        assert mock_func.call_count >= 2

    @pytest.mark.asyncio
    async def test_failure_waits_for_next_period(self, caplog):
        """失败后不重试，等待下个周期，任务不退出"""
        scheduler = Scheduler()
        scheduler.start()

        mock_func = AsyncMock(side_effect=RuntimeError("boom"))
        with caplog.at_level(logging.ERROR, logger="core.scheduler"):
            await scheduler.schedule_periodic(mock_func, 0.1, name="failing_task")
            await asyncio.sleep(0.05)

            # 首次失败后在一个周期内不会再次执行
            assert mock_func.call_count == 1
            assert not scheduler.tasks[0].done()

            await asyncio.sleep(0.1)
            await scheduler.stop()

        assert mock_func.call_count >= 2
        assert any("定期任务执行失败 failing_task" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_scheduler_stop(self):
        """测试调度器停止"""
        scheduler = Scheduler()
        scheduler.start()

        mock_func = AsyncMock()
        await scheduler.schedule_periodic(mock_func, 10, name="test_long_task")

        assert len(scheduler.tasks) == 1
        assert scheduler.running is True

        tasks = list(scheduler.tasks)
        await scheduler.stop()

        assert scheduler.running is False
        assert scheduler.tasks == []
        for task in tasks:
            assert task.cancelled() or task.done()

    def test_get_scheduler_singleton(self):
        """测试获取调度器单例"""
        s1 = get_scheduler()
        s2 = get_scheduler()
        assert s1 is s2
