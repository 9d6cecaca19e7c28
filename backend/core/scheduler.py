"""
后台任务调度器
用于定期执行任务，如无用标签清理
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Scheduler:
    """简单任务调度器"""

    def __init__(self):
        self.tasks: list[asyncio.Task] = []
        self.running = False

    async def schedule_periodic(self, func: Callable, interval_seconds: float, name: str = "periodic_task"):
        """
        调度定期任务

        单次执行失败只记录日志，不重试，等待下个周期再执行

        Args:
            func: 要执行的异步函数
            interval_seconds: 执行间隔（秒）
            name: 任务名称
        """
        async def periodic_task():
            while self.running:
                try:
                    logger.debug(f"执行定期任务: {name}")
                    await func()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"定期任务执行失败 {name}: {e}", exc_info=True)
                await asyncio.sleep(interval_seconds)

        task = asyncio.create_task(periodic_task())
        self.tasks.append(task)
        logger.debug(f"已调度定期任务: {name}, 间隔: {interval_seconds}秒")

    def start(self):
        """启动调度器"""
        self.running = True
        logger.debug("任务调度器已启动")

    async def stop(self, timeout: float = 10.0):
        """
        停止调度器，取消并等待运行中的任务

        Args:
            timeout: 等待超时时间（秒）
        """
        self.running = False
        if not self.tasks:
            logger.debug("任务调度器已停止（无活跃任务）")
            return

        for task in self.tasks:
            task.cancel()

        try:
            await asyncio.wait_for(
                asyncio.gather(*self.tasks, return_exceptions=True),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"调度器停止超时（{timeout}s）")

        self.tasks.clear()
        logger.debug("任务调度器已停止")


# 全局调度器实例
_scheduler: Optional[Scheduler] = None


def get_scheduler() -> Scheduler:
    """获取调度器实例"""
    global _scheduler
    if _scheduler is None:
        _scheduler = Scheduler()
    return _scheduler
