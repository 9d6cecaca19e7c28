"""
后台任务辅助工具
用于执行脱离请求上下文的任务（即发即弃），失败只记录日志，不向调用方抛出
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """
    后台任务执行器

    任务以 asyncio.Task 的形式运行并被跟踪，测试和关闭流程可通过 drain() 等待全部完成。

    Usage:
        runner = BackgroundTaskRunner()
        runner.submit(service.sweep_orphan_tags, name="clean_unused_tags")
        await runner.drain()
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self.failed_count = 0
        self.last_error: Optional[BaseException] = None

    @property
    def pending(self) -> int:
        """未完成的任务数"""
        return len(self._tasks)

    def submit(
        self,
        task_func: Callable[..., Coroutine[Any, Any, Any]],
        *args,
        name: Optional[str] = None,
        **kwargs
    ) -> asyncio.Task:
        """
        提交后台任务，不等待结果

        Args:
            task_func: 异步任务函数
            *args: 传递给任务的位置参数
            name: 任务名称（用于日志）
            **kwargs: 传递给任务的关键字参数
        """
        task_name = name or task_func.__name__
        task = asyncio.create_task(
            self._run(task_name, task_func, *args, **kwargs),
            name=task_name
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, task_name: str, task_func, *args, **kwargs):
        try:
            return await task_func(*args, **kwargs)
        except asyncio.CancelledError:
            logger.warning(f"后台任务已取消: {task_name}")
            raise
        except Exception as e:
            self.failed_count += 1
            self.last_error = e
            logger.error(f"后台任务执行失败: {task_name}: {e}", exc_info=True)
            return None

    async def drain(self, timeout: Optional[float] = None) -> None:
        """等待当前所有后台任务结束"""
        while self._tasks:
            tasks = list(self._tasks)
            done, pending = await asyncio.wait(tasks, timeout=timeout)
            if pending:
                logger.warning(f"等待后台任务超时，仍有 {len(pending)} 个未完成")
                return

    async def shutdown(self, timeout: float = 10.0) -> None:
        """关闭时等待任务完成，超时后取消剩余任务"""
        if not self._tasks:
            return
        await self.drain(timeout=timeout)
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
