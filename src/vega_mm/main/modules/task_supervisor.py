"""
Task supervision module for the market maker.
Runs the long-lived tasks (streams, pollers, strategy loop) under supervision:
a task that crashes is logged and restarted after a delay. Tasks are only
cancelled at shutdown.
"""

import asyncio
import traceback
from typing import Awaitable, Callable, Dict, List, Tuple

from ...utils.logger import setup_logger

logger = setup_logger(__name__)

RESTART_DELAY = 30  # seconds


class TaskSupervisor:
    """Supervises and manages async tasks with error handling"""

    def __init__(self, restart_delay: float = RESTART_DELAY):
        self.restart_delay = restart_delay
        self.running = True
        self.tasks: List[asyncio.Task] = []
        self.performance_metrics = {
            'errors': 0,
            'component_errors': {}
        }
        self.shutdown_event = asyncio.Event()

    async def create_supervised_task(self, name: str, factory: Callable[[], Awaitable]):
        """Run factory() forever, restarting it after a delay when it fails"""
        while self.running:
            try:
                await factory()
                logger.warning(f"Task {name} returned")
                if not self.running:
                    return

            except asyncio.CancelledError:
                logger.info(f"Task {name} cancelled")
                raise

            except Exception as e:
                logger.error(f"Error in {name} task: {e}")
                logger.error(traceback.format_exc())

                self.performance_metrics['errors'] += 1
                errors = self.performance_metrics['component_errors']
                errors[name] = errors.get(name, 0) + 1

            logger.info(f"Restarting {name} in {self.restart_delay} seconds")
            await asyncio.sleep(self.restart_delay)

    def start_all_tasks(self, task_definitions: List[Tuple[str, Callable[[], Awaitable]]]) -> List[asyncio.Task]:
        """Start all tasks with supervision"""
        for name, factory in task_definitions:
            task = asyncio.create_task(self.create_supervised_task(name, factory), name=name)
            self.tasks.append(task)
        return self.tasks

    def adopt(self, tasks: List[asyncio.Task]):
        """Track tasks that supervise themselves, so shutdown cancels them too"""
        self.tasks.extend(tasks)

    async def stop_all_tasks(self):
        """Cancel every tracked task and wait for them to finish"""
        self.running = False
        self.shutdown_event.set()

        for task in self.tasks:
            task.cancel()
        results = await asyncio.gather(*self.tasks, return_exceptions=True)

        for task, result in zip(self.tasks, results):
            if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                logger.error(f"Task {task.get_name()} ended with error: {result}")
        self.tasks = []

    def error_summary(self) -> Dict:
        return dict(self.performance_metrics)
