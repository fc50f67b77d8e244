import asyncio
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import yaml

from vega_mm.main.main import MarketMakerBot, main
from vega_mm.main.modules.task_supervisor import TaskSupervisor
from vega_mm.utils.errors import DataNodeConnectionError


class TestTaskSupervisor(unittest.IsolatedAsyncioTestCase):
    """Test restart-on-crash supervision"""

    async def test_restarts_crashed_task(self):
        supervisor = TaskSupervisor(restart_delay=0)
        runs = []

        async def flaky():
            runs.append(1)
            if len(runs) < 3:
                raise RuntimeError("boom")
            await asyncio.Event().wait()

        supervisor.start_all_tasks([('flaky', flaky)])
        for _ in range(50):
            if len(runs) >= 3:
                break
            await asyncio.sleep(0.01)

        await supervisor.stop_all_tasks()

        self.assertEqual(len(runs), 3)
        self.assertEqual(supervisor.error_summary()['errors'], 2)
        self.assertEqual(supervisor.error_summary()['component_errors'], {'flaky': 2})
        self.assertEqual(supervisor.tasks, [])

    async def test_stop_cancels_adopted_tasks(self):
        supervisor = TaskSupervisor(restart_delay=0)
        task = asyncio.create_task(asyncio.Event().wait())
        supervisor.adopt([task])

        await supervisor.stop_all_tasks()

        self.assertTrue(task.cancelled())
        self.assertTrue(supervisor.shutdown_event.is_set())


class TestStartup(unittest.IsolatedAsyncioTestCase):
    """Test fatal startup paths"""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self.tmp.name) / 'config.yaml'

    def tearDown(self):
        self.tmp.cleanup()

    def write_config(self, market_id):
        self.config_path.write_text(yaml.safe_dump({
            'vega': {'data_node_url': 'https://node.example.com', 'market_id': market_id},
            'logging': {'log_dir': None},
        }))

    async def test_invalid_configuration_exits_with_error(self):
        self.write_config(None)
        with patch.dict('os.environ', {}, clear=True), patch('vega_mm.main.main.signal.signal'):
            self.assertEqual(await main(str(self.config_path)), 1)

    async def test_unreachable_data_node_exits_with_error(self):
        self.write_config('m1')
        client = MagicMock()
        client.get_market = AsyncMock(side_effect=DataNodeConnectionError("down"))

        with patch.dict('os.environ', {}, clear=True), \
                patch('vega_mm.main.main.signal.signal'), \
                patch.object(MarketMakerBot, '_create_client', return_value=client):
            self.assertEqual(await main(str(self.config_path)), 1)


if __name__ == '__main__':
    unittest.main()
