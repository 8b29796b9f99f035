"""
Tests del orquestador de backups (un solo backup a la vez)
"""
import shutil
import sys
import tempfile
import time
import unittest
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from mysqlkeeper.exceptions import BackupBusyError, ToolUnavailableError
from mysqlkeeper.models import BackupRequest, StrategyHint
from mysqlkeeper.services.backup_service import BackupService, backup_file_name
from mysqlkeeper.services.progress import ProgressRecorder
from tests.fakes import BlockingStrategy, StaticFactory


class TestBackupService(unittest.TestCase):
    """Tests para BackupService"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.strategy = BlockingStrategy()
        self.factory = StaticFactory(strategy=self.strategy)
        self.service = BackupService(strategy_factory=self.factory)

    def tearDown(self):
        self.strategy.release.set()
        self.service.shutdown()
        shutil.rmtree(self.temp_dir)

    def make_request(self, name="first.zip", strategy=StrategyHint.AUTO):
        return BackupRequest(
            host="localhost", port=3306, username="root", password="",
            database="shop", output_path=self.temp_dir / name, strategy=strategy
        )

    def test_backup_file_name(self):
        name = backup_file_name("shop", datetime(2024, 1, 2, 3, 4, 5))
        self.assertEqual(name, "BACKUP_shop_20240102_030405.zip")

    def test_second_request_is_rejected_while_running(self):
        future = self.service.submit_backup(self.make_request())
        self.assertTrue(self.strategy.started.wait(5))
        self.assertTrue(self.service.is_running)

        start = time.monotonic()
        rejected = self.service.backup(self.make_request("second.zip"))
        self.assertLess(time.monotonic() - start, 1)
        self.assertFalse(rejected.success)
        self.assertEqual(rejected.error_type, "BackupBusyError")
        self.assertFalse((self.temp_dir / "second.zip").exists())

        with self.assertRaises(BackupBusyError):
            self.service.submit_backup(self.make_request("third.zip"))

        self.strategy.release.set()
        result = future.result(5)
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.strategy, "blocking")

    def test_gate_is_free_once_result_is_visible(self):
        self.strategy.release.set()
        first = self.service.backup(self.make_request())
        self.assertTrue(first.success, first.error)
        self.assertFalse(self.service.is_running)

        second = self.service.backup(self.make_request("again.zip"))
        self.assertTrue(second.success, second.error)

    def test_progress_starts_at_zero(self):
        self.strategy.release.set()
        recorder = ProgressRecorder()
        self.service.backup(self.make_request(), recorder)
        self.assertEqual(recorder.percents[0], 0)
        self.assertEqual(recorder.percents[-1], 100)

    def test_failing_observer_does_not_abort(self):
        self.strategy.release.set()

        def broken_observer(event):
            raise RuntimeError("ui closed")

        result = self.service.backup(self.make_request(), broken_observer)
        self.assertTrue(result.success, result.error)

    def test_strategy_resolution_error(self):
        factory = StaticFactory(error=ToolUnavailableError("mysqldump no disponible"))
        service = BackupService(strategy_factory=factory)
        recorder = ProgressRecorder()
        try:
            result = service.backup(self.make_request(strategy=StrategyHint.EXTERNAL_TOOL), recorder)
        finally:
            service.shutdown()

        self.assertFalse(result.success)
        self.assertEqual(result.error_type, "ToolUnavailableError")
        self.assertEqual(factory.resolved, [StrategyHint.EXTERNAL_TOOL])
        self.assertFalse(service.is_running)
        self.assertTrue(recorder.events[-1].status.startswith("Backup fallido"))

    def test_external_tool_availability(self):
        self.assertFalse(self.service.is_external_tool_available())
        self.factory.available = True
        self.assertTrue(self.service.is_external_tool_available())


if __name__ == '__main__':
    unittest.main()
