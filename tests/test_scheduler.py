"""
Tests del servicio de programación
"""
import sys
import unittest
from datetime import datetime
from pathlib import Path
from unittest import mock

import schedule

sys.path.insert(0, str(Path(__file__).parent.parent))

from mysqlkeeper.exceptions import ConfigError, PolicyError
from mysqlkeeper.models import BackupResult, BackupSettings, DatabaseConfig
from mysqlkeeper.services.backup_service import BackupService
from mysqlkeeper.services.scheduler_service import SchedulerService


def make_scheduler(frequency="daily", result=None):
    backup_service = mock.MagicMock()
    backup_service.backup_settings = BackupSettings(
        backup_dir="/tmp/backups", retention_days=7, schedule="03:30", frequency=frequency
    )
    backup_service.backup_configured_database.return_value = result or BackupResult(
        database_name="shop", success=True, output_file="/tmp/backups/x.zip"
    )
    backup_service.cleanup_service.cleanup_old_backups.return_value = 2
    service = SchedulerService(backup_service, scheduler=schedule.Scheduler(),
                               install_signal_handlers=False)
    return service, backup_service


class TestSchedulerService(unittest.TestCase):
    """Tests para SchedulerService"""

    def test_daily_job(self):
        service, _ = make_scheduler("daily")
        service.configure()
        self.assertEqual(len(service.scheduler.jobs), 1)
        job = service.scheduler.jobs[0]
        self.assertEqual(job.unit, 'days')
        self.assertEqual(job.at_time.strftime('%H:%M'), '03:30')

    def test_weekly_job_runs_on_monday(self):
        service, _ = make_scheduler("weekly")
        service.configure()
        self.assertEqual(service.scheduler.jobs[0].start_day, 'monday')

    def test_monthly_job_only_on_first_day(self):
        service, backup_service = make_scheduler("monthly")
        self.assertIsNone(service._run_monthly_backup_job(datetime(2024, 5, 2)))
        backup_service.backup_configured_database.assert_not_called()

        self.assertTrue(service._run_monthly_backup_job(datetime(2024, 5, 1)))
        backup_service.backup_configured_database.assert_called_once()

    def test_successful_job_runs_cleanup(self):
        service, backup_service = make_scheduler()
        self.assertTrue(service.run_backup_job())
        backup_service.cleanup_service.cleanup_old_backups.assert_called_once_with(
            Path("/tmp/backups"), 7
        )

    def test_busy_job_skips_cleanup(self):
        busy = BackupResult(database_name="shop", success=False,
                            error="Ya hay un backup en ejecución", error_type="BackupBusyError")
        service, backup_service = make_scheduler(result=busy)
        self.assertFalse(service.run_backup_job())
        backup_service.cleanup_service.cleanup_old_backups.assert_not_called()

    def test_cleanup_error_does_not_fail_job(self):
        service, backup_service = make_scheduler()
        backup_service.cleanup_service.cleanup_old_backups.side_effect = PolicyError("no existe")
        self.assertTrue(service.run_backup_job())

    def _service_with_repo(self, repo):
        backup_service = BackupService(config_repo=repo, cleanup_service=mock.MagicMock())
        self.addCleanup(backup_service.shutdown)
        return SchedulerService(backup_service, scheduler=schedule.Scheduler(),
                                install_signal_handlers=False), backup_service

    def test_invalid_database_section_does_not_stop_scheduler(self):
        repo = mock.MagicMock()
        repo.get_backup_settings.return_value = BackupSettings(backup_dir="/tmp/backups")
        repo.get_database.side_effect = ConfigError("sección database inválida")
        service, backup_service = self._service_with_repo(repo)

        self.assertFalse(service.run_backup_job())
        backup_service.cleanup_service.cleanup_old_backups.assert_not_called()

        service.configure()
        service.scheduler.run_all()
        self.assertEqual(len(service.scheduler.jobs), 1)

    def test_invalid_port_does_not_stop_scheduler(self):
        repo = mock.MagicMock()
        repo.get_backup_settings.return_value = BackupSettings(backup_dir="/tmp/backups")
        repo.get_database.return_value = DatabaseConfig(
            host="localhost", port=70000, user="root", password="", database="shop"
        )
        service, _ = self._service_with_repo(repo)

        self.assertFalse(service.run_backup_job())

    def test_next_run(self):
        service, _ = make_scheduler()
        self.assertEqual(service.get_next_run(), "No programado")
        service.configure()
        self.assertNotEqual(service.get_next_run(), "No programado")

    def test_shutdown_clears_jobs(self):
        service, _ = make_scheduler()
        service.configure()
        service._shutdown()
        self.assertEqual(service.scheduler.jobs, [])
        self.assertFalse(service.running)


if __name__ == '__main__':
    unittest.main()
