"""
Tests de empaquetado ZIP y de limpieza de backups antiguos
"""
import os
import shutil
import sys
import tempfile
import time
import unittest
import zipfile
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).parent.parent))

from mysqlkeeper.exceptions import ArchiveError, PolicyError
from mysqlkeeper.services.archive_service import MEMBER_PERMISSIONS, ArchiveService
from mysqlkeeper.services.cleanup_service import CleanupService, is_backup_archive

DAY = 24 * 60 * 60


class TestArchiveService(unittest.TestCase):
    """Tests para ArchiveService"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.sources = []
        for name, content in [("b.sql", "SELECT 2;"), ("a.sql", "SELECT 1;")]:
            path = self.temp_dir / name
            path.write_text(content, encoding='utf-8')
            self.sources.append((name, path))

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_members_in_given_order(self):
        output = self.temp_dir / "nested" / "dir" / "out.zip"
        seen = []
        ArchiveService().create_archive(output, self.sources, lambda i, name: seen.append((i, name)))

        self.assertEqual(seen, [(0, "b.sql"), (1, "a.sql")])
        with zipfile.ZipFile(output) as zipf:
            self.assertEqual(zipf.namelist(), ["b.sql", "a.sql"])
            self.assertEqual(zipf.read("a.sql"), b"SELECT 1;")
            for info in zipf.infolist():
                self.assertEqual(info.compress_type, zipfile.ZIP_DEFLATED)
                self.assertEqual((info.external_attr >> 16) & 0o777, MEMBER_PERMISSIONS)

    def test_missing_source(self):
        members = [("gone.sql", self.temp_dir / "gone.sql")]
        with self.assertRaises(ArchiveError):
            ArchiveService().create_archive(self.temp_dir / "out.zip", members)


class TestCleanupService(unittest.TestCase):
    """Tests para CleanupService"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.cleanup_service = CleanupService()

    def tearDown(self):
        self.cleanup_service.shutdown()
        shutil.rmtree(self.temp_dir)

    def touch(self, name, age_days=0):
        path = self.temp_dir / name
        path.write_bytes(b"x")
        stamp = time.time() - age_days * DAY
        os.utime(path, (stamp, stamp))
        return path

    def test_is_backup_archive(self):
        self.assertTrue(is_backup_archive("BACKUP_shop_20240101_020000.zip"))
        self.assertFalse(is_backup_archive("backup_shop.zip"))
        self.assertFalse(is_backup_archive("BACKUP_shop.sql"))

    def test_old_backup_is_deleted(self):
        old = self.touch("BACKUP_old.zip", age_days=10)
        new = self.touch("BACKUP_new.zip")

        deleted = self.cleanup_service.cleanup_old_backups(self.temp_dir, 5)

        self.assertEqual(deleted, 1)
        self.assertFalse(old.exists())
        self.assertTrue(new.exists())

    def test_only_backup_archives_are_touched(self):
        other_zip = self.touch("other.zip", age_days=10)
        other_ext = self.touch("BACKUP_old.txt", age_days=10)
        folder = self.temp_dir / "BACKUP_folder.zip"
        folder.mkdir()
        os.utime(folder, (time.time() - 10 * DAY,) * 2)

        deleted = self.cleanup_service.cleanup_old_backups(self.temp_dir, 5)

        self.assertEqual(deleted, 0)
        self.assertTrue(other_zip.exists())
        self.assertTrue(other_ext.exists())
        self.assertTrue(folder.exists())

    def test_non_positive_retention_keeps_everything(self):
        old = self.touch("BACKUP_old.zip", age_days=400)
        for keep_days in (0, -5):
            self.assertEqual(self.cleanup_service.cleanup_old_backups(self.temp_dir, keep_days), 0)
        self.assertTrue(old.exists())

    def test_non_positive_retention_ignores_missing_directory(self):
        self.assertEqual(self.cleanup_service.cleanup_old_backups(self.temp_dir / "nope", 0), 0)

    def test_invalid_directory(self):
        with self.assertRaises(PolicyError):
            self.cleanup_service.cleanup_old_backups(self.temp_dir / "nope", 5)
        file_path = self.touch("plain.txt")
        with self.assertRaises(PolicyError):
            self.cleanup_service.cleanup_old_backups(file_path, 5)

    def test_failed_delete_is_skipped(self):
        self.touch("BACKUP_a.zip", age_days=10)
        self.touch("BACKUP_b.zip", age_days=10)
        original_unlink = Path.unlink

        def flaky_unlink(path, *args, **kwargs):
            if path.name == "BACKUP_a.zip":
                raise PermissionError("in use")
            return original_unlink(path, *args, **kwargs)

        with mock.patch.object(Path, 'unlink', autospec=True, side_effect=flaky_unlink):
            deleted = self.cleanup_service.cleanup_old_backups(self.temp_dir, 5)

        self.assertEqual(deleted, 1)
        self.assertTrue((self.temp_dir / "BACKUP_a.zip").exists())
        self.assertFalse((self.temp_dir / "BACKUP_b.zip").exists())

    def test_submit_cleanup_returns_future(self):
        self.touch("BACKUP_old.zip", age_days=10)
        future = self.cleanup_service.submit_cleanup(self.temp_dir, 5)
        self.assertEqual(future.result(5), 1)

    def test_backup_stats(self):
        self.touch("BACKUP_old.zip", age_days=3)
        self.touch("BACKUP_new.zip")
        self.touch("notes.txt")

        stats = self.cleanup_service.get_backup_stats(self.temp_dir)

        self.assertEqual(stats['total_files'], 2)
        self.assertLess(stats['oldest_backup'], stats['newest_backup'])

    def test_backup_stats_missing_directory(self):
        stats = self.cleanup_service.get_backup_stats(self.temp_dir / "nope")
        self.assertEqual(stats['total_files'], 0)


if __name__ == '__main__':
    unittest.main()
