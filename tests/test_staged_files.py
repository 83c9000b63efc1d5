import tempfile
import unittest
from datetime import timedelta
from pathlib import Path

from helpers import make_settings, open_database

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import utcnow
from appcenter.infrastructure.storage.local_fs import LocalFileSystemStorage
from appcenter.models.enums import StagedFileStatus
from appcenter.models.staged_file import StagedFile
from appcenter.services.staged_file_service import StagedFileStore


class StagedFileStoreTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.workdir = Path(self._tmp.name)
        self.database = open_database(make_settings(self.workdir))
        self.storage = LocalFileSystemStorage(self.workdir / "uploads")
        self.session = self.database.session()
        self.store = StagedFileStore(UnitOfWork(self.session), self.storage)

    def tearDown(self):
        self.session.close()
        self.database.dispose()
        self._tmp.cleanup()

    async def _stage(self, name: str = "demo.ipa", body: bytes = b"payload") -> StagedFile:
        temp_path = self.storage.new_temp_path(name)
        await self.storage.init_file(temp_path)
        await self.storage.append_chunk(temp_path, body)
        return self.store.stage(
            original_name=name,
            temp_path=temp_path,
            size=len(body),
            mime_type="application/octet-stream",
            parsed_info={"name": "Demo"},
        )

    def _age(self, file_id: str, minutes: int) -> None:
        record = self.session.get(StagedFile, file_id)
        record.uploaded_at = utcnow() - timedelta(minutes=minutes)
        self.session.commit()

    async def test_stage_records_temporary_file(self):
        staged = await self._stage()

        record = self.store.get(staged.id)
        self.assertEqual(record.status, StagedFileStatus.TEMPORARY)
        self.assertTrue(Path(record.temp_path).exists())
        self.assertTrue(Path(record.temp_path).name.startswith("temp_"))
        self.assertEqual([item.id for item in self.store.list_temporary()], [staged.id])

    async def test_confirm_moves_file_exactly_once(self):
        staged = await self._stage()
        final_path = self.storage.new_final_path("app-1", staged.original_name)

        self.assertTrue(await self.store.confirm(staged.id, final_path))
        self.assertFalse(await self.store.confirm(staged.id, self.storage.new_final_path("app-1", "again.ipa")))

        record = self.store.get(staged.id)
        self.assertEqual(record.status, StagedFileStatus.CONFIRMED)
        self.assertEqual(record.final_path, str(final_path))
        self.assertTrue(final_path.exists())
        self.assertFalse(Path(record.temp_path).exists())

    async def test_confirm_unknown_file_returns_false(self):
        self.assertFalse(await self.store.confirm("missing", self.storage.new_final_path("app-1", "x.ipa")))

    async def test_failed_move_releases_the_claim(self):
        staged = await self._stage()
        Path(staged.temp_path).unlink()

        ok = await self.store.confirm(staged.id, self.storage.new_final_path("app-1", staged.original_name))

        self.assertFalse(ok)
        record = self.store.get(staged.id)
        self.assertEqual(record.status, StagedFileStatus.TEMPORARY)
        self.assertIsNone(record.final_path)

    async def test_expire_only_touches_old_temporary_files(self):
        old = await self._stage("old.apk")
        recent = await self._stage("recent.apk")
        self._age(old.id, 31)
        self._age(recent.id, 10)

        expired = await self.store.expire_older_than(30)

        self.assertEqual(expired, 1)
        self.assertEqual(self.store.get(old.id).status, StagedFileStatus.EXPIRED)
        self.assertFalse(Path(old.temp_path).exists())
        self.assertEqual(self.store.get(recent.id).status, StagedFileStatus.TEMPORARY)
        self.assertTrue(Path(recent.temp_path).exists())

    async def test_expire_skips_confirmed_files(self):
        staged = await self._stage()
        await self.store.confirm(staged.id, self.storage.new_final_path("app-1", staged.original_name))
        self._age(staged.id, 120)

        self.assertEqual(await self.store.expire_older_than(30), 0)
        self.assertEqual(self.store.get(staged.id).status, StagedFileStatus.CONFIRMED)

    async def test_delete_removes_record_and_bytes(self):
        staged = await self._stage()

        self.assertTrue(await self.store.delete(staged.id))
        self.assertIsNone(self.store.get(staged.id))
        self.assertFalse(Path(staged.temp_path).exists())
        self.assertFalse(await self.store.delete(staged.id))


if __name__ == "__main__":
    unittest.main()
