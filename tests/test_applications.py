import tempfile
import unittest
from datetime import timedelta
from pathlib import Path

from helpers import add_user, as_current_user, make_settings, open_database

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import utcnow
from appcenter.domain.application import ApplicationDraft, ApplicationUpdate, VersionDraft, VersionUpdate
from appcenter.exceptions.exceptions import (
    ConflictError,
    DuplicateDownloadKey,
    NotFoundError,
    PermissionError,
    ValidationError,
)
from appcenter.infrastructure.storage.local_fs import LocalFileSystemStorage
from appcenter.models.application import Application
from appcenter.models.enums import RoleEnum
from appcenter.models.version import Version
from appcenter.services.application_service import ApplicationService
from appcenter.services.version_service import VersionService


class ApplicationCatalogTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.workdir = Path(self._tmp.name)
        self.database = open_database(make_settings(self.workdir))
        self.storage = LocalFileSystemStorage(self.workdir / "uploads")
        self.session = self.database.session()
        self.owner = add_user(self.session, "owner", RoleEnum.ADMIN)
        self.uow = UnitOfWork(self.session)
        self.service = ApplicationService(self.uow, self.storage)
        self.versions = VersionService(self.uow, self.storage)

    def tearDown(self):
        self.session.close()
        self.database.dispose()
        self._tmp.cleanup()

    def _version(self, application_id: str, version: str, build: str, file_path: str = "") -> Version:
        return self.versions.create(
            VersionDraft(
                application_id=application_id,
                version=version,
                build_number=build,
                release_notes="",
                size="0.01 MB",
                file_name="demo.ipa",
                file_path=file_path or str(self.storage.new_final_path(application_id, "demo.ipa")),
                download_url=f"http://localhost:8000/uploads/{application_id}/{build}.ipa",
                platform="iOS",
            )
        )

    def test_create_generates_keys(self):
        application = self.service.create(ApplicationDraft(name="  Demo  "), owner_id=self.owner.id)

        self.assertEqual(application.name, "Demo")
        self.assertEqual(len(application.download_key), 8)
        self.assertEqual(len(application.app_key), 16)
        self.assertTrue(application.download_key.isalnum())

    def test_duplicate_download_key_is_rejected(self):
        self.service.create(ApplicationDraft(name="First", download_key="demo-key"), owner_id=self.owner.id)

        with self.assertRaises(DuplicateDownloadKey) as ctx:
            self.service.create(ApplicationDraft(name="Second", download_key="demo-key"), owner_id=self.owner.id)
        self.assertEqual(ctx.exception.code, "AP4091")
        self.assertEqual(self.session.query(Application).count(), 1)

    def test_invalid_download_key_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.create(ApplicationDraft(name="Demo", download_key="a b"), owner_id=self.owner.id)

    def test_partial_update_only_touches_given_fields(self):
        application = self.service.create(
            ApplicationDraft(name="Demo", description="first"), owner_id=self.owner.id
        )

        updated = self.service.update(application.id, ApplicationUpdate(description="second"))

        self.assertEqual(updated.name, "Demo")
        self.assertEqual(updated.description, "second")
        self.assertEqual(updated.download_key, application.download_key)

    def test_update_to_taken_download_key_conflicts(self):
        self.service.create(ApplicationDraft(name="A", download_key="taken-key"), owner_id=self.owner.id)
        other = self.service.create(ApplicationDraft(name="B"), owner_id=self.owner.id)

        with self.assertRaises(DuplicateDownloadKey):
            self.service.update(other.id, ApplicationUpdate(download_key="taken-key"))

    def test_non_owner_admin_cannot_access(self):
        application = self.service.create(ApplicationDraft(name="Demo"), owner_id=self.owner.id)
        stranger = add_user(self.session, "stranger", RoleEnum.ADMIN)
        boss = add_user(self.session, "boss", RoleEnum.SUPER_ADMIN)

        with self.assertRaises(PermissionError):
            self.service.get_for_user(application.id, as_current_user(stranger))
        self.assertEqual(self.service.get_for_user(application.id, as_current_user(boss)).id, application.id)
        self.assertEqual(self.service.list_for_user(as_current_user(stranger)), [])

    async def test_delete_cascades_versions_and_files(self):
        application = self.service.create(ApplicationDraft(name="Demo"), owner_id=self.owner.id)
        binary = self.storage.new_final_path(application.id, "demo.ipa")
        binary.parent.mkdir(parents=True, exist_ok=True)
        binary.write_bytes(b"ipa")
        self._version(application.id, "1.0.0", "1", file_path=str(binary))
        self._version(application.id, "1.1.0", "2")

        self.assertTrue(await self.service.delete(application.id))

        self.assertEqual(self.session.query(Version).count(), 0)
        self.assertFalse(binary.exists())
        self.assertFalse(binary.parent.exists())
        with self.assertRaises(NotFoundError):
            self.service.get(application.id)
        self.assertFalse(await self.service.delete(application.id))

    async def test_clear_all_reports_count(self):
        self.service.create(ApplicationDraft(name="A"), owner_id=self.owner.id)
        self.service.create(ApplicationDraft(name="B"), owner_id=self.owner.id)

        self.assertEqual(await self.service.clear_all(), 2)
        self.assertEqual(self.session.query(Application).count(), 0)

    def test_duplicate_version_conflicts(self):
        application = self.service.create(ApplicationDraft(name="Demo"), owner_id=self.owner.id)
        self._version(application.id, "1.0.0", "1")

        with self.assertRaises(ConflictError):
            self._version(application.id, "1.0.0", "1")
        self.assertTrue(self.versions.exists(application.id, "1.0.0", "1"))

    def test_version_update_and_delete_resync_application(self):
        application = self.service.create(ApplicationDraft(name="Demo"), owner_id=self.owner.id)
        first = self._version(application.id, "1.0.0", "1")
        second = self._version(application.id, "1.1.0", "2")

        updated = self.versions.update(application.id, second.id, VersionUpdate(version="1.2.0"))
        self.assertEqual(updated.version, "1.2.0")
        self.assertEqual(self.service.get(application.id).version, "1.2.0")

        self.assertTrue(self.versions.delete(application.id, second.id))
        current = self.service.get(application.id)
        self.assertEqual(current.version, first.version)
        self.assertEqual(current.build_number, "1")

        self.assertIsNone(self.versions.update(application.id, "missing", VersionUpdate(release_notes="x")))

    def test_versions_are_listed_newest_created_first(self):
        application = self.service.create(ApplicationDraft(name="Demo"), owner_id=self.owner.id)
        older = self._version(application.id, "1.0.0", "1")
        newer = self._version(application.id, "0.9.0", "2")
        older.created_at = utcnow() - timedelta(hours=2)
        newer.created_at = utcnow() - timedelta(hours=1)
        self.session.commit()

        listed = self.versions.list_by_application(application.id)

        self.assertEqual([version.id for version in listed], [newer.id, older.id])

    def test_platform_is_limited_to_ios_and_android(self):
        application = self.service.create(ApplicationDraft(name="Demo", platform="iOS"), owner_id=self.owner.id)
        self.assertEqual(application.platform, "iOS")

        with self.assertRaises(ValidationError):
            self.service.create(ApplicationDraft(name="Desktop", platform="Windows"), owner_id=self.owner.id)

    def test_update_only_exposes_user_editable_fields(self):
        with self.assertRaises(TypeError):
            ApplicationUpdate(download_url="http://example.com/demo.ipa")
        self.assertEqual(
            sorted(ApplicationUpdate(name="Demo", icon="x").changes()),
            ["icon", "name"],
        )


if __name__ == "__main__":
    unittest.main()
