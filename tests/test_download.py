import plistlib
import tempfile
import unittest
from pathlib import Path

from helpers import add_user, make_settings, open_database

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.models.application import Application
from appcenter.models.enums import RoleEnum
from appcenter.models.version import Version
from appcenter.services.download_service import DownloadService


class ManifestVersionOverrideTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.database = open_database(make_settings(Path(self._tmp.name)))
        self.session = self.database.session()
        owner = add_user(self.session, "owner", RoleEnum.ADMIN)
        self.session.add_all(
            [
                Application(
                    id="app-ios",
                    owner_id=owner.id,
                    name="Demo",
                    app_key="a" * 16,
                    download_key="ios-key",
                    platform="iOS",
                    bundle_id="com.example.demo",
                    version="2.0.0",
                    build_number="20",
                    download_url="http://localhost:8000/uploads/app-ios/current.ipa",
                ),
                Application(
                    id="app-other",
                    owner_id=owner.id,
                    name="Other",
                    app_key="b" * 16,
                    download_key="other-key",
                    platform="iOS",
                ),
            ]
        )
        self.session.add_all(
            [
                self._version("v-old", "app-ios", "1.0.0", "10", "http://localhost:8000/uploads/app-ios/old.ipa"),
                self._version("v-foreign", "app-other", "9.9.9", "99", "http://cdn.example.com/other.ipa"),
            ]
        )
        self.session.commit()
        self.service = DownloadService(UnitOfWork(self.session))

    def tearDown(self):
        self.session.close()
        self.database.dispose()
        self._tmp.cleanup()

    @staticmethod
    def _version(version_id, application_id, version, build, url) -> Version:
        return Version(
            id=version_id,
            application_id=application_id,
            version=version,
            build_number=build,
            size="1.00 MB",
            file_name=f"{version_id}.ipa",
            file_path=f"/data/{version_id}.ipa",
            download_url=url,
            platform="iOS",
        )

    def _manifest_item(self, version_id=None) -> dict:
        body, filename = self.service.build_plist("ios-key", version_id=version_id, request_host="apps.example.com")
        self.assertEqual(filename, "Demo.plist")
        return plistlib.loads(body)["items"][0]

    def test_current_version_is_used_by_default(self):
        item = self._manifest_item()
        self.assertEqual(item["metadata"]["bundle-version"], "2.0.0")
        self.assertEqual(item["assets"][0]["url"], "https://apps.example.com:8000/uploads/app-ios/current.ipa")

    def test_version_of_the_application_overrides_version_and_url(self):
        item = self._manifest_item("v-old")
        self.assertEqual(item["metadata"]["bundle-version"], "1.0.0")
        self.assertEqual(item["metadata"]["title"], "Demo")
        self.assertEqual(item["assets"][0]["url"], "https://apps.example.com:8000/uploads/app-ios/old.ipa")

    def test_version_of_another_application_is_ignored(self):
        item = self._manifest_item("v-foreign")
        self.assertEqual(item["metadata"]["bundle-version"], "2.0.0")
        self.assertEqual(item["assets"][0]["url"], "https://apps.example.com:8000/uploads/app-ios/current.ipa")


if __name__ == "__main__":
    unittest.main()
