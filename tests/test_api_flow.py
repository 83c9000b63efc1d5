import plistlib
import tempfile
import unittest
from pathlib import Path
from urllib.parse import urlsplit

from fastapi.testclient import TestClient

from helpers import SUPERUSER_PASSWORD, SUPERUSER_USERNAME, FakeExtractor, make_settings

from appcenter.main import create_app


class AppCenterApiTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.workdir = Path(self._tmp.name)
        self.settings = make_settings(self.workdir)
        self.app = create_app(self.settings, extractor=FakeExtractor())
        self._client_cm = TestClient(self.app)
        self.client = self._client_cm.__enter__()
        self.headers = self._login(SUPERUSER_USERNAME, SUPERUSER_PASSWORD)

    def tearDown(self):
        self._client_cm.__exit__(None, None, None)
        self._tmp.cleanup()

    def _login(self, username: str, password: str) -> dict:
        response = self.client.post("/api/v1/auth/login", json={"username": username, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    def _create_app(self, name: str = "Demo", **extra) -> dict:
        response = self.client.post("/api/v1/apps", json={"name": name, **extra}, headers=self.headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _upload(self, filename: str = "demo.ipa", body: bytes = b"fake ipa bytes"):
        return self.client.post(
            "/api/v1/files/upload",
            files={"file": (filename, body, "application/octet-stream")},
            headers=self.headers,
        )

    def _confirm(self, app_id: str, file_id: str, **fields):
        payload = {"file_id": file_id, "confirm": True, **fields}
        return self.client.post(f"/api/v1/apps/{app_id}/versions", json=payload, headers=self.headers)

    def test_health_endpoints(self):
        self.assertEqual(self.client.get("/api/v1/health").json()["status"], "ok")
        detailed = self.client.get("/api/v1/health/detailed")
        self.assertEqual(detailed.status_code, 200)
        self.assertEqual(detailed.json()["checks"]["storage"]["writable"], True)

    def test_management_routes_require_admin(self):
        self.assertEqual(self.client.get("/api/v1/apps").status_code, 401)

        created = self.client.post(
            "/api/v1/users",
            json={"username": "viewer", "email": "viewer@example.com", "password": "viewer-pass", "role": "user"},
            headers=self.headers,
        )
        self.assertEqual(created.status_code, 201, created.text)
        viewer = self._login("viewer", "viewer-pass")

        response = self.client.get("/api/v1/apps", headers=viewer)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "AU4031")

    def test_upload_rejects_unknown_extension(self):
        response = self._upload("notes.zip")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["code"], "FL4002")

    def test_upload_confirm_and_install_flow(self):
        application = self._create_app(download_key="demo-key")

        staged = self._upload()
        self.assertEqual(staged.status_code, 200, staged.text)
        file_id = staged.json()["file_id"]
        app_info = staged.json()["app_info"]
        self.assertEqual(app_info["name"], "Demo App")
        self.assertEqual(app_info["bundleId"], "com.example.demo")
        self.assertEqual(app_info["versionCode"], "42")
        self.assertEqual(app_info["platform"], "ios")
        self.assertTrue(app_info["icon"].startswith("data:image/png;base64,"))

        preview = self.client.post(
            f"/api/v1/apps/{application['id']}/versions",
            json={"file_id": file_id},
            headers=self.headers,
        )
        self.assertEqual(preview.status_code, 200)
        self.assertEqual(preview.json()["app_info"]["versionName"], "2.1.0")

        missing = self._confirm(application["id"], file_id, version="2.1.0")
        self.assertEqual(missing.status_code, 422)
        self.assertEqual(missing.json()["code"], "VR4001")

        confirmed = self._confirm(application["id"], file_id, version="2.1.0", build_number=42)
        self.assertEqual(confirmed.status_code, 200, confirmed.text)
        version = confirmed.json()
        self.assertEqual(version["build_number"], "42")
        self.assertEqual(version["platform"], "iOS")
        self.assertTrue(version["download_url"].startswith(f"http://localhost:8000/uploads/{application['id']}/"))

        again = self._confirm(application["id"], file_id, version="2.1.0", build_number=43)
        self.assertEqual(again.status_code, 404)
        self.assertEqual(again.json()["code"], "VR4002")

        current = self.client.get(f"/api/v1/apps/{application['id']}", headers=self.headers).json()
        self.assertEqual(current["version"], "2.1.0")
        self.assertEqual(current["bundle_id"], "com.example.demo")
        self.assertEqual(current["platform"], "iOS")

        served = self.client.get(urlsplit(version["download_url"]).path)
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"fake ipa bytes")

        info = self.client.get("/api/v1/download/demo-key")
        self.assertEqual(info.status_code, 200)
        self.assertNotIn("app_key", info.json())
        self.assertTrue(info.json()["install_url"].startswith("itms-services://?action=download-manifest&url="))

        plist = self.client.get("/api/v1/download/demo-key/plist")
        self.assertEqual(plist.status_code, 200)
        self.assertTrue(plist.headers["content-type"].startswith("application/x-plist"))
        manifest = plistlib.loads(plist.content)
        item = manifest["items"][0]
        self.assertEqual(item["metadata"]["bundle-identifier"], "com.example.demo")
        self.assertEqual(item["metadata"]["bundle-version"], "2.1.0")
        self.assertTrue(item["assets"][0]["url"].startswith("https://testserver:8000/uploads/"))

        history = self.client.get("/api/v1/download/demo-key/versions")
        self.assertEqual([entry["id"] for entry in history.json()], [version["id"]])

    def test_duplicate_version_is_rejected(self):
        application = self._create_app()
        first = self._upload().json()["file_id"]
        second = self._upload().json()["file_id"]

        self.assertEqual(self._confirm(application["id"], first, version="1.0.0", build_number="1").status_code, 200)
        duplicate = self._confirm(application["id"], second, version="1.0.0", build_number="1")
        self.assertEqual(duplicate.status_code, 409)

        staged = self.client.get(f"/api/v1/files/{second}", headers=self.headers).json()
        self.assertEqual(staged["status"], "temporary")

    def test_unknown_download_key_is_not_found(self):
        response = self.client.get("/api/v1/download/BADKEY")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.client.get("/api/v1/download/BADKEY/plist").status_code, 404)

    def test_automation_upload_and_android_plist(self):
        application = self._create_app("Android Demo", download_key="droid-key")

        rejected = self.client.post(
            "/api/v1/automation/upload",
            files={"file": ("demo.apk", b"apk", "application/vnd.android.package-archive")},
            headers={"X-App-Key": "not-a-real-key"},
        )
        self.assertEqual(rejected.status_code, 401)

        uploaded = self.client.post(
            "/api/v1/automation/upload",
            files={"file": ("demo.apk", b"apk", "application/vnd.android.package-archive")},
            data={"release_notes": "nightly"},
            headers={"X-App-Key": application["app_key"]},
        )
        self.assertEqual(uploaded.status_code, 201, uploaded.text)
        self.assertEqual(uploaded.json()["version"], "2.1.0")
        self.assertEqual(uploaded.json()["build_number"], "42")
        self.assertEqual(uploaded.json()["release_notes"], "nightly")

        info = self.client.get("/api/v1/download/droid-key").json()
        self.assertEqual(info["platform"], "Android")
        self.assertIsNone(info["install_url"])

        plist = self.client.get("/api/v1/download/droid-key/plist")
        self.assertEqual(plist.status_code, 422)
        self.assertEqual(plist.json()["code"], "AP4002")

    def test_delete_version_and_application(self):
        application = self._create_app()
        file_id = self._upload().json()["file_id"]
        version = self._confirm(application["id"], file_id, version="1.0.0", build_number="7").json()
        stored = self.workdir / "uploads" / urlsplit(version["download_url"]).path.split("/uploads/", 1)[1]
        self.assertTrue(stored.exists())

        deleted = self.client.delete(
            f"/api/v1/apps/{application['id']}/versions/{version['id']}", headers=self.headers
        )
        self.assertEqual(deleted.status_code, 204)
        self.assertFalse(stored.exists())
        self.assertIsNone(
            self.client.get(f"/api/v1/apps/{application['id']}", headers=self.headers).json()["version"]
        )

        self.assertEqual(self.client.delete(f"/api/v1/apps/{application['id']}", headers=self.headers).status_code, 204)
        self.assertEqual(self.client.get(f"/api/v1/apps/{application['id']}", headers=self.headers).status_code, 404)

    def test_temp_cleanup_endpoint(self):
        self._upload()
        response = self.client.post("/api/v1/files/cleanup/temp", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["cleaned_count"], 0)

    def test_request_id_is_echoed_back(self):
        response = self.client.get("/api/v1/health", headers={"X-Request-ID": "trace-42"})
        self.assertEqual(response.headers["X-Request-ID"], "trace-42")
        generated = self.client.get("/api/v1/health").headers["X-Request-ID"]
        self.assertEqual(len(generated), 32)

    def test_create_application_rejects_unknown_platform(self):
        response = self.client.post(
            "/api/v1/apps", json={"name": "Desk", "platform": "Windows"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self._create_app("Phone", platform="iOS")["platform"], "iOS")


if __name__ == "__main__":
    unittest.main()
