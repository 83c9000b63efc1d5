import plistlib
import tempfile
import unittest
import zipfile
from pathlib import Path

from helpers import make_png

from appcenter.exceptions.exceptions import UpstreamParseError
from appcenter.infrastructure.binary_parser import PackageMetadataExtractor, platform_for_filename
from appcenter.models.enums import PlatformEnum


class PackageMetadataExtractorTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.workdir = Path(self._tmp.name)
        self.extractor = PackageMetadataExtractor(aapt2_path=str(self.workdir / "missing-aapt2"))

    def tearDown(self):
        self._tmp.cleanup()

    def test_platform_is_picked_from_extension(self):
        self.assertEqual(platform_for_filename("Demo.IPA"), PlatformEnum.IOS)
        self.assertEqual(platform_for_filename("demo.apk"), PlatformEnum.ANDROID)
        self.assertIsNone(platform_for_filename("demo.zip"))

    def test_ipa_info_plist_and_icon_are_read(self):
        info = {
            "CFBundleDisplayName": "Demo",
            "CFBundleIdentifier": "com.example.demo",
            "CFBundleShortVersionString": "1.2.3",
            "CFBundleVersion": "45",
            "CFBundleIcons": {"CFBundlePrimaryIcon": {"CFBundleIconFiles": ["AppIcon60x60"]}},
        }
        path = self.workdir / "demo.ipa"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("Payload/Demo.app/Info.plist", plistlib.dumps(info))
            archive.writestr("Payload/Demo.app/AppIcon60x60@2x.png", make_png(vendor=True))
            archive.writestr("Payload/Demo.app/Other.png", b"not an icon")

        metadata = self.extractor.extract(path, PlatformEnum.IOS)

        self.assertEqual(metadata.name, "Demo")
        self.assertEqual(metadata.bundle_id, "com.example.demo")
        self.assertEqual(metadata.version_name, "1.2.3")
        self.assertEqual(metadata.version_code, "45")
        self.assertEqual(metadata.icon, make_png(vendor=True))

    def test_ipa_without_info_plist_fails(self):
        path = self.workdir / "empty.ipa"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("Payload/readme.txt", "nothing")

        with self.assertRaises(UpstreamParseError):
            self.extractor.extract(path, PlatformEnum.IOS)

    def test_non_archive_fails_with_parse_error(self):
        path = self.workdir / "broken.apk"
        path.write_bytes(b"definitely not a zip")

        with self.assertRaises(UpstreamParseError):
            self.extractor.extract(path, PlatformEnum.ANDROID)

    def test_apk_falls_back_to_manifest_scan_without_aapt2(self):
        path = self.workdir / "demo.apk"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("AndroidManifest.xml", "\x00com.example.android\x00".encode("utf-16-le"))
            archive.writestr("res/mipmap-hdpi/ic_launcher.png", make_png())

        metadata = self.extractor.extract(path, PlatformEnum.ANDROID)

        self.assertEqual(metadata.platform, PlatformEnum.ANDROID)
        self.assertEqual(metadata.bundle_id, "com.example.android")
        self.assertEqual(metadata.icon, make_png())
        self.assertIsNone(metadata.version_name)


if __name__ == "__main__":
    unittest.main()
