"""
IPA/APK metadata extraction.
"""
from __future__ import annotations

import logging
import plistlib
import re
import subprocess
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from appcenter.exceptions.exceptions import UpstreamParseError
from appcenter.models.enums import PlatformEnum

logger = logging.getLogger(__name__)

_IPA_INFO_PLIST = re.compile(r"^Payload/[^/]+\.app/Info\.plist$")
_LAUNCHER_ICON = re.compile(r"^res/mipmap[^/]*/ic_launcher\.png$")


@dataclass
class BinaryMetadata:
    platform: PlatformEnum
    name: str | None = None
    bundle_id: str | None = None
    version_name: str | None = None
    version_code: str | None = None
    icon: bytes | str | None = None


def platform_for_filename(filename: str) -> PlatformEnum | None:
    ext = Path(filename or "").suffix.lower()
    if ext == ".ipa":
        return PlatformEnum.IOS
    if ext == ".apk":
        return PlatformEnum.ANDROID
    return None


class BinaryMetadataExtractor(ABC):
    """Reads identity, version and icon out of an uploaded package."""

    @abstractmethod
    def extract(self, path: str | Path, platform: PlatformEnum) -> BinaryMetadata:
        """Raise UpstreamParseError when the package cannot be read."""


class PackageMetadataExtractor(BinaryMetadataExtractor):
    """Default extractor: zipfile/plistlib for IPA, ``aapt2 dump badging`` for APK."""

    def __init__(self, aapt2_path: str = "aapt2", timeout_seconds: int = 30):
        self.aapt2_path = aapt2_path
        self.timeout_seconds = timeout_seconds

    def extract(self, path: str | Path, platform: PlatformEnum) -> BinaryMetadata:
        try:
            if platform == PlatformEnum.IOS:
                return self._extract_ipa(str(path))
            return self._extract_apk(str(path))
        except zipfile.BadZipFile as exc:
            raise UpstreamParseError(f"Package is not a valid archive: {exc}") from exc
        except (KeyError, OSError, plistlib.InvalidFileException) as exc:
            raise UpstreamParseError(f"Unable to read package: {exc}") from exc

    # IPA

    def _extract_ipa(self, path: str) -> BinaryMetadata:
        with zipfile.ZipFile(path, "r") as archive:
            names = archive.namelist()
            plist_names = [name for name in names if _IPA_INFO_PLIST.match(name)]
            if not plist_names:
                raise UpstreamParseError("Info.plist not found in IPA")
            plist_name = plist_names[0]
            try:
                info = plistlib.loads(archive.read(plist_name))
            except (ValueError, plistlib.InvalidFileException) as exc:
                raise UpstreamParseError(f"Info.plist is unreadable: {exc}") from exc

            bundle_dir = plist_name.rsplit("/", 1)[0] + "/"
            icon = self._read_ipa_icon(archive, names, bundle_dir, info)

        return BinaryMetadata(
            platform=PlatformEnum.IOS,
            name=info.get("CFBundleDisplayName") or info.get("CFBundleName"),
            bundle_id=info.get("CFBundleIdentifier"),
            version_name=info.get("CFBundleShortVersionString"),
            version_code=info.get("CFBundleVersion"),
            icon=icon,
        )

    @staticmethod
    def _ipa_icon_names(info: dict) -> list[str]:
        candidates: list[str] = []
        for key in ("CFBundleIcons", "CFBundleIcons~ipad"):
            primary = (info.get(key) or {}).get("CFBundlePrimaryIcon") or {}
            candidates.extend(primary.get("CFBundleIconFiles") or [])
            if primary.get("CFBundleIconName"):
                candidates.append(primary["CFBundleIconName"])
        candidates.extend(info.get("CFBundleIconFiles") or [])
        if info.get("CFBundleIconFile"):
            candidates.append(info["CFBundleIconFile"])
        return [str(name) for name in candidates if name]

    def _read_ipa_icon(self, archive: zipfile.ZipFile, names: list[str], bundle_dir: str, info: dict) -> bytes | None:
        prefixes = [PurePosixPath(name).stem for name in self._ipa_icon_names(info)] or ["AppIcon"]
        matches = [
            name
            for name in names
            if name.startswith(bundle_dir)
            and "/" not in name[len(bundle_dir):]
            and name.lower().endswith(".png")
            and any(PurePosixPath(name).name.startswith(prefix) for prefix in prefixes)
        ]
        if not matches:
            return None
        # Largest candidate is the highest resolution
        best = max(matches, key=lambda name: archive.getinfo(name).file_size)
        return archive.read(best)

    # APK

    def _extract_apk(self, path: str) -> BinaryMetadata:
        metadata = BinaryMetadata(platform=PlatformEnum.ANDROID)
        icon_entry: str | None = None

        badging = self._run_aapt2(path)
        if badging is not None:
            metadata.bundle_id = _search(r"package: name='([^']+)'", badging)
            metadata.version_name = _search(r"versionName='([^']*)'", badging)
            metadata.version_code = _search(r"versionCode='(\d+)'", badging)
            metadata.name = _search(r"application-label:'([^']+)'", badging) or _search(
                r"application: label='([^']+)'", badging
            )
            icon_entry = self._best_badging_icon(badging)

        with zipfile.ZipFile(path, "r") as archive:
            names = archive.namelist()
            if "AndroidManifest.xml" not in names:
                raise UpstreamParseError("AndroidManifest.xml not found in APK")

            if metadata.bundle_id is None:
                manifest = archive.read("AndroidManifest.xml")
                # Binary XML stores strings as UTF-16LE
                decoded = manifest.decode("utf-16-le", errors="ignore")
                match = re.search(r"([a-zA-Z][\w]*(?:\.[a-zA-Z][\w]*){2,})", decoded)
                if match:
                    metadata.bundle_id = match.group(1)

            if icon_entry is None or not icon_entry.endswith(".png") or icon_entry not in names:
                launchers = [name for name in names if _LAUNCHER_ICON.match(name)]
                icon_entry = max(launchers, key=lambda name: archive.getinfo(name).file_size) if launchers else None
            if icon_entry:
                metadata.icon = archive.read(icon_entry)

        return metadata

    def _run_aapt2(self, path: str) -> str | None:
        try:
            result = subprocess.run(
                [self.aapt2_path, "dump", "badging", path],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            logger.warning("[parser] %s not found, falling back to ZIP scan", self.aapt2_path)
            return None
        except subprocess.TimeoutExpired:
            logger.warning("[parser] %s timed out on %s", self.aapt2_path, path)
            return None
        if result.returncode != 0:
            logger.warning("[parser] %s exited %s: %s", self.aapt2_path, result.returncode, result.stderr.strip())
            return None
        return result.stdout

    @staticmethod
    def _best_badging_icon(badging: str) -> str | None:
        sized = [
            (int(density), entry)
            for density, entry in re.findall(r"application-icon-(\d+):'([^']+)'", badging)
        ]
        if sized:
            return max(sized)[1]
        return _search(r"application: .*?icon='([^']+)'", badging)


def _search(pattern: str, text: str) -> str | None:
    match = re.search(pattern, text)
    return match.group(1) if match else None
