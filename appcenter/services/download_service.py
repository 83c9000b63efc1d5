from __future__ import annotations

import logging
import plistlib
from urllib.parse import quote, urlsplit, urlunsplit

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.exceptions.exceptions import NotFoundError, UnsupportedPlatform
from appcenter.models.application import Application
from appcenter.models.enums import PlatformEnum
from appcenter.models.version import Version

logger = logging.getLogger(__name__)

_LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


def externalize_download_url(url: str | None, request_host: str | None) -> str | None:
    """
    Make a stored download URL reachable from a device.

    Loopback origins are swapped for the host the request came in on; every
    URL is forced to HTTPS since iOS refuses OTA installs over plain HTTP.
    """
    if not url:
        return url
    parts = urlsplit(url)
    netloc = parts.netloc
    if parts.hostname in _LOOPBACK_HOSTS and request_host:
        request_hostname = urlsplit(f"//{request_host}").hostname or request_host
        netloc = f"{request_hostname}:{parts.port}" if parts.port else request_hostname
    scheme = "https" if parts.scheme in ("http", "https", "") else parts.scheme
    return urlunsplit((scheme, netloc, parts.path, parts.query, parts.fragment))


class DownloadService:
    """Public, unauthenticated lookups keyed by an application's download key."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def resolve_by_download_key(self, download_key: str) -> Application:
        with self.uow.read_only():
            application = self.uow.application_repo.get_application_by_download_key(download_key)
            if not application:
                raise NotFoundError("Application not found or no longer available")
            return application

    def list_version_history(self, download_key: str) -> list[Version]:
        application = self.resolve_by_download_key(download_key)
        with self.uow.read_only():
            return self.uow.version_repo.list_versions(application.id)

    def build_plist(
        self,
        download_key: str,
        version_id: str | None = None,
        request_host: str | None = None,
    ) -> tuple[bytes, str]:
        """
        Render the OTA install manifest for an iOS application.

        :param download_key: Public key of the application
        :param version_id: Optional version of that application to install
        :param request_host: Host header of the incoming request
        :return: The plist document and a suggested file name
        :rtype: tuple[bytes, str]
        """
        application = self.resolve_by_download_key(download_key)
        if application.platform != PlatformEnum.IOS.value:
            raise UnsupportedPlatform()

        bundle_version = application.version
        download_url = application.download_url
        if version_id:
            with self.uow.read_only():
                version = self.uow.version_repo.get_version(application.id, version_id)
            # A version of another application is ignored
            if version is not None:
                bundle_version = version.version
                download_url = version.download_url

        title = application.app_name or application.name
        manifest = {
            "items": [
                {
                    "assets": [
                        {
                            "kind": "software-package",
                            "url": externalize_download_url(download_url, request_host) or "",
                        }
                    ],
                    "metadata": {
                        "bundle-identifier": application.bundle_id or "",
                        "bundle-version": bundle_version or "",
                        "kind": "software",
                        "title": title,
                    },
                }
            ]
        }
        logger.info("[plist] download_key=%s version_id=%s", download_key, version_id)
        return plistlib.dumps(manifest), f"{title}.plist"

    @staticmethod
    def install_url(manifest_url: str) -> str:
        return f"itms-services://?action=download-manifest&url={quote(manifest_url, safe='')}"
