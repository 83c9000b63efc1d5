import struct
import zlib
from pathlib import Path

from sqlalchemy.orm import Session

from appcenter.core.config import AppSettings
from appcenter.core.security import hash_password
from appcenter.database.db_setup import Database
from appcenter.database.initialize_db import init_db
from appcenter.exceptions.exceptions import UpstreamParseError
from appcenter.infrastructure.binary_parser import BinaryMetadata, BinaryMetadataExtractor
from appcenter.infrastructure.keys import new_id
from appcenter.models.enums import PlatformEnum, RoleEnum
from appcenter.models.user import User

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SUPERUSER_USERNAME = "root"
SUPERUSER_PASSWORD = "root-password-123"


def make_settings(workdir: Path, **overrides) -> AppSettings:
    workdir = Path(workdir)
    values = {
        "DATABASE_URL": f"sqlite:///{workdir / 'appcenter_test.db'}",
        "SECRET_KEY": "test_secret_key_for_the_app_center_suite_0123456789",
        "UPLOAD_ROOT": str(workdir / "uploads"),
        "LOG_DIR": str(workdir / "logs"),
        "LOG_FILE_PATH": str(workdir / "logs" / "app.log"),
        "PUBLIC_BASE_URL": "http://localhost:8000",
        "TEMP_CLEANUP_ENABLED": False,
        "REQUEST_LOG_ENABLED": False,
        "SUPERUSER_USERNAME": SUPERUSER_USERNAME,
        "SUPERUSER_EMAIL": "root@example.com",
        "SUPERUSER_PASSWORD": SUPERUSER_PASSWORD,
        "DEFAULT_ADMIN_USERNAME": "",
        "DEFAULT_ADMIN_EMAIL": "",
        "DEFAULT_ADMIN_PASSWORD": "",
    }
    values.update(overrides)
    return AppSettings(**values)


def open_database(settings: AppSettings) -> Database:
    database = Database(settings)
    init_db(database)
    return database


def add_user(
    session: Session,
    username: str,
    role: RoleEnum = RoleEnum.ADMIN,
    password: str = "password-123",
    created_by: str | None = None,
    is_active: bool = True,
) -> User:
    user = User(
        id=new_id(),
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(password),
        role=role,
        is_active=is_active,
        created_by=created_by,
    )
    session.add(user)
    session.commit()
    return user


def as_current_user(user: User) -> dict:
    return {"user_id": user.id, "username": user.username, "email": user.email, "role": user.role}


def png_chunk(kind: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)


def make_png(vendor: bool = False) -> bytes:
    ihdr = png_chunk(b"IHDR", struct.pack(">IIBBBBB", 1, 1, 8, 6, 0, 0, 0))
    idat = png_chunk(b"IDAT", zlib.compress(b"\x00\x00\x00\x00\x00"))
    iend = png_chunk(b"IEND", b"")
    cgbi = png_chunk(b"CgBI", b"\x50\x00\x20\x02") if vendor else b""
    return PNG_SIGNATURE + cgbi + ihdr + idat + iend


async def chunks(*parts: bytes):
    for part in parts:
        yield part


class FakeExtractor(BinaryMetadataExtractor):
    """Returns canned metadata so tests do not need real packages."""

    def __init__(self, fail: bool = False, **overrides):
        self.fail = fail
        self.overrides = overrides
        self.calls = []

    def extract(self, path, platform: PlatformEnum) -> BinaryMetadata:
        self.calls.append((str(path), platform))
        if self.fail:
            raise UpstreamParseError("Package is not a valid archive")
        values = {
            "name": "Demo App",
            "bundle_id": "com.example.demo",
            "version_name": "2.1.0",
            "version_code": "42",
            "icon": make_png(vendor=True),
        }
        values.update(self.overrides)
        return BinaryMetadata(platform=platform, **values)
