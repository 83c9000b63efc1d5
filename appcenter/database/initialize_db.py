import logging

from appcenter.models import (
    user,
    application,
    version,
    staged_file,
)
from appcenter.database.db_setup import Base, Database

logger = logging.getLogger(__name__)


def init_db(database: Database) -> None:
    try:
        Base.metadata.create_all(bind=database.engine)
    except Exception as e:
        logger.exception("[-] Failed to create database tables: %s", e)
        raise
