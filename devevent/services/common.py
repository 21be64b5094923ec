import logging
from contextlib import contextmanager

import psycopg

from devevent.errors import DatabaseError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(operation: str):
    """Translate driver errors raised inside the block into ``DatabaseError``."""
    try:
        yield
    except psycopg.Error as e:
        logger.exception("Storage failure during %s", operation)
        raise DatabaseError() from e
