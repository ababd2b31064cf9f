# artistbook/init_db.py
"""
Create database tables.

Usage: python -m artistbook.init_db
"""

import logging

from .database import engine
from .models import Base

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
