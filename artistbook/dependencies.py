# artistbook/dependencies.py

from datetime import datetime, timezone


# FastAPI dependency: wall clock, overridden in tests
def get_now() -> datetime:
    return datetime.now(timezone.utc)
