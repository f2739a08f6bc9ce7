"""Pytest configuration and fixtures."""
import os
import tempfile
from datetime import date

# Settings are read at import time by config.py
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "schedule_health_tests.log")
os.environ["ALLOWED_USERS"] = ""

import pytest

from planning.models import ScheduleTask


@pytest.fixture
def clean_db():
    """Fresh schema in the in-memory database."""
    from database import operations
    from database.models import Base

    Base.metadata.drop_all(operations.engine)
    Base.metadata.create_all(operations.engine)
    yield operations
    Base.metadata.drop_all(operations.engine)


@pytest.fixture
def diamond_tasks():
    """A -> (B, C) -> D, B is the long branch."""
    return [
        ScheduleTask(id=1, name="A", duration_days=2, start_date=date(2024, 1, 1)),
        ScheduleTask(id=2, name="B", duration_days=5, predecessors=[1]),
        ScheduleTask(id=3, name="C", duration_days=1, predecessors=[1]),
        ScheduleTask(id=4, name="D", duration_days=2, predecessors=[2, 3]),
    ]
