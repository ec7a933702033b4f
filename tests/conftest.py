import os
import tempfile

# Set environment variables BEFORE any package imports; interest_accrual.config
# builds its settings singleton at import time.
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "test_interest_accrual.db")
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_TEST_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["ACCRUAL_WATCHDOG_TIMEOUT_SECONDS"] = "30"
os.environ["ACCRUAL_FAIL_ON_ENTITY_ERRORS"] = "true"

import pytest

from interest_accrual.database import Base
from interest_accrual.database import engine as app_engine


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    """Fresh schema on the package engine for every test."""
    Base.metadata.drop_all(bind=app_engine)
    Base.metadata.create_all(bind=app_engine)
    yield
