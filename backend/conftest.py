from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["NOTIFICATIONS_PROVIDER"] = "noop"
# Keep Argon2 cheap in tests.
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

from residenthub.database import Base  # noqa: E402
from residenthub.apps.accounts import models as account_models  # noqa: E402
from residenthub.apps.societies import models as society_models  # noqa: E402
from residenthub.apps.units import models as unit_models  # noqa: E402
from residenthub.apps.residents import models as resident_models  # noqa: E402
from residenthub.apps.maintenance import models as maintenance_models  # noqa: E402
from residenthub.apps.issues import models as issue_models  # noqa: E402
from residenthub.apps.announcements import models as announcement_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.User.__table__,
            society_models.Society.__table__,
            unit_models.Unit.__table__,
            resident_models.Resident.__table__,
            resident_models.ResidentJoinRequest.__table__,
            maintenance_models.Maintenance.__table__,
            issue_models.Issue.__table__,
            announcement_models.Announcement.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
