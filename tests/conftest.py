"""Root conftest — path markers, a controllable clock and shared profiles.

The Redis container used by ``tests/integration`` is session-scoped and
skips the requesting tests when Docker is not available.
"""

from __future__ import annotations

from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import UTC
import logging
from pathlib import Path
import time

import pytest
import redis as sync_redis
from dotenv import load_dotenv
from testcontainers.core.container import DockerContainer

from strata.models.profile import ApplicationHistory
from strata.models.profile import ApplicationRecord
from strata.models.profile import BasicInfo
from strata.models.profile import EntityProfile
from strata.models.profile import Qualifications

logger = logging.getLogger(__name__)

# Load repository-root .env for test opt-ins (existing env vars stay authoritative).
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env", override=False)


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Attach suite markers from test path.

    - `tests/unit/*` -> `unit`
    - `tests/integration/*` -> `integration`
    """
    root = Path(__file__).resolve().parents[1]
    for item in items:
        item_path = Path(str(item.fspath)).resolve()
        try:
            rel = item_path.relative_to(root)
        except ValueError:
            continue

        parts = rel.parts
        if len(parts) < 2 or parts[0] != "tests":
            continue
        if parts[1] == "unit":
            item.add_marker(pytest.mark.unit)
        elif parts[1] == "integration":
            item.add_marker(pytest.mark.integration)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

START = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@pytest.fixture()
def acme_profile() -> EntityProfile:
    """Five-year-old manufacturer with a long certification list."""
    return EntityProfile(
        id="acme",
        name="Acme",
        basic=BasicInfo(
            founded_date=date(2020, 3, 1),
            employee_count=50,
            annual_revenue=3200,
            region="Gyeonggi",
            industry="precision machining",
            main_products=["CNC parts", "injection molds"],
        ),
        qualifications=Qualifications(
            certifications=[
                "ISO 9001",
                "ISO 14001",
                "INNOBIZ",
                "MAINBIZ",
                "벤처기업",
                "연구소 인증",
                "뿌리기업",
            ],
            registrations=["공장등록"],
            patents=3,
            trademarks=1,
        ),
        history=ApplicationHistory(
            total_applications=4,
            selection_count=1,
            rejection_count=3,
            applications=[
                ApplicationRecord(
                    id="app-1",
                    program_name="스마트공장 구축",
                    result="rejected",
                    applied_at=date(2023, 4, 10),
                    rejection_reason="기술성 평가 미달",
                ),
                ApplicationRecord(
                    id="app-2",
                    program_name="AI바우처",
                    result="selected",
                    applied_at=date(2023, 9, 1),
                    amount=150_000_000,
                ),
                ApplicationRecord(
                    id="app-3",
                    program_name="초기창업패키지",
                    result="rejected",
                    applied_at=date(2024, 2, 20),
                    rejection_reason="사업화 계획 구체성 부족",
                ),
                ApplicationRecord(
                    id="app-4",
                    program_name="수출바우처",
                    result="rejected",
                    applied_at=date(2024, 7, 5),
                ),
            ],
        ),
    )


@pytest.fixture()
def bare_profile() -> EntityProfile:
    return EntityProfile(id="bare", name="Bare Co")


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def redis_container():
    """Spin up a Redis 7 container and yield its URL.

    Session-scoped: one container for the entire test run.  Skips when
    Docker cannot start the container.
    """
    container = DockerContainer("redis:7-alpine").with_exposed_ports(6379)
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"Docker unavailable: {exc}")

    try:
        host = container.get_container_host_ip()
        port = container.get_exposed_port(6379)
        url = f"redis://{host}:{port}"

        # Wait for Redis readiness
        r = sync_redis.Redis(host=host, port=int(port))
        max_attempts = 30
        for attempt in range(max_attempts):
            try:
                r.ping()
                r.close()
                break
            except Exception as exc:
                if attempt == max_attempts - 1:
                    r.close()
                    raise
                logger.debug(
                    "Redis not ready (attempt %d/%d): %s",
                    attempt + 1,
                    max_attempts,
                    exc,
                )
                time.sleep(1)

        yield url
    finally:
        container.stop()


@pytest.fixture()
def redis_client(redis_container):
    """Yield a Redis client connected to the test container, flushed around each test."""
    client = sync_redis.Redis.from_url(redis_container)
    client.flushdb()
    yield client
    client.flushdb()
    client.close()
