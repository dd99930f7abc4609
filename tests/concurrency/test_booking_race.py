from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, time
from threading import Barrier, Lock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import SlotConflictError
from app.db.base import Base
from app.db.models import AvailabilityWindow, Booking, Resource, Service, Tenant
from app.schemas.booking import CustomerPayload
from app.services import booking_service
from app.services.booking_service import create_booking


def _seed(SessionLocal, resource_count: int = 1) -> tuple[int, list[int]]:
    seed_session = SessionLocal()
    tenant = Tenant(name="Race Clinic", slug="race-clinic", timezone="UTC")
    resources = [Resource(tenant=tenant, name=f"Race Room {index}", sort_order=index) for index in range(resource_count)]
    service = Service(tenant=tenant, name="Race Check", duration_minutes=60, resources=resources)
    seed_session.add_all([tenant, service, *resources])
    seed_session.flush()
    seed_session.add_all(
        [
            AvailabilityWindow(resource_id=resource.id, day_of_week="monday", start_time=time(9), end_time=time(17))
            for resource in resources
        ]
    )
    seed_session.commit()
    service_id = service.id
    resource_ids = [resource.id for resource in resources]
    seed_session.close()
    return service_id, resource_ids


def _run_race(SessionLocal, service_id: int, resource_id: int | None, attempts: int) -> list[str]:
    barrier = Barrier(attempts)
    start_at = datetime(2026, 3, 2, 10, tzinfo=UTC)

    def attempt(index: int) -> str:
        session = SessionLocal()
        try:
            barrier.wait()
            create_booking(
                db=session,
                service_id=service_id,
                resource_id=resource_id,
                start_at=start_at,
                customer=CustomerPayload(name=f"Racer {index}", email=f"racer{index}@example.com"),
            )
            return "created"
        except SlotConflictError:
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        return list(pool.map(attempt, range(attempts)))


@pytest.mark.concurrent
def test_two_parallel_booking_attempts_only_one_succeeds(tmp_path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    service_id, resource_ids = _seed(SessionLocal)

    results = _run_race(SessionLocal, service_id, resource_ids[0], attempts=2)

    assert sorted(results) == ["conflict", "created"]
    check = SessionLocal()
    assert check.query(Booking).count() == 1
    check.close()
    engine.dispose()


@pytest.mark.concurrent
def test_any_resource_race_from_one_snapshot_books_first_choice_once(tmp_path, monkeypatch):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'pool-race.db'}", connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    service_id, resource_ids = _seed(SessionLocal, resource_count=2)

    attempts = 4
    selected: list[int] = []
    selected_guard = Lock()
    all_selected = Barrier(attempts, timeout=10)
    select_resource = booking_service.select_resource_for_start

    def select_then_wait(db, service, start_at):
        resource_id = select_resource(db, service, start_at)
        with selected_guard:
            selected.append(resource_id)
        all_selected.wait()
        return resource_id

    monkeypatch.setattr(booking_service, "select_resource_for_start", select_then_wait)

    results = _run_race(SessionLocal, service_id, None, attempts=attempts)

    # Every request resolved against the same empty pool, so all chose the same resource.
    assert selected == [resource_ids[0]] * attempts
    assert sorted(results) == ["conflict", "conflict", "conflict", "created"]
    check = SessionLocal()
    booked_resources = [booking.resource_id for booking in check.query(Booking).all()]
    check.close()
    engine.dispose()
    assert booked_resources == [resource_ids[0]]
