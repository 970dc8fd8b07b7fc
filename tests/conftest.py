from datetime import datetime, time

import pytest

from tailorshop import create_app, db
from tailorshop.models import Customer, TailorAbility, TailorSchedule, TaskType, User

# A Monday; schedules below use day_of_week=0
MONDAY_10AM = datetime(2026, 10, 19, 10, 0)
DAY_SHIFT = ((0, time(9), time(17)),)


@pytest.fixture()
def app():
    app = create_app(testing=True)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ids(app):
    """Seed a front-desk user, a customer and two task types."""
    with app.app_context():
        desk = User(name="Front Desk", email="desk@example.com")
        customer = Customer(name="Jordan Reyes", phone="555-0100")
        hem = TaskType(name="Hem", default_duration=30)
        sleeve = TaskType(name="Sleeve Shorten", default_duration=60)
        db.session.add_all([desk, customer, hem, sleeve])
        db.session.commit()
        return {"desk": desk.id, "customer": customer.id, "hem": hem.id, "sleeve": sleeve.id}


@pytest.fixture()
def add_tailor(app):
    def _add(name, skills, shifts=DAY_SHIFT, active=True):
        with app.app_context():
            t = User(name=name, role="tailor", active=active)
            db.session.add(t)
            for task_type_id, rating in skills.items():
                db.session.add(TailorAbility(tailor=t, task_type_id=task_type_id, proficiency=rating))
            for day, start, end in shifts:
                db.session.add(TailorSchedule(tailor=t, day_of_week=day, start_time=start, end_time=end))
            db.session.commit()
            return t.id
    return _add


@pytest.fixture()
def make_job(client, ids):
    def _make(parts, **extra):
        body = {"customerId": ids["customer"], "parts": parts}
        body.update(extra)
        r = client.post("/api/alterations", json=body)
        assert r.status_code == 201, r.json
        return r.json
    return _make
