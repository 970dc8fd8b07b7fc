"""Database initialisation and seeding script.

Run this script to create all tables and populate them with a small workroom:
task types, a few tailors with skills and weekday shifts, one customer and a
sample alteration job.  QR images for the job and each of its parts are
written to ``QR_DIR`` so they can be printed and scanned straight away.

Usage::

    python db_setup.py

Environment variables (via ``tailorshop.config.Config``) control the database
URL and QR output directory.  This script is idempotent: tables that already
hold rows are not seeded again.
"""

from datetime import time

from tailorshop import create_app, db
from tailorshop.models import (
    Customer,
    TailorAbility,
    TailorSchedule,
    TaskType,
    User,
)
from tailorshop.qr_utils import make_job_qr, make_part_qr
from tailorshop.services.jobs import create_job

app = create_app()


def init_db() -> None:
    """Create tables and seed example data if necessary."""

    with app.app_context():
        db.create_all()

        # Task types define the kinds of work a tailor can be rated for.
        if db.session.execute(db.select(db.func.count(TaskType.id))).scalar_one() == 0:
            db.session.add_all([
                TaskType(name="Hem", default_duration=30),
                TaskType(name="Take In", default_duration=45),
                TaskType(name="Sleeve Shorten", default_duration=60),
                TaskType(name="Buttons", default_duration=15),
            ])
            db.session.commit()

        # Tailors work Monday to Saturday; ratings run 1 (trainee) to 5.
        if db.session.execute(db.select(db.func.count(User.id))).scalar_one() == 0:
            types = db.session.execute(db.select(TaskType)).scalars().all()
            tailors = [
                ("Maria Lopez", "maria@example.com", 5),
                ("Sam Okafor", "sam@example.com", 4),
                ("Lena Novak", "lena@example.com", 3),
            ]
            for name, email, rating in tailors:
                u = User(name=name, email=email, role="tailor")
                db.session.add(u)
                for tt in types:
                    db.session.add(TailorAbility(tailor=u, task_type=tt, proficiency=rating))
                for day in range(6):
                    db.session.add(
                        TailorSchedule(tailor=u, day_of_week=day, start_time=time(9), end_time=time(17))
                    )
            db.session.add(User(name="Front Desk", email="desk@example.com", role="staff"))
            db.session.commit()

        if db.session.execute(db.select(db.func.count(Customer.id))).scalar_one() == 0:
            customer = Customer(name="Jordan Reyes", phone="555-0100", email="jordan@example.com")
            db.session.add(customer)
            db.session.commit()
            hem = db.session.execute(db.select(TaskType).filter_by(name="Hem")).scalar_one()
            sleeve = db.session.execute(db.select(TaskType).filter_by(name="Sleeve Shorten")).scalar_one()
            job = create_job({
                "customerId": customer.id,
                "orderStatus": "ALTERATION_ONLY",
                "parts": [
                    {"partName": "Jacket", "taskTypeId": sleeve.id,
                     "tasks": [{"taskName": "Shorten sleeves 2cm"}]},
                    {"partName": "Pants", "taskTypeId": hem.id,
                     "tasks": [{"taskName": "Hem 3cm", "measurements": "inseam 78cm"}]},
                ],
            })
            qr_dir = app.config["QR_DIR"]
            make_job_qr(qr_dir, job)
            for part in job.parts:
                make_part_qr(qr_dir, part)

        print("Database initialised.")


if __name__ == "__main__":
    init_db()
