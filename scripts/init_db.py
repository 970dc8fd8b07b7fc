from datetime import time

from tailorshop import create_app, db
from tailorshop.models import Customer, TailorAbility, TailorSchedule, TaskType, User
from tailorshop.services.jobs import create_job

app = create_app()

with app.app_context():
    db.drop_all()
    db.create_all()

    # Task types and tailors
    task_types = [TaskType(name=n, default_duration=d) for n, d in
                  [("Hem", 30), ("Take In", 45), ("Let Out", 45), ("Sleeve Shorten", 60)]]
    db.session.add_all(task_types)
    tailors = []
    for i in range(1, 5 + 1):
        t = User(name=f"Tailor {i}", email=f"tailor{i}@example.com", role="tailor")
        tailors.append(t); db.session.add(t)
        for tt in task_types:
            db.session.add(TailorAbility(tailor=t, task_type=tt, proficiency=1 + (i + tt.default_duration) % 5))
        for day in range(5):
            db.session.add(TailorSchedule(tailor=t, day_of_week=day, start_time=time(8), end_time=time(16)))
    db.session.commit()

    # Sample customer with a three-part job
    c = Customer(name="Sample Customer", phone="555-0199")
    db.session.add(c); db.session.commit()
    job = create_job({
        "customerId": c.id,
        "rushOrder": True,
        "parts": [
            {"partName": "Jacket", "taskTypeId": task_types[3].id},
            {"partName": "Pants", "taskTypeId": task_types[0].id},
            {"partName": "Vest", "taskTypeId": task_types[1].id},
        ],
    })
    for p in job.parts:
        print(p.part_name, p.qr_code)

    print("Database initialized.")
