from datetime import datetime, time

from tailorshop import db
from tailorshop.models import AlterationJobPart, AssignmentLog, TailorSchedule
from tailorshop.services import assignment
from tailorshop.services.assignment import (
    LOOKUP_FAILED,
    MAX_WORKLOAD,
    NO_TAILOR,
    OUT_OF_SCHEDULE,
    is_within_schedule,
)

from conftest import MONDAY_10AM

AT_10 = MONDAY_10AM.isoformat()


def auto_assign(client, job_id, **body):
    r = client.post(f"/api/alterations/{job_id}/auto-assign", json=body)
    assert r.status_code == 200, r.json
    assert r.json["success"] is True
    return r.json["assignments"]


def test_no_qualified_tailor(client, ids, make_job, add_tailor):
    add_tailor("Trainee", {ids["sleeve"]: 2})
    job = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"], "scheduledTime": AT_10}])

    [row] = auto_assign(client, job["id"])
    assert row["partId"] == job["parts"][0]["id"]
    assert row["assignedTailorId"] is None
    assert row["reason"] == NO_TAILOR
    assert row["candidates"] == []


def test_part_without_task_type_is_left_unassigned(client, ids, make_job, add_tailor):
    add_tailor("Maria", {ids["hem"]: 5})
    job = make_job([{"partName": "Shirt", "scheduledTime": AT_10}])
    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] is None and row["reason"] == NO_TAILOR


def test_manual_override_unassigns(client, app, ids, make_job, add_tailor):
    maria = add_tailor("Maria", {ids["hem"]: 5})
    job = make_job([{"partName": "Pants", "taskTypeId": ids["hem"], "scheduledTime": AT_10}])
    part_id = job["parts"][0]["id"]
    auto_assign(client, job["id"])
    with app.app_context():
        assert db.session.get(AlterationJobPart, part_id).assigned_tailor_id == maria

    rows = auto_assign(client, job["id"], assignments=[{"partId": part_id, "assignedTailorId": None}])
    assert rows == [{"partId": part_id, "assignedTailorId": None}]
    with app.app_context():
        assert db.session.get(AlterationJobPart, part_id).assigned_tailor_id is None
        methods = db.session.execute(
            db.select(AssignmentLog.method).where(AssignmentLog.part_id == part_id).order_by(AssignmentLog.id)
        ).scalars().all()
        assert methods == ["auto", "manual"]


def test_manual_override_ignores_eligibility(client, app, ids, make_job, add_tailor):
    trainee = add_tailor("Trainee", {ids["hem"]: 1}, shifts=())
    job = make_job([{"partName": "Pants", "taskTypeId": ids["hem"]}])
    part_id = job["parts"][0]["id"]
    rows = auto_assign(client, job["id"], assignments=[{"partId": part_id, "assignedTailorId": trainee}])
    assert rows[0]["assignedTailorId"] == trainee


def test_manual_override_rejects_foreign_part(client, ids, make_job):
    a = make_job([{"partName": "Pants"}])
    b = make_job([{"partName": "Jacket"}])
    r = client.post(
        f"/api/alterations/{a['id']}/auto-assign",
        json={"assignments": [{"partId": b["parts"][0]["id"], "assignedTailorId": None}]},
    )
    assert r.status_code == 400


def test_prefers_lower_workload_then_higher_proficiency(client, ids, make_job, add_tailor):
    add_tailor("Okay", {ids["sleeve"]: 3})
    best = add_tailor("Best", {ids["sleeve"]: 5})
    add_tailor("Trainee", {ids["sleeve"]: 2})
    job = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"], "scheduledTime": AT_10}])

    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] == best
    assert row["duration"] == 60
    assert row["reason"].startswith("Assigned")
    assert sorted(c["proficiency"] for c in row["candidates"]) == [3, 5]


def test_workload_cap_excludes_busy_tailor(client, ids, make_job, add_tailor):
    busy = add_tailor("Busy", {ids["sleeve"]: 5})
    free = add_tailor("Free", {ids["sleeve"]: 3})
    earlier = make_job([{"partName": "Dress", "estimatedTime": 450, "scheduledTime": AT_10}])
    auto_assign(client, earlier["id"],
                assignments=[{"partId": earlier["parts"][0]["id"], "assignedTailorId": busy}])

    job = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"], "scheduledTime": AT_10}])
    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] == free
    reasons = {c["tailorId"]: c["reason"] for c in row["candidates"]}
    assert reasons[busy] == MAX_WORKLOAD


def test_finished_work_does_not_count_toward_workload(client, ids, make_job, add_tailor):
    busy = add_tailor("Busy", {ids["sleeve"]: 5})
    earlier = make_job([{"partName": "Dress", "estimatedTime": 450, "scheduledTime": AT_10}])
    qr = earlier["parts"][0]["qr_code"]
    client.post(f"/api/alterations/scan/{qr}", json={"scanType": "START_WORK"}, headers={"X-User-Id": str(busy)})
    client.post(f"/api/alterations/scan/{qr}", json={"scanType": "FINISH_WORK"}, headers={"X-User-Id": str(busy)})

    job = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"], "scheduledTime": AT_10}])
    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] == busy


def test_out_of_schedule(client, ids, make_job, add_tailor):
    late = add_tailor("Late", {ids["sleeve"]: 5})
    weekend = add_tailor("Weekend", {ids["sleeve"]: 5}, shifts=((5, time(9), time(17)),))
    # 16:30 + 60 minutes runs past a 17:00 shift end
    job = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"],
                     "scheduledTime": "2026-10-19T16:30:00"}])

    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] is None
    reasons = {c["tailorId"]: c["reason"] for c in row["candidates"]}
    assert reasons == {late: OUT_OF_SCHEDULE, weekend: OUT_OF_SCHEDULE}


def test_avoids_repeating_previous_tailor(client, app, ids, make_job, add_tailor):
    first = add_tailor("First", {ids["sleeve"]: 5})
    second = add_tailor("Second", {ids["sleeve"]: 4})
    # give "Second" some same-day load so "First" sorts ahead for both parts
    earlier = make_job([{"partName": "Dress", "estimatedTime": 180, "scheduledTime": AT_10}])
    auto_assign(client, earlier["id"],
                assignments=[{"partId": earlier["parts"][0]["id"], "assignedTailorId": second}])

    job = make_job([
        {"partName": "Jacket", "taskTypeId": ids["sleeve"], "scheduledTime": AT_10},
        {"partName": "Pants", "taskTypeId": ids["sleeve"], "scheduledTime": AT_10},
    ])
    rows = auto_assign(client, job["id"])
    assert [r["assignedTailorId"] for r in rows] == [first, second]
    # the second pass saw First's pending hour from this run
    workloads = {c["tailorId"]: c["workload"] for c in rows[1]["candidates"]}
    assert workloads == {first: 60, second: 180}


def test_single_tailor_takes_consecutive_parts(client, ids, make_job, add_tailor):
    only = add_tailor("Only", {ids["hem"]: 4})
    job = make_job([
        {"partName": "Pants", "taskTypeId": ids["hem"], "scheduledTime": AT_10},
        {"partName": "Skirt", "taskTypeId": ids["hem"], "scheduledTime": AT_10},
    ])
    rows = auto_assign(client, job["id"])
    assert [r["assignedTailorId"] for r in rows] == [only, only]


def test_skips_assigned_parts_unless_forced(client, ids, make_job, add_tailor):
    maria = add_tailor("Maria", {ids["hem"]: 3})
    sam = add_tailor("Sam", {ids["hem"]: 5})
    job = make_job([{"partName": "Pants", "taskTypeId": ids["hem"], "scheduledTime": AT_10}])
    part_id = job["parts"][0]["id"]
    client.put(f"/api/alterations/parts/{part_id}/assign", json={"tailorId": maria})

    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] == maria and row["reason"] == "Already assigned"

    [row] = auto_assign(client, job["id"], force=True)
    assert row["assignedTailorId"] == sam


def test_auto_assign_unknown_job(client):
    r = client.post("/api/alterations/999/auto-assign", json={})
    assert r.status_code == 404


def test_available_tailors_endpoint(client, ids, add_tailor):
    maria = add_tailor("Maria", {ids["hem"]: 4})
    r = client.get(f"/api/tailors/available?taskTypeId={ids['hem']}&start={AT_10}")
    assert r.status_code == 200
    assert r.json["candidates"] == [
        {"tailorId": maria, "name": "Maria", "workload": 0, "proficiency": 4, "reason": "Available"}
    ]
    assert client.get("/api/tailors/available").status_code == 400


def test_is_within_schedule():
    shift = TailorSchedule(day_of_week=0, start_time=time(9), end_time=time(17))
    assert is_within_schedule(shift, datetime(2026, 10, 19, 9, 0), 480)
    assert not is_within_schedule(shift, datetime(2026, 10, 19, 8, 59), 30)
    assert not is_within_schedule(shift, datetime(2026, 10, 19, 16, 31), 30)
    assert not is_within_schedule(None, MONDAY_10AM, 30)


def test_unscheduled_work_counts_in_later_runs(client, app, ids, make_job, add_tailor, monkeypatch):
    monkeypatch.setattr(assignment, "shop_now", lambda: MONDAY_10AM)
    only = add_tailor("Only", {ids["sleeve"]: 5})
    full_day = make_job([{"partName": f"Part {i}", "taskTypeId": ids["sleeve"]} for i in range(8)])
    rows = auto_assign(client, full_day["id"])
    assert {r["assignedTailorId"] for r in rows} == {only}
    with app.app_context():
        parts = db.session.execute(
            db.select(AlterationJobPart).where(AlterationJobPart.job_id == full_day["id"])
        ).scalars().all()
        assert {p.scheduled_time for p in parts} == {MONDAY_10AM}

    # a separate run the same day finds the tailor at the daily cap
    extra = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"]}])
    [row] = auto_assign(client, extra["id"])
    assert row["assignedTailorId"] is None and row["reason"] == NO_TAILOR
    assert row["candidates"] == [
        {"tailorId": only, "name": "Only", "workload": 480, "proficiency": 5, "reason": MAX_WORKLOAD}
    ]


def test_unassigned_part_stays_unscheduled(client, app, ids, make_job, monkeypatch):
    monkeypatch.setattr(assignment, "shop_now", lambda: MONDAY_10AM)
    job = make_job([{"partName": "Jacket", "taskTypeId": ids["sleeve"]}])
    auto_assign(client, job["id"])
    with app.app_context():
        assert db.session.get(AlterationJobPart, job["parts"][0]["id"]).scheduled_time is None


def test_engine_and_lookup_share_the_shop_clock(client, ids, make_job, add_tailor, monkeypatch):
    maria = add_tailor("Maria", {ids["hem"]: 4})
    url = f"/api/tailors/available?taskTypeId={ids['hem']}"

    monkeypatch.setattr(assignment, "shop_now", lambda: datetime(2026, 10, 18, 10, 0))  # Sunday
    assert client.get(url).json["candidates"][0]["reason"] == OUT_OF_SCHEDULE
    job = make_job([{"partName": "Pants", "taskTypeId": ids["hem"]}])
    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] is None

    monkeypatch.setattr(assignment, "shop_now", lambda: MONDAY_10AM)
    assert client.get(url).json["candidates"][0]["reason"] == "Available"
    [row] = auto_assign(client, job["id"])
    assert row["assignedTailorId"] == maria


def test_lookup_failure_stays_with_its_part(client, ids, make_job, add_tailor, monkeypatch):
    maria = add_tailor("Maria", {ids["hem"]: 4})
    job = make_job([
        {"partName": "Pants", "taskTypeId": ids["hem"], "scheduledTime": AT_10},
        {"partName": "Skirt", "taskTypeId": ids["hem"], "scheduledTime": AT_10},
    ])
    real = assignment.find_candidates
    calls = []

    def failing_once(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            db.session.execute(db.text("SELECT * FROM no_such_table"))
        return real(*args, **kwargs)

    monkeypatch.setattr(assignment, "find_candidates", failing_once)
    first, second = auto_assign(client, job["id"])
    assert first["assignedTailorId"] is None and first["reason"] == LOOKUP_FAILED
    assert second["assignedTailorId"] == maria
    assert client.get(f"/api/alterations/{job['id']}").json["parts"][1]["assigned_tailor_id"] == maria
