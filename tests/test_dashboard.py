from datetime import datetime, timedelta

from tailorshop import db
from tailorshop.models import AlterationJob, utcnow
from tailorshop.services.dashboard import dashboard_stats


def hdr(user_id):
    return {"X-User-Id": str(user_id)}


def test_dashboard_counts(client, app, ids, make_job, add_tailor):
    maria = add_tailor("Maria", {})
    done = make_job([{"partName": "Jacket"}])
    busy = make_job([{"partName": "Pants"}, {"partName": "Vest"}])
    make_job([{"partName": "Skirt"}], dueDate="2020-01-01T00:00:00")

    qr = done["parts"][0]["qr_code"]
    for scan_type in ("START_WORK", "FINISH_WORK", "PICKUP"):
        client.post(f"/api/alterations/scan/{qr}", json={"scanType": scan_type}, headers=hdr(maria))
    client.post(f"/api/alterations/scan/{busy['parts'][0]['qr_code']}",
                json={"scanType": "START_WORK"}, headers=hdr(ids["desk"]))

    r = client.get("/api/alterations/dashboard")
    assert r.status_code == 200
    assert r.json["summary"] == {
        "totalJobs": 3,
        "inProgressJobs": 1,
        "completedJobs": 0,
        "pickedUpJobs": 1,
        "overdueJobs": 1,
    }
    assert r.json["partsByStatus"] == {"NOT_STARTED": 2, "IN_PROGRESS": 1, "COMPLETE": 0, "PICKED_UP": 1}
    activity = r.json["recentActivity"]
    assert len(activity) == 4
    assert activity[0]["part"]["job"]["id"] == busy["id"]

    mine = client.get(f"/api/alterations/dashboard?tailorId={maria}").json
    assert mine["summary"]["totalJobs"] == 1 and mine["summary"]["pickedUpJobs"] == 1
    assert mine["partsByStatus"]["PICKED_UP"] == 1 and mine["partsByStatus"]["IN_PROGRESS"] == 0


def test_dashboard_date_range(app, make_job):
    old = make_job([{"partName": "Jacket"}])
    make_job([{"partName": "Pants"}])
    with app.app_context():
        db.session.get(AlterationJob, old["id"]).created_at = datetime(2026, 1, 5)
        db.session.commit()

        now = utcnow()
        stats = dashboard_stats(date_from=now - timedelta(days=1))
        assert stats["summary"]["totalJobs"] == 1
        stats = dashboard_stats(date_from=datetime(2026, 1, 1), date_to=datetime(2026, 1, 31))
        assert stats["summary"]["totalJobs"] == 1
        assert stats["recentActivity"] == []


def test_dashboard_rejects_bad_dates(client):
    r = client.get("/api/alterations/dashboard?dateFrom=yesterday")
    assert r.status_code == 400
