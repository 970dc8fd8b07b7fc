from datetime import datetime

from tailorshop import db
from tailorshop.models import Party, PartyMember


def test_create_job(client, ids, make_job):
    job = make_job(
        [
            {"partName": "Jacket", "taskTypeId": ids["sleeve"], "priority": "rush",
             "tasks": [{"taskName": "Shorten sleeves", "measurements": "2cm"}]},
            {"partName": "Cummerbund"},
        ],
        notes="wedding",
        rushOrder=True,
    )
    assert job["status"] == "NOT_STARTED" and job["order_status"] == "ALTERATION_ONLY"
    assert job["qr_code"].startswith("JOB-")
    assert job["customer"]["name"] == "Jordan Reyes"
    jacket, other = job["parts"]
    assert jacket["part_type"] == "JACKET" and other["part_type"] == "OTHER"
    assert jacket["priority"] == "RUSH"
    assert jacket["qr_code"].startswith("PART-") and jacket["qr_code"] != other["qr_code"]
    assert jacket["tasks"][0]["task_name"] == "Shorten sleeves"


def test_create_job_validation(client, ids):
    r = client.post("/api/alterations", json={"parts": [{"partName": "Jacket"}]})
    assert r.status_code == 400
    r = client.post("/api/alterations", json={"customerId": ids["customer"], "parts": []})
    assert r.status_code == 400
    r = client.post("/api/alterations", json={"customerId": ids["customer"], "parts": [{"notes": "x"}]})
    assert r.status_code == 400
    r = client.post("/api/alterations", json={"customerId": 404, "parts": [{"partName": "Jacket"}]})
    assert r.status_code == 404
    r = client.post("/api/alterations", json={
        "customerId": ids["customer"], "orderStatus": "LOST", "parts": [{"partName": "Jacket"}]})
    assert r.status_code == 400


def test_due_date_cannot_pass_event_date(client, app, ids):
    with app.app_context():
        party = Party(name="Reyes Wedding", event_date=datetime(2026, 11, 7), customer_id=ids["customer"])
        db.session.add(party)
        db.session.flush()
        member = PartyMember(party_id=party.id, role="Groom")
        db.session.add(member)
        db.session.commit()
        member_id = member.id

    body = {"partyMemberId": member_id, "dueDate": "2026-11-10T12:00:00", "parts": [{"partName": "Jacket"}]}
    r = client.post("/api/alterations", json=body)
    assert r.status_code == 400
    assert r.json["error"] == "Due date cannot be after the party/event date"

    body["dueDate"] = "2026-11-05T12:00:00"
    r = client.post("/api/alterations", json=body)
    assert r.status_code == 201
    assert r.json["party"]["name"] == "Reyes Wedding"

    r = client.put(f"/api/alterations/{r.json['id']}", json={"dueDate": "2026-12-01"})
    assert r.status_code == 400


def test_list_get_update_delete(client, ids, make_job):
    a = make_job([{"partName": "Jacket"}], notes="navy suit")
    make_job([{"partName": "Pants"}])

    listing = client.get("/api/alterations").json
    assert listing["pagination"]["total"] == 2
    found = client.get("/api/alterations?search=NAVY").json["jobs"]
    assert [j["id"] for j in found] == [a["id"]]
    assert client.get("/api/alterations?status=COMPLETE").json["jobs"] == []

    r = client.put(f"/api/alterations/{a['id']}", json={"rushOrder": True, "notes": "navy, rush"})
    assert r.json["rush_order"] is True

    got = client.get(f"/api/alterations/{a['id']}").json
    assert got["parts"][0]["scan_logs"] == []

    assert client.delete(f"/api/alterations/{a['id']}").json["success"] is True
    assert client.get(f"/api/alterations/{a['id']}").status_code == 404
    assert client.get("/api/alterations").json["pagination"]["total"] == 1


def test_ticket(client, make_job):
    job = make_job([{"partName": "Pants", "tasks": [{"taskName": "Hem 3cm"}, {"taskName": "Taper"}]}])
    r = client.get(f"/api/alterations/{job['id']}/ticket")
    assert r.status_code == 200
    ticket = r.json["ticketData"]
    assert ticket["jobNumber"] == job["job_number"]
    assert ticket["customerName"] == "Jordan Reyes"
    assert ticket["memberRole"] == "Customer"
    assert ticket["parts"] == [
        {"partName": "Pants", "qrCode": job["parts"][0]["qr_code"], "alterations": ["Hem 3cm", "Taper"]}
    ]


def test_qr_images(client, make_job):
    job = make_job([{"partName": "Jacket"}])
    r = client.get(f"/api/alterations/parts/{job['parts'][0]['id']}/qr.png")
    assert r.status_code == 200 and r.mimetype == "image/png"
    assert r.data.startswith(b"\x89PNG")
    r = client.get(f"/api/alterations/{job['id']}/qr.png")
    assert r.status_code == 200 and r.data.startswith(b"\x89PNG")
    assert client.get("/api/alterations/parts/999/qr.png").status_code == 404


def test_healthz(client):
    assert client.get("/healthz").json == {"ok": True}


def test_list_jobs_by_party_member(client, app, ids, make_job):
    with app.app_context():
        party = Party(name="Okafor Wedding", customer_id=ids["customer"])
        db.session.add(party)
        db.session.flush()
        groom = PartyMember(party_id=party.id, role="Groom")
        best_man = PartyMember(party_id=party.id, role="Best Man")
        db.session.add_all([groom, best_man])
        db.session.commit()
        groom_id, best_man_id = groom.id, best_man.id

    mine = client.post("/api/alterations", json={"partyMemberId": groom_id, "parts": [{"partName": "Jacket"}]}).json
    client.post("/api/alterations", json={"partyMemberId": best_man_id, "parts": [{"partName": "Vest"}]})
    make_job([{"partName": "Pants"}])

    found = client.get(f"/api/alterations?partyMemberId={groom_id}").json
    assert [j["id"] for j in found["jobs"]] == [mine["id"]]
    assert found["jobs"][0]["party_member"]["role"] == "Groom"
    assert client.get("/api/alterations?partyMemberId=x").status_code == 400
