import random, sys, threading, time, requests

BASE = "http://127.0.0.1:5000"

# Tailor user ids as seeded by scripts/init_db.py
TAILORS = [1, 2, 3, 4, 5]
LOCATIONS = ["Bench 1", "Bench 2", "Front Desk"]
FLOW = ["START_WORK", "FINISH_WORK", "PICKUP"]


def scan(qr_code, scan_type, user_id):
    r = requests.post(
        f"{BASE}/api/alterations/scan/{qr_code}",
        json={"scanType": scan_type, "location": random.choice(LOCATIONS)},
        headers={"X-User-Id": str(user_id)},
    )
    body = r.json()
    print(qr_code, scan_type, r.status_code, body.get("result") or body.get("error"))
    return body


def part_loop(qr_code):
    user = random.choice(TAILORS)
    for scan_type in FLOW:
        scan(qr_code, scan_type, user)
        time.sleep(random.uniform(0.3, 1.2))
    # a second pickup is refused but still logged
    scan(qr_code, "PICKUP", user)


def part_codes():
    r = requests.get(f"{BASE}/api/alterations", params={"status": "NOT_STARTED"})
    return [p["qr_code"] for j in r.json()["jobs"] for p in j["parts"]]


codes = sys.argv[1:] or part_codes()
threads = [threading.Thread(target=part_loop, args=(c,)) for c in codes]
[t.start() for t in threads]
[t.join() for t in threads]
print(requests.get(f"{BASE}/api/alterations/dashboard").json()["summary"])
