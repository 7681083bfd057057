"""HTTP surface tests driven through FastAPI's TestClient."""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("STORAGE_BACKEND", "memory")

from extinguisher_tracker import create_app
from extinguisher_tracker.core.settings import AppSettings
from extinguisher_tracker.stores import MemoryStorage


REGISTRATION = {
    "barcode": "FE-001",
    "extinguisherNo": "EX-10",
    "location": "Lobby",
    "dateOfTesting": "2024-01-01",
}


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def client(storage, tmp_path):
    settings = AppSettings(STORAGE_BACKEND="memory", DATA_DIR=tmp_path)
    app = create_app(settings, storage=storage)
    with TestClient(app) as test_client:
        yield test_client


def _register(client, **overrides):
    payload = dict(REGISTRATION, **overrides)
    return client.post("/api/extinguishers", json=payload)


def test_register_then_fetch_with_empty_history(client):
    created = _register(client)
    assert created.status_code == 201
    body = created.json()
    assert body["id"]
    assert body["barcode"] == "FE-001"
    assert body["extinguisherNo"] == "EX-10"
    assert body["dateOfTesting"] == "2024-01-01"
    assert "createdAt" in body

    fetched = client.get("/api/extinguishers/FE-001")
    assert fetched.status_code == 200
    assert fetched.json()["maintenanceLogs"] == []
    assert fetched.json()["id"] == body["id"]


def test_unknown_barcode_is_404_with_error_body(client):
    r = client.get("/api/extinguishers/FE-999")
    assert r.status_code == 404
    assert r.json() == {"error": "Fire extinguisher not found"}


def test_duplicate_barcode_is_400(client, storage):
    assert _register(client).status_code == 201

    r = _register(client, location="Roof")
    assert r.status_code == 400
    assert r.json() == {"error": "Barcode already exists"}
    assert storage.get("FE-001").location == "Lobby"


def test_invalid_registration_reports_details(client, storage):
    r = client.post("/api/extinguishers", json={"barcode": "FE-001", "location": ""})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Invalid data"
    assert isinstance(body["details"], list)
    assert body["details"]
    assert storage.list() == []


def test_maintenance_log_scenario_orders_newest_work_first(client):
    extinguisher_id = _register(client).json()["id"]

    june = client.post(
        "/api/maintenance-logs",
        json={"extinguisherId": extinguisher_id, "dateWorkDone": "2024-06-01", "remarks": "refill", "user": "A"},
    )
    assert june.status_code == 201
    assert june.json()["extinguisherId"] == extinguisher_id

    march = client.post(
        "/api/maintenance-logs",
        json={"extinguisherId": extinguisher_id, "dateWorkDone": "2024-03-01", "remarks": "inspect", "user": "B"},
    )
    assert march.status_code == 201

    logs = client.get("/api/extinguishers/FE-001").json()["maintenanceLogs"]
    assert [log["dateWorkDone"] for log in logs] == ["2024-06-01", "2024-03-01"]

    only_logs = client.get("/api/extinguishers/FE-001/maintenance-logs").json()
    assert [log["remarks"] for log in only_logs] == ["refill", "inspect"]


def test_maintenance_log_for_unknown_extinguisher_is_400(client):
    r = client.post(
        "/api/maintenance-logs",
        json={"extinguisherId": "nope", "dateWorkDone": "2024-06-01", "remarks": "refill", "user": "A"},
    )
    assert r.status_code == 400
    assert "error" in r.json()


def test_maintenance_log_requires_remarks_and_user(client):
    extinguisher_id = _register(client).json()["id"]
    r = client.post(
        "/api/maintenance-logs",
        json={"extinguisherId": extinguisher_id, "dateWorkDone": "2024-06-01", "remarks": "  ", "user": ""},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid data"
    assert client.get("/api/extinguishers/FE-001").json()["maintenanceLogs"] == []


def test_list_extinguishers_omits_logs(client):
    _register(client)
    _register(client, barcode="FE-002")

    r = client.get("/api/extinguishers")
    assert r.status_code == 200
    rows = r.json()
    assert sorted(row["barcode"] for row in rows) == ["FE-001", "FE-002"]
    assert all("maintenanceLogs" not in row for row in rows)


def test_resolve_reports_outcome_and_next_step(client):
    missing = client.get("/api/resolve", params={"barcode": " FE-001 "}).json()
    assert missing["outcome"] == "not_found"
    assert missing["barcode"] == "FE-001"
    assert missing["next"] == "/register/FE-001"

    _register(client)
    found = client.get("/api/resolve", params={"barcode": "FE-001"}).json()
    assert found["outcome"] == "found"
    assert found["extinguisher"]["barcode"] == "FE-001"
    assert found["next"] == "/maintenance-log/FE-001"


def test_resolve_blank_barcode_is_400(client):
    r = client.get("/api/resolve", params={"barcode": "  "})
    assert r.status_code == 400
    assert r.json() == {"error": "Please enter a barcode to scan"}


def test_batch_generation(client):
    r = client.post("/api/barcodes/batch", json={"prefix": "FE-", "count": 5})
    assert r.status_code == 200
    assert r.json() == {"barcodes": ["FE-001", "FE-002", "FE-003", "FE-004", "FE-005"]}


@pytest.mark.parametrize("count", [0, 201])
def test_batch_generation_rejects_out_of_range(client, count):
    r = client.post("/api/barcodes/batch", json={"prefix": "FE-", "count": count})
    assert r.status_code == 400
    assert r.json() == {"error": "Batch count must be between 1 and 200"}


def test_qr_png_and_svg(client):
    png = client.get("/api/barcodes/FE-001/qr.png")
    assert png.status_code == 200
    assert png.headers["content-type"] == "image/png"
    assert png.content.startswith(b"\x89PNG")

    svg = client.get("/api/barcodes/FE-001/qr.svg")
    assert svg.status_code == 200
    assert svg.headers["content-type"].startswith("image/svg+xml")
    assert b"<svg" in svg.content


def test_share_text_download(client):
    r = client.get("/api/barcodes/FE-001/share.txt")
    assert r.status_code == 200
    assert r.text == "Fire Extinguisher Barcode: FE-001"
    assert 'filename="barcode-FE-001.txt"' in r.headers["content-disposition"]


def test_responses_carry_request_id(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.json() == {"ok": True}
    assert r.headers["X-Request-ID"] == "abc-123"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_ui_scan_routes_unknown_code_to_registration(client):
    r = client.get("/scan", params={"barcode": "FE-001"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/register/FE-001"

    page = client.get("/register/FE-001")
    assert page.status_code == 200
    assert "FE-001" in page.text


def test_ui_blank_scan_shows_inline_error(client):
    r = client.get("/scan", params={"barcode": ""})
    assert r.status_code == 400
    assert "Please enter a barcode to scan" in r.text


def test_ui_registration_flows_into_history(client, storage):
    r = client.post(
        "/register/FE-001",
        data={"extinguisher_no": "EX-10", "location": "Lobby", "date_of_testing": "2024-01-01"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/maintenance-log/FE-001"
    assert storage.get("FE-001") is not None

    logged = client.post(
        "/maintenance-log/FE-001",
        data={"date_work_done": "2024-06-01", "remarks": "Pressure gauge replaced", "user": "Dana"},
    )
    assert logged.status_code == 200
    assert "Pressure gauge replaced" in logged.text
    assert "Maintenance log added successfully!" in logged.text

    scan = client.get("/scan", params={"barcode": "FE-001"}, follow_redirects=False)
    assert scan.headers["location"] == "/maintenance-log/FE-001"


def test_ui_registration_validation_is_inline(client, storage):
    r = client.post(
        "/register/FE-001",
        data={"extinguisher_no": "EX-10", "location": "", "date_of_testing": "2024-01-01"},
    )
    assert r.status_code == 400
    assert "Location is required" in r.text
    assert storage.get("FE-001") is None


def test_ui_log_validation_is_inline(client):
    _register(client)
    r = client.post(
        "/maintenance-log/FE-001",
        data={"date_work_done": "2024-06-01", "remarks": "refill", "user": " "},
    )
    assert r.status_code == 400
    assert "Technician Name is required" in r.text


def test_ui_unregistered_history_page(client):
    r = client.get("/maintenance-log/FE-404")
    assert r.status_code == 404
    assert "is not registered" in r.text


def test_ui_home_and_batch_pages(client):
    _register(client)
    home = client.get("/", params={"qr": "FE-777"})
    assert home.status_code == 200
    assert "/api/barcodes/FE-777/qr.png" in home.text
    assert "FE-001" in home.text

    batch = client.get("/batch", params={"prefix": "FE-", "count": 3})
    assert batch.status_code == 200
    assert "FE-003" in batch.text
    assert "Generated 3 QR codes successfully!" in batch.text

    rejected = client.get("/batch", params={"prefix": "FE-", "count": 201})
    assert rejected.status_code == 400
    assert "Batch count must be between 1 and 200" in rejected.text


def test_hsts_is_sent_only_over_https(client):
    assert "Strict-Transport-Security" not in client.get("/health").headers
    secure = client.get("https://testserver/health")
    assert secure.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"


def test_barcode_containing_slash_is_reachable_everywhere(client):
    assert _register(client, barcode="BLDG-A/FE-1").status_code == 201

    resolved = client.get("/api/resolve", params={"barcode": "BLDG-A/FE-1"}).json()
    assert resolved["outcome"] == "found"
    assert resolved["next"] == "/maintenance-log/BLDG-A%2FFE-1"

    fetched = client.get("/api/extinguishers/BLDG-A%2FFE-1")
    assert fetched.status_code == 200
    assert fetched.json()["barcode"] == "BLDG-A/FE-1"

    extinguisher_id = fetched.json()["id"]
    client.post(
        "/api/maintenance-logs",
        json={"extinguisherId": extinguisher_id, "dateWorkDone": "2024-06-01", "remarks": "refill", "user": "A"},
    )
    logs = client.get("/api/extinguishers/BLDG-A%2FFE-1/maintenance-logs")
    assert logs.status_code == 200
    assert [log["remarks"] for log in logs.json()] == ["refill"]

    assert client.get("/api/barcodes/BLDG-A%2FFE-1/qr.png").headers["content-type"] == "image/png"
    share = client.get("/api/barcodes/BLDG-A%2FFE-1/share.txt")
    assert share.text == "Fire Extinguisher Barcode: BLDG-A/FE-1"
    assert 'filename="barcode-BLDG-A-FE-1.txt"' in share.headers["content-disposition"]

    history = client.get(resolved["next"])
    assert history.status_code == 200
    assert "BLDG-A/FE-1" in history.text
    assert "refill" in history.text


def test_ui_slash_barcode_registration_round_trip(client, storage):
    page = client.get("/scan", params={"barcode": "NEW/1"})
    assert page.status_code == 200
    assert "NEW/1" in page.text

    r = client.post(
        "/register/NEW%2F1",
        data={"extinguisher_no": "EX-11", "location": "Dock", "date_of_testing": "2024-01-01"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/maintenance-log/NEW%2F1"
    assert storage.get("NEW/1") is not None
    assert client.get(r.headers["location"]).status_code == 200


def test_ui_blank_register_page_shows_inline_error(client):
    r = client.get("/register/%20")
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/html")
    assert "Please enter a barcode to scan" in r.text


def test_percent_sign_in_barcode_is_kept_literally(client):
    created = _register(client, barcode="50%25")
    assert created.json()["barcode"] == "50%25"

    resolved = client.get("/api/resolve", params={"barcode": "50%25"}).json()
    assert resolved["outcome"] == "found"
    assert resolved["barcode"] == "50%25"
    assert client.get("/api/resolve", params={"barcode": "50%"}).json()["outcome"] == "not_found"
