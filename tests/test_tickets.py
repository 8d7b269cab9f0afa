# tests/test_tickets.py
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.database import build_engine, build_session_factory, get_db


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_create_and_get_ticket(client, make_ticket):
    created = make_ticket()
    assert created["status"] == "Open"
    assert created["notes"] == ""

    r2 = client.get(f"/tickets/{created['id']}")
    assert r2.status_code == 200
    data = r2.json()
    assert data["title"] == "Printer down"
    assert data["description"] == "urgent, office printer broken"
    assert data["customerName"] == "Alice"
    assert data["customerPhone"] == "555-0100"
    assert data["status"] == "Open"
    assert data["createdAt"] == created["createdAt"]


def test_first_ticket_gets_id_one_and_ids_increase(make_ticket):
    first = make_ticket()
    second = make_ticket(title="Second")
    assert first["id"] == 1
    assert second["id"] > first["id"]


def test_create_ignores_client_supplied_status_and_notes(make_ticket):
    created = make_ticket(status="Closed", notes="pre-filled")
    assert created["status"] == "Open"
    assert created["notes"] == ""


def test_create_accepts_snake_case_fields(client):
    r = client.post(
        "/tickets",
        json={"title": "T", "description": "D", "customer_name": "Bob", "customer_phone": "1"},
    )
    assert r.status_code == 201
    assert r.json()["customerName"] == "Bob"


@pytest.mark.parametrize("missing", ["title", "description", "customerName", "customerPhone"])
def test_create_missing_field_is_400_and_persists_nothing(client, missing):
    payload = {"title": "T", "description": "D", "customerName": "N", "customerPhone": "P"}
    del payload[missing]
    r = client.post("/tickets", json=payload)
    assert r.status_code == 400
    assert r.json()["errors"][0]["loc"][-1] == missing

    assert client.get("/tickets").json() == []


def test_create_empty_strings_is_400(client):
    r = client.post(
        "/tickets",
        json={"title": "", "description": "", "customerName": "", "customerPhone": ""},
    )
    assert r.status_code == 400
    assert client.get("/tickets").json() == []


def test_malformed_json_is_generic_500(client):
    r = client.post("/tickets", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}


def test_list_returns_array(client):
    r = client.get("/tickets")
    assert r.status_code == 200
    assert r.json() == []


def test_list_newest_first(client, make_ticket):
    a = make_ticket(title="A")
    b = make_ticket(title="B")
    ids = [t["id"] for t in client.get("/tickets").json()]
    assert ids == [b["id"], a["id"]]


def test_filter_by_name_is_case_insensitive_substring(client, make_ticket):
    jo = make_ticket(customerName="John Smith")
    joanna = make_ticket(customerName="joanna")
    make_ticket(customerName="Alice")

    r = client.get("/tickets", params={"name": "Jo"})
    assert r.status_code == 200
    assert {t["id"] for t in r.json()} == {jo["id"], joanna["id"]}


def test_filters_are_anded(client, make_ticket):
    match = make_ticket(customerName="Jo", customerPhone="555-0100")
    make_ticket(customerName="Jo", customerPhone="777-0000")
    make_ticket(customerName="Al", customerPhone="555-0100")

    r = client.get("/tickets", params={"name": "jo", "phone": "555"})
    assert [t["id"] for t in r.json()] == [match["id"]]


def test_filter_wildcards_are_literal(client, make_ticket):
    make_ticket(customerName="Alice")
    r = client.get("/tickets", params={"name": "%"})
    assert r.json() == []


def test_filter_without_matches_is_empty_array(client, make_ticket):
    make_ticket()
    r = client.get("/tickets", params={"phone": "999"})
    assert r.status_code == 200
    assert r.json() == []


def test_get_not_found_returns_404(client):
    r = client.get("/tickets/9999999")
    assert r.status_code == 404
    assert r.json()["detail"] == "Ticket not found"


def test_close_round_trip(client, make_ticket):
    created = make_ticket()

    r2 = client.patch(f"/tickets/{created['id']}", json={"status": "Closed"})
    assert r2.status_code == 200
    assert r2.json()["status"] == "Closed"

    r3 = client.get(f"/tickets/{created['id']}")
    data = r3.json()
    assert data["status"] == "Closed"
    assert datetime.fromisoformat(data["updatedAt"]) > datetime.fromisoformat(data["createdAt"])


def test_any_status_reachable_from_any_status(client, make_ticket):
    tid = make_ticket()["id"]
    for status in ["Closed", "Open", "In Progress", "Closed", "In Progress"]:
        r = client.patch(f"/tickets/{tid}", json={"status": status})
        assert r.status_code == 200
        assert r.json()["status"] == status


def test_update_notes_overwrites_and_keeps_status(client, make_ticket):
    tid = make_ticket()["id"]
    client.patch(f"/tickets/{tid}", json={"status": "In Progress"})
    client.patch(f"/tickets/{tid}", json={"notes": "called customer"})
    r = client.patch(f"/tickets/{tid}", json={"notes": "replaced toner"})
    assert r.status_code == 200
    assert r.json()["notes"] == "replaced toner"
    assert r.json()["status"] == "In Progress"


def test_patch_both_fields_is_400_and_changes_nothing(client, make_ticket):
    created = make_ticket()
    r = client.patch(f"/tickets/{created['id']}", json={"status": "Closed", "notes": "x"})
    assert r.status_code == 400
    assert "cannot update both" in r.json()["detail"].lower()

    assert client.get(f"/tickets/{created['id']}").json() == created


def test_patch_neither_field_is_400(client, make_ticket):
    tid = make_ticket()["id"]
    r = client.patch(f"/tickets/{tid}", json={})
    assert r.status_code == 400
    assert "required" in r.json()["detail"].lower()


def test_patch_unknown_status_is_400(client, make_ticket):
    tid = make_ticket()["id"]
    r = client.patch(f"/tickets/{tid}", json={"status": "Deleted"})
    assert r.status_code == 400
    assert client.get(f"/tickets/{tid}").json()["status"] == "Open"


def test_patch_missing_ticket_is_404_and_creates_nothing(client):
    r = client.patch("/tickets/42", json={"status": "Closed"})
    assert r.status_code == 404
    assert client.get("/tickets").json() == []


def test_no_delete_route(client, make_ticket):
    tid = make_ticket()["id"]
    r = client.delete(f"/tickets/{tid}")
    assert r.status_code == 405
    assert client.get(f"/tickets/{tid}").status_code == 200


def test_unreachable_store_is_generic_500(app, tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'tickets.db'}")
    factory = build_session_factory(engine)

    def broken_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = broken_db
    with TestClient(app) as c:
        r = c.get("/tickets")
        assert r.status_code == 500
        assert r.json() == {"detail": "Failed to fetch tickets"}

        r = c.post(
            "/tickets",
            json={"title": "T", "description": "D", "customerName": "N", "customerPhone": "P"},
        )
        assert r.status_code == 500
        assert r.json() == {"detail": "Failed to create ticket"}


def test_cors_echoes_allowed_origin(client):
    allowed = client.get("/health", headers={"Origin": "http://localhost:3000"})
    assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_cors_unknown_origin_falls_back_to_production(client):
    other = client.get("/health", headers={"Origin": "https://evil.example.net"})
    assert other.status_code == 200
    assert other.headers["access-control-allow-origin"] == "https://support.example.com"
    assert "Origin" in other.headers["vary"]


def test_no_cors_header_without_origin(client):
    assert "access-control-allow-origin" not in client.get("/health").headers


def test_timestamps_carry_utc_offset(client, make_ticket):
    created = make_ticket()
    assert datetime.fromisoformat(created["createdAt"]).tzinfo is not None

    client.patch(f"/tickets/{created['id']}", json={"notes": "checked"})
    data = client.get(f"/tickets/{created['id']}").json()
    for field in ("createdAt", "updatedAt"):
        stamp = datetime.fromisoformat(data[field])
        assert stamp.utcoffset() == timedelta(0)


@pytest.mark.parametrize("ticket_id", ["99999999999999999999", str(2**63), "0", "-5"])
def test_out_of_range_id_is_404(client, ticket_id):
    r = client.get(f"/tickets/{ticket_id}")
    assert r.status_code == 404
    assert r.json()["detail"] == "Ticket not found"

    r = client.patch(f"/tickets/{ticket_id}", json={"status": "Closed"})
    assert r.status_code == 404

    r = client.patch(f"/tickets/{ticket_id}", json={"notes": "x"})
    assert r.status_code == 404


@pytest.mark.parametrize(
    "body",
    [{"status": "Closed", "notes": None}, {"status": None, "notes": "x"}, {"status": None, "notes": None}],
)
def test_patch_null_co_field_still_counts_as_both(client, make_ticket, body):
    created = make_ticket()
    r = client.patch(f"/tickets/{created['id']}", json=body)
    assert r.status_code == 400
    assert "cannot update both" in r.json()["detail"].lower()
    assert client.get(f"/tickets/{created['id']}").json() == created


@pytest.mark.parametrize("body", [{"status": None}, {"notes": None}])
def test_patch_single_null_field_is_400(client, make_ticket, body):
    tid = make_ticket()["id"]
    r = client.patch(f"/tickets/{tid}", json=body)
    assert r.status_code == 400
    assert "required" in r.json()["detail"].lower()
