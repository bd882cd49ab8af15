from datetime import timedelta

CAL_COMPLETION = {
    "status": "COMPLETED",
    "calibration": {
        "calibration_date": "2025-01-10",
        "valid_until": "2025-07-10",
        "gas_entries": [{"gas_type": "CH4", "gas_concentration": "2.5 %"}],
        "test_entries": [{"test_sensor": "CH4", "test_span": "2.5 %"}],
    },
}


def _create(client, kind, **payload):
    r = client.post(f"/api/requests/{kind}", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def test_calibration_flow(user_client, admin_client):
    cal = _create(user_client, "calibration", item_serial="SN-100", notes="Roční kalibrace")
    assert cal["status"] == "PENDING"
    assert cal["kind"] == "calibration"

    r = admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "APPROVED"})
    assert r.status_code == 200
    assert admin_client.get("/api/items/SN-100").json()["status"] == "IN_CALIBRATION"
    assert admin_client.get("/api/items/SN-100/holder").json()["related_id"] == cal["id"]

    r = admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json=CAL_COMPLETION)
    assert r.status_code == 200
    body = r.json()
    assert body["certificate_number"] == "1/CAL-PBI/I/2025"
    assert body["valid_until"] == "2025-07-10"

    cert = user_client.get(f"/api/requests/calibration/{cal['id']}/certificate").json()
    assert cert["number"] == "1/CAL-PBI/I/2025"
    assert cert["gas_entries"][0]["position"] == 1

    logs = user_client.get(f"/api/requests/calibration/{cal['id']}/logs").json()
    assert [log["status"] for log in logs] == ["PENDING", "APPROVED", "COMPLETED"]


def test_owner_cannot_approve(user_client):
    cal = _create(user_client, "calibration", item_serial="SN-100")
    r = user_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "APPROVED"})
    assert r.status_code == 403


def test_invalid_transition(user_client, admin_client):
    cal = _create(user_client, "calibration", item_serial="SN-100")
    r = admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "IN_PROGRESS"})
    assert r.status_code in (403, 409)
    r = admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "COMPLETED"})
    assert r.status_code == 409


def test_completion_without_dates_is_422(user_client, admin_client):
    cal = _create(user_client, "calibration", item_serial="SN-100")
    admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "APPROVED"})
    r = admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "COMPLETED"})
    assert r.status_code == 422


def test_second_rental_conflicts(user_client, admin_client, api_clock):
    end = (api_clock.today() + timedelta(days=14)).isoformat()
    first = _create(user_client, "rental", item_serial="SN-200", end_date=end)
    second = _create(user_client, "rental", item_serial="SN-200", end_date=end)

    assert admin_client.post(
        f"/api/requests/rental/{first['id']}/transition", json={"status": "APPROVED"}
    ).status_code == 200
    r = admin_client.post(f"/api/requests/rental/{second['id']}/transition", json={"status": "APPROVED"})
    assert r.status_code == 409
    assert admin_client.get(f"/api/requests/rental/{second['id']}").json()["status"] == "PENDING"


def test_rental_without_end_date(user_client):
    r = user_client.post("/api/requests/rental", json={"item_serial": "SN-200"})
    assert r.status_code == 422


def test_maintenance_flow(manager_client):
    m = _create(manager_client, "maintenance", item_serial="SN-100", status="IN_PROGRESS")
    assert manager_client.get("/api/items/SN-100").json()["status"] == "IN_MAINTENANCE"

    r = manager_client.post(
        f"/api/requests/maintenance/{m['id']}/transition",
        json={
            "status": "COMPLETED",
            "maintenance": {
                "service_report": {"findings": "Vadný senzor", "parts": [{"item_number": 1, "description": "Senzor"}]},
                "technical_report": {"parts": [{"item_number": 1, "quantity": 2, "unit_price": "10.00"}]},
            },
        },
    )
    assert r.status_code == 200, r.text
    assert r.json()["csr_number"] == "1/CSR-PBI/I/2025"
    assert r.json()["tcr_number"] == "1/TCR-PBI/I/2025"
    assert manager_client.get("/api/items/SN-100").json()["status"] == "AVAILABLE"


def test_user_sees_only_own_requests(user_client, manager_client, admin_client):
    _create(user_client, "calibration", item_serial="SN-100")
    _create(manager_client, "calibration", item_serial="SN-200")
    assert user_client.get("/api/requests/calibration").json()["total"] == 1
    assert admin_client.get("/api/requests/calibration").json()["total"] == 2


def test_foreign_request_hidden(user_client, manager_client):
    cal = _create(manager_client, "calibration", item_serial="SN-100")
    assert user_client.get(f"/api/requests/calibration/{cal['id']}").status_code == 403


def test_unknown_kind(user_client):
    assert user_client.get("/api/requests/repair").status_code == 422


def test_purge_admin_only(user_client, admin_client):
    cal = _create(user_client, "calibration", item_serial="SN-100")
    admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "APPROVED"})

    assert user_client.delete(f"/api/requests/calibration/{cal['id']}").status_code == 403
    assert admin_client.delete(f"/api/requests/calibration/{cal['id']}").status_code == 204
    assert admin_client.get(f"/api/requests/calibration/{cal['id']}").status_code == 404
    assert admin_client.get("/api/items/SN-100").json()["status"] == "AVAILABLE"


def test_regenerate_certificate(user_client, admin_client):
    cal = _create(user_client, "calibration", item_serial="SN-100")
    admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json={"status": "APPROVED"})
    admin_client.post(f"/api/requests/calibration/{cal['id']}/transition", json=CAL_COMPLETION)

    r = admin_client.put(
        f"/api/requests/calibration/{cal['id']}/certificate",
        json={"approved_by": "Ing. Novák", "gas_entries": [{"gas_type": "O2"}, {"gas_type": "CO"}]},
    )
    assert r.status_code == 200
    assert r.json()["number"] == "1/CAL-PBI/I/2025"
    assert [g["gas_type"] for g in r.json()["gas_entries"]] == ["O2", "CO"]

    r = user_client.put(f"/api/requests/calibration/{cal['id']}/certificate", json={})
    assert r.status_code == 403
