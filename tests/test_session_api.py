"""
Quote session API tests: a conversation from greeting to saved quote.

The contractor's profile supplies rates 3/2/5 and tax 0%; the conversation
sets markup. 1000 sqft interior at "better" with 20% markup:
    subtotal 12660.80, final 15192.96
"""

from datetime import datetime, timedelta

import pytest

from paintquote import models


def _start(client, headers, message=None):
    body = {"message": message} if message else {}
    resp = client.post("/api/session/start", json=body, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _say(client, headers, session_id, message):
    resp = client.post(f"/api/session/{session_id}/message", json={"message": message}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _answer(client, headers, session_id, answers, stage=None):
    body = {"answers": answers}
    if stage:
        body["stage"] = stage
    return client.post(f"/api/session/{session_id}/answer", json=body, headers=headers)


def _to_paint_selection(client, headers, session_id, surfaces=("walls",)):
    _answer(client, headers, session_id, {"customer_name": "Jane Smith", "address": "123 Main St"})
    _answer(client, headers, session_id, {"project_type": "interior"})
    _answer(client, headers, session_id, {"surfaces": list(surfaces)})
    resp = _answer(client, headers, session_id, {"measurement_method": "floor_area", "total_sqft": 1000})
    assert resp.json()["stage"] == "paint_selection"
    return resp.json()


def test_start_session(client, auth_headers):
    data = _start(client, auth_headers)
    assert data["stage"] == "customer_info"
    assert data["fields"] == {}
    assert "customer's name" in data["reply"]
    assert [q["id"] for q in data["next_questions"]][:2] == ["customer_name", "address"]
    assert data["estimate"]["strategy"] == "industry_average"


def test_start_with_first_message(client, auth_headers):
    data = _start(client, auth_headers, "John Smith at 123 Main St")
    assert data["stage"] == "project_type"
    assert data["fields"]["customer_name"] == "John Smith"


def test_start_requires_auth(client):
    assert client.post("/api/session/start", json={}).status_code == 401


def test_full_conversation_creates_quote(client, auth_headers):
    session_id = _start(client, auth_headers)["session_id"]

    data = _say(client, auth_headers, session_id, "Jane Smith at 123 Main St")
    assert data["stage"] == "project_type"

    data = _say(client, auth_headers, session_id, "interior")
    assert data["stage"] == "surface_selection"

    data = _say(client, auth_headers, session_id, "everything")
    assert data["fields"]["surfaces"] == ["walls", "ceilings", "trim"]
    assert data["stage"] == "dimensions"

    data = _say(client, auth_headers, session_id, "1000 sq ft")
    assert data["stage"] == "paint_selection"
    assert data["estimate"]["strategy"] == "measurements"
    assert [q["id"] for q in data["next_questions"]] == ["wall_paint", "primer"]

    data = _say(client, auth_headers, session_id, "better")
    assert data["fields"]["wall_paint"] == {"quality": "better"}
    data = _say(client, auth_headers, session_id, "better")
    data = _say(client, auth_headers, session_id, "better, no primer")
    assert data["fields"]["primer"] == {"none": True}
    assert data["stage"] == "markup_selection"

    data = _say(client, auth_headers, session_id, "20%")
    assert data["stage"] == "review"
    assert data["pricing"]["subtotal"] == 12660.80
    assert data["pricing"]["final_price"] == pytest.approx(15192.96)
    assert data["quote_id"] is None

    data = _say(client, auth_headers, session_id, "yes, save it")
    assert data["stage"] == "complete"
    assert data["quote_number"].startswith("PQ-")
    assert data["completion"]["is_complete"]

    quote = client.get(f"/api/quotes/{data['quote_id']}", headers=auth_headers).json()
    assert quote["creation_method"] == "chat"
    assert quote["created_by"] == "manual"
    assert quote["session_id"] == session_id
    assert quote["customer_name"] == "Jane Smith"
    assert quote["final_price"] == pytest.approx(15192.96)

    status = client.get(f"/api/session/{session_id}/status", headers=auth_headers).json()
    assert status["status"] == "complete"
    assert status["quote_id"] == data["quote_id"]

    # A finished session takes no more messages
    resp = client.post(f"/api/session/{session_id}/message", json={"message": "hi"}, headers=auth_headers)
    assert resp.status_code == 400


def test_declining_review_keeps_session_open(client, auth_headers):
    session_id = _start(client, auth_headers)["session_id"]
    _to_paint_selection(client, auth_headers, session_id)
    _answer(client, auth_headers, session_id, {"wall_paint": "good"})
    data = _answer(client, auth_headers, session_id, {"markup_percentage": 30}).json()
    assert data["stage"] == "review"

    data = _say(client, auth_headers, session_id, "not yet")
    assert data["stage"] == "review"
    assert data["quote_id"] is None


def test_unparsed_message_asks_again(client, auth_headers):
    session_id = _start(client, auth_headers, "Jane Smith at 123 Main St")["session_id"]
    data = _say(client, auth_headers, session_id, "hmm, let me think")
    assert data["stage"] == "project_type"
    assert data["reply"].startswith("Sorry, I didn't catch that.")


def test_fields_outside_stage_are_rejected(client, auth_headers):
    session_id = _start(client, auth_headers)["session_id"]
    resp = _answer(client, auth_headers, session_id, {
        "customer_name": "Jane Smith",
        "markup_percentage": 30,
    })
    data = resp.json()
    assert data["accepted"] == {"customer_name": "Jane Smith"}
    assert data["rejected"][0]["field"] == "markup_percentage"
    assert "markup_percentage" not in data["fields"]
    assert data["stage"] == "customer_info"


def test_exterior_session_rejects_ceilings(client, auth_headers):
    session_id = _start(client, auth_headers, "Jane Smith at 123 Main St")["session_id"]
    _answer(client, auth_headers, session_id, {"project_type": "exterior"})
    data = _answer(client, auth_headers, session_id, {"surfaces": ["walls", "ceilings"]}).json()
    assert data["stage"] == "surface_selection"
    assert data["rejected"][0]["field"] == "surfaces"


def test_stage_mismatch(client, auth_headers):
    session_id = _start(client, auth_headers)["session_id"]
    resp = _answer(client, auth_headers, session_id, {"project_type": "interior"}, stage="project_type")
    assert resp.status_code == 400


def test_unknown_product_rejected(client, auth_headers):
    client.get("/api/paint-products/seed")
    session_id = _start(client, auth_headers)["session_id"]
    _to_paint_selection(client, auth_headers, session_id)

    data = _answer(client, auth_headers, session_id, {"wall_paint": {"product_id": 9999}}).json()
    assert data["stage"] == "paint_selection"
    assert "wall_paint" not in data["fields"]
    assert "9999" in data["rejected"][0]["reason"]


def test_malformed_answers_are_rejected_not_errors(client, auth_headers):
    session_id = _start(client, auth_headers, "Jane Smith at 123 Main St")["session_id"]
    _answer(client, auth_headers, session_id, {"project_type": "interior"})
    resp = _answer(client, auth_headers, session_id, {"surfaces": True})
    assert resp.status_code == 200
    assert resp.json()["rejected"][0]["field"] == "surfaces"

    _answer(client, auth_headers, session_id, {"surfaces": ["walls"]})
    _answer(client, auth_headers, session_id, {"measurement_method": "floor_area", "total_sqft": 1000})
    resp = _answer(client, auth_headers, session_id, {"wall_paint": {"product_id": [1]}})
    assert resp.status_code == 200
    assert resp.json()["stage"] == "paint_selection"
    assert resp.json()["rejected"][0]["field"] == "wall_paint"


def test_catalog_product_prices_the_quote(client, auth_headers):
    client.get("/api/paint-products/seed")
    products = client.get("/api/paint-products/?category=wall_paint").json()
    regal = next(p for p in products if p["product_name"] == "Regal Select")

    session_id = _start(client, auth_headers)["session_id"]
    _to_paint_selection(client, auth_headers, session_id)
    data = _answer(client, auth_headers, session_id, {"wall_paint": {"product_id": regal["id"]}}).json()
    assert data["stage"] == "markup_selection"
    data = _answer(client, auth_headers, session_id, {"markup_percentage": 0}).json()

    # walls only: 2500 sqft at 3/sqft, 8 gallons of Regal Select
    assert data["pricing"]["total_labor_cost"] == 7500
    assert data["pricing"]["total_material_cost"] == pytest.approx(8 * 68 * 1.12, abs=0.01)


def test_restart_by_message(client, auth_headers):
    session_id = _start(client, auth_headers, "Jane Smith at 123 Main St")["session_id"]
    data = _say(client, auth_headers, session_id, "let's start over")
    assert data["stage"] == "customer_info"
    assert data["fields"] == {}


def test_restart_endpoint(client, auth_headers):
    session_id = _start(client, auth_headers)["session_id"]
    _to_paint_selection(client, auth_headers, session_id)
    resp = client.post(f"/api/session/{session_id}/restart", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["stage"] == "customer_info"


def test_status_includes_messages(client, auth_headers):
    session_id = _start(client, auth_headers, "Jane Smith at 123 Main St")["session_id"]
    status = client.get(f"/api/session/{session_id}/status", headers=auth_headers).json()
    assert status["status"] == "active"
    assert status["stage"] == "project_type"
    roles = [m["role"] for m in status["messages"]]
    assert roles == ["assistant", "user", "assistant"]


def test_idle_session_is_abandoned(client, auth_headers, db):
    session_id = _start(client, auth_headers)["session_id"]
    session = db.query(models.QuoteSession).filter(models.QuoteSession.id == session_id).first()
    session.updated_at = datetime.utcnow() - timedelta(days=2)
    db.commit()

    resp = client.post(f"/api/session/{session_id}/message", json={"message": "Jane Smith"},
                       headers=auth_headers)
    assert resp.status_code == 400
    status = client.get(f"/api/session/{session_id}/status", headers=auth_headers).json()
    assert status["status"] == "abandoned"


def test_session_not_found(client, auth_headers):
    resp = client.get("/api/session/does-not-exist/status", headers=auth_headers)
    assert resp.status_code == 404


def test_other_users_session_forbidden(client, auth_headers, guest_headers):
    session_id = _start(client, auth_headers)["session_id"]
    resp = client.get(f"/api/session/{session_id}/status", headers=guest_headers)
    assert resp.status_code == 403
