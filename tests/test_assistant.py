"""
Assistant tests: reply templates, review summary, and AI field extraction
(mocked, no network).
"""

from unittest.mock import patch

from paintquote.conversation import assistant
from paintquote.conversation.engine import RejectedField


PRICING = {
    "total_labor_cost": 12000.0,
    "total_material_cost": 660.80,
    "markup_percentage": 20.0,
    "markup_amount": 2532.16,
    "tax_rate": 8.0,
    "tax_amount": 1215.44,
    "final_price": 16408.40,
}


def test_reply_asks_for_missing_address():
    reply = assistant.build_reply("customer_info", {"customer_name": "Jane Smith"}, [])
    assert "Jane Smith" in reply
    assert "address" in reply


def test_reply_lists_rejections():
    rejected = [RejectedField(field="surfaces", reason="'ceilings' is not available here")]
    reply = assistant.build_reply("surface_selection", {"project_type": "exterior"}, [], rejected=rejected)
    assert reply.startswith("I couldn't use that: 'ceilings' is not available here.")
    assert "Ceilings don't apply" in reply


def test_reply_names_paint_category():
    reply = assistant.build_reply("paint_selection", {}, [], paint_category="trim_paint")
    assert "Which trim paint" in reply
    assert "Primer is optional" in reply


def test_review_reply_includes_totals():
    fields = {"customer_name": "Jane Smith", "address": "123 Main St",
              "project_type": "interior", "surfaces": ["walls", "trim"]}
    reply = assistant.build_reply("review", fields, [], pricing=PRICING)
    assert "Project: interior (walls, trim)" in reply
    assert "Markup (20%): $2,532.16" in reply
    assert "Tax (8%): $1,215.44" in reply
    assert "Total: $16,408.40" in reply


def test_review_skips_zero_tax():
    summary = assistant.format_review({}, {**PRICING, "tax_amount": 0})
    assert "Tax" not in summary


def test_complete_reply_has_quote_number():
    reply = assistant.build_reply("complete", {}, [], quote_number="PQ-2026-0001")
    assert "PQ-2026-0001" in reply


def test_extraction_disabled_without_key():
    with patch.object(assistant.settings, "OPENROUTER_API_KEY", ""):
        assert not assistant.ai_extraction_enabled()
        questions = [{"id": "project_type", "text": "Project type", "type": "choice"}]
        assert assistant.extract_fields_with_ai("project_type", "interior", questions) == {}


def test_extraction_keeps_only_stage_fields():
    questions = [{"id": "customer_name", "text": "Customer name"}, {"id": "address", "text": "Address"}]
    model_reply = {"customer_name": "Jane Smith", "address": "", "markup_percentage": 30}
    with patch.object(assistant.settings, "OPENROUTER_API_KEY", "test-key"), \
            patch.object(assistant, "_call_openrouter", return_value=model_reply):
        found = assistant.extract_fields_with_ai("customer_info", "Jane Smith", questions)
    assert found == {"customer_name": "Jane Smith"}


def test_extraction_prompt_lists_options():
    prompt = assistant._build_extraction_prompt("project_type", "inside job", [
        {"id": "project_type", "text": "Project type", "type": "choice",
         "options": ["interior", "exterior", "both"]},
    ])
    assert "Options: interior, exterior, both" in prompt
    assert "inside job" in prompt


def test_ai_answers_fill_gaps_only(client, auth_headers):
    session_id = client.post("/api/session/start", json={}, headers=auth_headers).json()["session_id"]
    ai_answers = {"customer_name": "Someone Else", "address": "5 Oak Ave"}
    with patch("paintquote.routers.quote_session.ai_extraction_enabled", return_value=True), \
            patch("paintquote.routers.quote_session.extract_fields_with_ai", return_value=ai_answers):
        resp = client.post(f"/api/session/{session_id}/message", json={"message": "Jane Smith"},
                           headers=auth_headers)
    data = resp.json()
    assert data["fields"]["customer_name"] == "Jane Smith"
    assert data["fields"]["address"] == "5 Oak Ave"
    assert data["stage"] == "project_type"
