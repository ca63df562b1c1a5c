"""
Quote flow engine tests: stage ordering, field ownership, branching,
the paint queue, and answer coercion.
"""

import pytest

from paintquote.conversation.engine import FINAL_STAGE, FIRST_STAGE, QuoteFlowEngine, is_filled


engine = QuoteFlowEngine()

STAGES = [
    "customer_info",
    "project_type",
    "surface_selection",
    "dimensions",
    "paint_selection",
    "markup_selection",
    "review",
    "complete",
]


def _fields(**kwargs):
    base = {"customer_name": "Jane Smith", "address": "123 Main St"}
    base.update(kwargs)
    return base


def test_flow_loads_in_order():
    flow = engine.load_flow()
    assert flow["flow"] == "painting_quote"
    assert engine.stage_ids() == STAGES
    assert engine.stage_ids()[0] == FIRST_STAGE
    assert engine.stage_ids()[-1] == FINAL_STAGE


def test_unknown_stage_raises():
    with pytest.raises(ValueError, match="paint_mixing"):
        engine.get_stage("paint_mixing")


# --- Field ownership ---

def test_fields_outside_stage_are_rejected():
    update = engine.apply_answers("customer_info", {}, {
        "customer_name": "Jane Smith",
        "markup_percentage": 30,
    })
    assert update.accepted == {"customer_name": "Jane Smith"}
    assert [r.field for r in update.rejected] == ["markup_percentage"]
    assert "markup_percentage" not in update.fields


def test_apply_answers_does_not_mutate_input():
    fields = {"customer_name": "Jane Smith"}
    update = engine.apply_answers("customer_info", fields, {"address": "123 Main St"})
    assert fields == {"customer_name": "Jane Smith"}
    assert update.fields == _fields()


def test_exterior_job_cannot_select_ceilings():
    fields = _fields(project_type="exterior")
    question = engine.get_questions("surface_selection", fields)[0]
    assert question["options"] == ["walls", "trim"]

    update = engine.apply_answers("surface_selection", fields, {"surfaces": ["walls", "ceilings"]})
    assert update.accepted == {}
    assert update.rejected[0].field == "surfaces"
    assert "ceilings" in update.rejected[0].reason


def test_interior_job_keeps_ceilings():
    question = engine.get_questions("surface_selection", _fields(project_type="interior"))[0]
    assert question["options"] == ["walls", "ceilings", "trim"]


# --- Advancing ---

def test_stage_advances_once_required_filled():
    assert engine.advance("customer_info", {"customer_name": "Jane Smith"}) == "customer_info"
    assert engine.advance("customer_info", _fields()) == "project_type"


def test_advance_skips_stages_already_filled():
    fields = _fields(project_type="interior", surfaces=["walls"])
    assert engine.advance("customer_info", fields) == "dimensions"


def test_complete_never_advances():
    assert not engine.can_advance(FINAL_STAGE, {})
    assert engine.next_stage(FINAL_STAGE) == FINAL_STAGE


def test_review_waits_for_confirmation():
    assert engine.advance("review", {"confirmed": False}) == "review"
    assert engine.advance("review", {"confirmed": True}) == FINAL_STAGE


def test_restart_clears_fields():
    stage, fields = engine.restart()
    assert stage == FIRST_STAGE
    assert fields == {}


# --- Dimensions branching ---

def test_dimensions_requires_method_first():
    fields = _fields(project_type="interior", surfaces=["walls"])
    assert engine.get_missing_fields("dimensions", fields) == ["measurement_method"]
    next_ids = [q["id"] for q in engine.get_next_questions("dimensions", fields)]
    assert next_ids == ["measurement_method"]


def test_floor_area_branch():
    fields = _fields(surfaces=["walls", "ceilings", "trim"], measurement_method="floor_area")
    assert engine.get_missing_fields("dimensions", fields) == ["total_sqft"]
    next_ids = [q["id"] for q in engine.get_next_questions("dimensions", fields)]
    assert next_ids == ["total_sqft"]


def test_surface_totals_branch_follows_selected_surfaces():
    fields = _fields(surfaces=["walls", "trim"], measurement_method="surface_totals")
    assert engine.get_missing_fields("dimensions", fields) == ["walls_sqft", "trim_sqft"]

    update = engine.apply_answers("dimensions", fields, {"ceilings_sqft": 400})
    assert update.rejected[0].field == "ceilings_sqft"


def test_rooms_branch_accepts_room_list():
    fields = _fields(surfaces=["walls"], measurement_method="rooms")
    update = engine.apply_answers("dimensions", fields, {"rooms": [
        {"name": "Bedroom 1", "walls_square_footage": 432},
    ]})
    assert update.rejected == []
    assert update.fields["rooms"][0]["name"] == "Bedroom 1"
    assert engine.advance("dimensions", update.fields) == "paint_selection"


def test_rooms_must_be_non_empty():
    fields = _fields(surfaces=["walls"], measurement_method="rooms")
    update = engine.apply_answers("dimensions", fields, {"rooms": []})
    assert update.rejected[0].field == "rooms"


# --- Paint queue ---

def test_paint_queue_follows_surfaces():
    fields = _fields(surfaces=["walls", "trim"])
    assert engine.paint_queue(fields) == ["wall_paint", "trim_paint"]
    assert engine.get_missing_fields("paint_selection", fields) == ["wall_paint", "trim_paint"]


def test_paint_questions_one_category_at_a_time():
    fields = _fields(surfaces=["walls", "trim"])
    next_ids = [q["id"] for q in engine.get_next_questions("paint_selection", fields)]
    assert next_ids == ["wall_paint", "primer"]

    fields["wall_paint"] = {"quality": "better"}
    assert engine.current_paint_category(fields) == "trim_paint"
    next_ids = [q["id"] for q in engine.get_next_questions("paint_selection", fields)]
    assert next_ids == ["trim_paint", "primer"]


def test_primer_is_optional():
    fields = _fields(surfaces=["walls"], wall_paint={"quality": "good"})
    assert engine.advance("paint_selection", fields) == "markup_selection"


def test_unselected_surface_paint_rejected():
    fields = _fields(surfaces=["walls"])
    update = engine.apply_answers("paint_selection", fields, {"ceiling_paint": "best"})
    assert update.rejected[0].field == "ceiling_paint"


# --- Coercion ---

def test_choice_is_normalized():
    update = engine.apply_answers("project_type", _fields(), {"project_type": " Interior "})
    assert update.accepted == {"project_type": "interior"}


def test_bad_choice_rejected():
    update = engine.apply_answers("project_type", _fields(), {"project_type": "garage"})
    assert "must be one of" in update.rejected[0].reason


def test_multi_choice_from_string():
    update = engine.apply_answers("surface_selection", _fields(project_type="interior"),
                                  {"surfaces": "walls, trim, walls"})
    assert update.accepted == {"surfaces": ["walls", "trim"]}


def test_multi_choice_rejects_non_list():
    update = engine.apply_answers("surface_selection", _fields(project_type="interior"),
                                  {"surfaces": True})
    assert update.accepted == {}
    assert update.rejected[0].field == "surfaces"
    assert "must be a list" in update.rejected[0].reason


def test_number_parsing():
    update = engine.apply_answers("markup_selection", {}, {"markup_percentage": "25%"})
    assert update.accepted == {"markup_percentage": 25}

    update = engine.apply_answers("markup_selection", {}, {"markup_percentage": -5})
    assert "cannot be negative" in update.rejected[0].reason

    update = engine.apply_answers("markup_selection", {}, {"markup_percentage": "lots"})
    assert "must be a number" in update.rejected[0].reason


def test_zero_measurement_is_an_answer():
    fields = _fields(surfaces=["walls", "trim"], measurement_method="surface_totals")
    update = engine.apply_answers("dimensions", fields, {"walls_sqft": "1,200", "trim_sqft": 0})
    assert update.accepted == {"walls_sqft": 1200, "trim_sqft": 0}
    assert engine.advance("dimensions", update.fields) == "paint_selection"


def test_boolean_coercion():
    assert engine.apply_answers("review", {}, {"confirmed": "yes"}).accepted == {"confirmed": True}
    assert engine.apply_answers("review", {}, {"confirmed": "no"}).accepted == {"confirmed": False}
    assert engine.apply_answers("review", {}, {"confirmed": "maybe"}).rejected


def test_paint_coercion():
    fields = _fields(surfaces=["walls"])
    answers = {"wall_paint": "Better", "primer": "none"}
    update = engine.apply_answers("paint_selection", fields, answers)
    assert update.accepted == {"wall_paint": {"quality": "better"}, "primer": {"none": True}}

    update = engine.apply_answers("paint_selection", fields, {"wall_paint": "7"})
    assert update.accepted == {"wall_paint": {"product_id": 7}}

    update = engine.apply_answers("paint_selection", fields, {"wall_paint": {"product_id": "3"}})
    assert update.accepted == {"wall_paint": {"product_id": 3}}


def test_paint_product_id_must_be_whole_number():
    fields = _fields(surfaces=["walls"])
    for bad in ([1], {"id": 1}, "abc", True):
        update = engine.apply_answers("paint_selection", fields, {"wall_paint": {"product_id": bad}})
        assert update.accepted == {}
        assert update.rejected[0].field == "wall_paint"
        assert "whole number" in update.rejected[0].reason


def test_only_primer_can_be_none():
    fields = _fields(surfaces=["walls"])
    update = engine.apply_answers("paint_selection", fields, {"wall_paint": "none"})
    assert update.rejected[0].field == "wall_paint"


def test_empty_text_rejected():
    update = engine.apply_answers("customer_info", {}, {"customer_name": "   "})
    assert "cannot be empty" in update.rejected[0].reason


def test_is_filled():
    assert is_filled(0)
    assert is_filled("x")
    assert is_filled({"none": True})
    assert not is_filled(None)
    assert not is_filled(False)
    assert not is_filled("")
    assert not is_filled([])


# --- Completion ---

def test_completion_status():
    start = engine.get_completion_status("customer_info", {})
    assert start["stage_index"] == 0
    assert start["completion_pct"] == 0
    assert start["required_missing"] == ["customer_name", "address"]
    assert not start["is_complete"]

    done = engine.get_completion_status(FINAL_STAGE, {})
    assert done["is_complete"]
    assert done["completion_pct"] == 100
    assert done["stages_completed"] == STAGES[:-1]
