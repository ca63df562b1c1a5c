"""
Quote Flow Engine. Loads and walks the stage-by-stage painting quote flow.

Stages run customer_info -> project_type -> surface_selection -> dimensions ->
paint_selection -> markup_selection -> review -> complete. Each stage owns a
set of fields: answers for fields outside the current stage are rejected, and
a stage advances only once its required fields are filled. The only way back
is restart().
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, get_args

from pydantic import BaseModel, Field, ValidationError

from ..calculators.base import parse_number
from ..calculators.types import QualityTier, RoomMeasurements

logger = logging.getLogger(__name__)

# Directory where flow JSON files live
DATA_DIR = Path(__file__).parent / "data"

DEFAULT_FLOW = "painting_quote"
FIRST_STAGE = "customer_info"
FINAL_STAGE = "complete"

QUALITY_TIERS = get_args(QualityTier)

_YES = {"yes", "y", "true", "1", "ok", "okay", "confirm", "save"}
_NO = {"no", "n", "false", "0", "cancel"}


class RejectedField(BaseModel):
    field: str
    reason: str


class StageUpdate(BaseModel):
    """Result of applying answers to a stage. `fields` is a new dict."""
    fields: dict
    accepted: dict = Field(default_factory=dict)
    rejected: list[RejectedField] = Field(default_factory=list)


def is_filled(value: Any) -> bool:
    """Non-empty in the flow's sense. 0 counts as an answer, False does not."""
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, dict)) and not value:
        return False
    return True


class QuoteFlowEngine:
    """Core logic for the conversation stages. Holds no per-session state."""

    def __init__(self, flow: str = DEFAULT_FLOW):
        self.flow = flow
        self._cache: Optional[dict] = None

    def load_flow(self) -> dict:
        """Load the flow JSON. Cached after first load."""
        if self._cache is not None:
            return self._cache

        filepath = DATA_DIR / f"{self.flow}.json"
        if not filepath.exists():
            raise FileNotFoundError(f"No quote flow found: {self.flow}")

        with open(filepath) as f:
            self._cache = json.load(f)
        return self._cache

    def stage_ids(self) -> list[str]:
        return [s["id"] for s in self.load_flow()["stages"]]

    def get_stage(self, stage_id: str) -> dict:
        for stage in self.load_flow()["stages"]:
            if stage["id"] == stage_id:
                return stage
        raise ValueError(f"Unknown stage: {stage_id}")

    def next_stage(self, stage_id: str) -> str:
        ids = self.stage_ids()
        index = ids.index(stage_id)
        return ids[min(index + 1, len(ids) - 1)]

    # --- Stage field rules ---

    def paint_queue(self, fields: dict) -> list[str]:
        """Paint categories to choose, one per selected surface, in flow order."""
        surfaces = fields.get("surfaces") or []
        return [
            q["id"] for q in self.get_stage("paint_selection")["questions"]
            if q.get("surface") in surfaces
        ]

    def current_paint_category(self, fields: dict) -> Optional[str]:
        """First paint category in the queue still without a selection."""
        for category in self.paint_queue(fields):
            if not is_filled(fields.get(category)):
                return category
        return None

    def get_questions(self, stage_id: str, fields: dict) -> list[dict]:
        """Questions that apply to a stage given what is known so far."""
        stage = self.get_stage(stage_id)
        surfaces = fields.get("surfaces") or []
        questions = []
        for q in stage["questions"]:
            # Surface-bound questions only apply when that surface is painted
            if q.get("surface") and q["surface"] not in surfaces:
                continue
            q = dict(q)
            excluded = (q.get("exclude_options") or {}).get(fields.get("project_type"), [])
            if excluded:
                q["options"] = [o for o in q["options"] if o not in excluded]
            questions.append(q)
        return questions

    def get_writable_fields(self, stage_id: str, fields: dict) -> list[str]:
        return [q["id"] for q in self.get_questions(stage_id, fields)]

    def get_required_fields(self, stage_id: str, fields: dict) -> list[str]:
        stage = self.get_stage(stage_id)
        required = list(stage.get("required_fields", []))

        if stage_id == "dimensions":
            method_q = _find_question(stage["questions"], "measurement_method")
            method = fields.get("measurement_method")
            branch = method_q["branches"].get(method, []) if method else []
            applicable = set(self.get_writable_fields(stage_id, fields))
            required += [fid for fid in branch if fid in applicable]
        elif stage_id == "paint_selection":
            required += self.paint_queue(fields)

        return required

    def get_missing_fields(self, stage_id: str, fields: dict) -> list[str]:
        return [f for f in self.get_required_fields(stage_id, fields) if not is_filled(fields.get(f))]

    def can_advance(self, stage_id: str, fields: dict) -> bool:
        if stage_id == FINAL_STAGE:
            return False
        return not self.get_missing_fields(stage_id, fields)

    def advance(self, stage_id: str, fields: dict) -> str:
        """Move forward past every stage whose required fields are filled."""
        while self.can_advance(stage_id, fields):
            stage_id = self.next_stage(stage_id)
        return stage_id

    def restart(self) -> tuple[str, dict]:
        return FIRST_STAGE, {}

    # --- Answers ---

    def apply_answers(self, stage_id: str, fields: dict, answers: dict) -> StageUpdate:
        """
        Write answers into a copy of fields.

        Fields the current stage does not own, and values that fail the
        question's type check, are returned in `rejected` and not written.
        """
        new_fields = dict(fields)
        accepted = {}
        rejected = []

        questions = {q["id"]: q for q in self.get_questions(stage_id, fields)}
        for field_id, raw_value in answers.items():
            question = questions.get(field_id)
            if question is None:
                rejected.append(RejectedField(
                    field=field_id,
                    reason=f"'{field_id}' cannot be set during the {stage_id} stage",
                ))
                continue
            try:
                value = _coerce(question, raw_value)
            except ValueError as e:
                rejected.append(RejectedField(field=field_id, reason=str(e)))
                continue

            new_fields[field_id] = value
            accepted[field_id] = value

        if rejected:
            logger.info("Stage %s rejected fields: %s", stage_id, [r.field for r in rejected])
        return StageUpdate(fields=new_fields, accepted=accepted, rejected=rejected)

    def get_next_questions(self, stage_id: str, fields: dict) -> list[dict]:
        """
        Unanswered questions in the current stage.

        Respects branching: a question with depends_on is shown only when its
        parent is answered, and, if the parent branches, only when the answer
        activates it.
        """
        questions = self.get_questions(stage_id, fields)

        branch_activated = set()
        for q in questions:
            if q.get("branches"):
                answered_value = fields.get(q["id"])
                if answered_value and answered_value in q["branches"]:
                    branch_activated.update(q["branches"][answered_value])

        next_qs = []
        for q in questions:
            if is_filled(fields.get(q["id"])):
                continue
            depends_on = q.get("depends_on")
            if depends_on:
                if not is_filled(fields.get(depends_on)):
                    continue
                parent = _find_question(questions, depends_on)
                if parent and parent.get("branches") and q["id"] not in branch_activated:
                    continue
            next_qs.append(q)

        if stage_id == "paint_selection":
            # One category at a time, plus the optional primer
            current = self.current_paint_category(fields)
            next_qs = [q for q in next_qs if q["id"] == current or q["id"] == "primer"]
        return next_qs

    def get_completion_status(self, stage_id: str, fields: dict) -> dict:
        ids = self.stage_ids()
        index = ids.index(stage_id)
        missing = self.get_missing_fields(stage_id, fields)
        return {
            "stage": stage_id,
            "stage_index": index,
            "stages_total": len(ids),
            "stages_completed": ids[:index],
            "is_complete": stage_id == FINAL_STAGE,
            "required_missing": missing,
            "completion_pct": round(index / max(len(ids) - 1, 1) * 100, 1),
        }


def _find_question(questions: list[dict], question_id: str) -> Optional[dict]:
    for q in questions:
        if q["id"] == question_id:
            return q
    return None


def _coerce(question: dict, value: Any) -> Any:
    """Normalize an answer to the question's type. Raises ValueError if it doesn't fit."""
    qtype = question.get("type", "text")
    qid = question["id"]

    if qtype == "text":
        text = str(value or "").strip()
        if not text:
            raise ValueError(f"{qid} cannot be empty")
        return text

    if qtype == "choice":
        choice = str(value or "").strip().lower()
        if choice not in question["options"]:
            raise ValueError(f"{qid} must be one of: {', '.join(question['options'])}")
        return choice

    if qtype == "multi_choice":
        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, (list, tuple)) or value is None:
            items = list(value or [])
        else:
            raise ValueError(f"{qid} must be a list or a comma-separated string")
        picked = []
        for item in items:
            item = str(item).strip().lower()
            if item not in question["options"]:
                raise ValueError(f"'{item}' is not available here. Choose from: {', '.join(question['options'])}")
            if item not in picked:
                picked.append(item)
        if not picked:
            raise ValueError(f"Select at least one of: {', '.join(question['options'])}")
        return picked

    if qtype in ("measurement", "number"):
        number = parse_number(value, default=None)
        if number is None:
            raise ValueError(f"{qid} must be a number")
        if number < 0:
            raise ValueError(f"{qid} cannot be negative")
        return number

    if qtype == "boolean":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _YES:
            return True
        if text in _NO:
            return False
        raise ValueError(f"{qid} must be yes or no")

    if qtype == "rooms":
        if not isinstance(value, list) or not value:
            raise ValueError("rooms must be a non-empty list")
        try:
            rooms = [RoomMeasurements.model_validate(r) for r in value]
        except ValidationError as e:
            raise ValueError(f"Invalid room: {e.errors()[0]['msg']}")
        return [r.model_dump() for r in rooms]

    if qtype == "paint":
        return _coerce_paint(question, value)

    return value


def _coerce_paint(question: dict, value: Any) -> dict:
    """
    A paint answer is {"product_id": int}, {"quality": tier}, or, where the
    question allows it, {"none": True}.
    """
    if isinstance(value, dict):
        product_id = value.get("product_id")
        if product_id is not None:
            if isinstance(product_id, bool) or not str(product_id).strip().isdigit():
                raise ValueError(f"{question['id']} product_id must be a whole number")
            return {"product_id": int(str(product_id).strip())}
        if value.get("quality") is not None:
            value = value["quality"]
        elif value.get("none") and question.get("optional_none"):
            return {"none": True}
        else:
            raise ValueError(f"{question['id']} needs a product_id or a quality")

    if isinstance(value, int) and not isinstance(value, bool):
        return {"product_id": value}

    text = str(value or "").strip().lower()
    if text.isdigit():
        return {"product_id": int(text)}
    if text in QUALITY_TIERS:
        return {"quality": text}
    if text in ("none", "no", "skip") and question.get("optional_none"):
        return {"none": True}
    raise ValueError(
        f"{question['id']} must be a product id or one of: {', '.join(QUALITY_TIERS)}"
    )
