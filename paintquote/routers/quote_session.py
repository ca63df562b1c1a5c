"""
Quote Session API: the stage-by-stage conversation that builds a quote.

POST /api/session/start          Start a session (optionally with a first message)
POST /api/session/{id}/message   Free text; parsed for the current stage
POST /api/session/{id}/answer    Structured answers for the current stage
GET  /api/session/{id}/status    Current stage, collected fields, running estimate
POST /api/session/{id}/restart   Back to the first stage with nothing collected

Sessions live in the database. One idle longer than SESSION_TTL_MINUTES is
marked abandoned on its next access.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from .. import models
from ..auth import get_current_user
from ..calculators.progressive import ProgressiveEstimator, format_estimate_message
from ..calculators.types import PricingOverrides, QuoteCalculationRequest
from ..config import settings
from ..conversation.assistant import (
    GREETING,
    ai_extraction_enabled,
    build_reply,
    extract_fields_with_ai,
    format_review,
)
from ..conversation.builder import (
    PAINT_FIELDS,
    build_measurements,
    build_partial_data,
    build_product_selections,
)
from ..conversation.engine import FINAL_STAGE, QuoteFlowEngine, RejectedField
from ..conversation.parser import is_restart_request, parse_message
from ..database import get_db
from .paint_products import lookup_product
from .quotes import calculator, company_defaults_for, save_quote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["quote-session"])

# Singleton engine: cached flow, no per-session state
engine = QuoteFlowEngine()
estimator = ProgressiveEstimator(calculator)


class StartSessionRequest(BaseModel):
    message: Optional[str] = None


class MessageRequest(BaseModel):
    message: str = Field(min_length=1)


class AnswerRequest(BaseModel):
    answers: dict  # {field_id: value, ...}
    stage: Optional[str] = None  # when given, must match the session's stage


# --- Helpers ---

def _load_session(db: Session, session_id: str, user: models.User,
                  require_active: bool = True) -> models.QuoteSession:
    session = db.query(models.QuoteSession).filter(
        models.QuoteSession.id == session_id,
    ).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your session")

    if session.status == "active" and _is_expired(session):
        session.status = "abandoned"
        db.commit()
        logger.info("Session %s abandoned after %s minutes idle", session.id, settings.SESSION_TTL_MINUTES)

    if require_active and session.status != "active":
        raise HTTPException(status_code=400, detail=f"Session is {session.status}, not active")
    return session


def _is_expired(session: models.QuoteSession) -> bool:
    last_seen = session.updated_at or session.created_at
    if last_seen is None:
        return False
    return datetime.utcnow() - last_seen > timedelta(minutes=settings.SESSION_TTL_MINUTES)


def _log_message(messages: list, role: str, content) -> list:
    return messages + [{
        "role": role,
        "content": content,
        "timestamp": datetime.utcnow().isoformat(),
    }]


def _save_state(session: models.QuoteSession, stage: str, fields: dict, messages: list):
    session.stage = stage
    session.params_json = fields
    session.messages_json = messages
    session.updated_at = datetime.utcnow()
    flag_modified(session, "params_json")
    flag_modified(session, "messages_json")


def _check_products(db: Session, fields: dict, accepted: dict) -> list[RejectedField]:
    """Drop paint answers that point at products not in the catalog."""
    rejected = []
    for field_id in PAINT_FIELDS:
        answer = accepted.get(field_id) or {}
        product_id = answer.get("product_id")
        if product_id is not None and lookup_product(db, product_id) is None:
            fields.pop(field_id, None)
            accepted.pop(field_id, None)
            rejected.append(RejectedField(field=field_id, reason=f"no paint product with id {product_id}"))
    return rejected


def _pricing_for(db: Session, fields: dict, user: models.User):
    measurements = build_measurements(fields, calculator.config)
    if measurements is None:
        return None, None, None
    products = build_product_selections(fields, lambda pid: lookup_product(db, pid), calculator.config)
    pricing = calculator.calculate_quote(QuoteCalculationRequest(
        measurements=measurements,
        products=products,
        company_defaults=company_defaults_for(user),
        overrides=PricingOverrides(markup_percentage=fields.get("markup_percentage")),
    ))
    return measurements, products, pricing


def _estimate(db: Session, fields: dict, user: models.User) -> dict:
    data = build_partial_data(fields, engine.paint_queue(fields), lambda pid: lookup_product(db, pid))
    estimate = estimator.estimate(data, company_defaults_for(user))
    return {**estimate.model_dump(), "message": format_estimate_message(estimate)}


def _create_quote(db: Session, session: models.QuoteSession, fields: dict, user: models.User) -> models.Quote:
    measurements, products, pricing = _pricing_for(db, fields, user)
    if pricing is None:
        raise HTTPException(status_code=400, detail="Session has no usable measurements")
    validation = calculator.validate_measurements(measurements)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    quote = save_quote(
        db, user,
        customer_name=fields["customer_name"],
        customer_email=fields.get("customer_email"),
        customer_phone=fields.get("customer_phone"),
        address=fields.get("address"),
        project_type=fields.get("project_type") or "interior",
        special_requests=fields.get("special_requests"),
        timeline=fields.get("timeline"),
        measurements=measurements,
        products=products,
        pricing=pricing,
        creation_method=models.CreationMethod.CHAT,
        created_by=models.CreatedBy.AI if ai_extraction_enabled() else models.CreatedBy.MANUAL,
        session_id=session.id,
        ai_provider="openrouter" if ai_extraction_enabled() else None,
        conversation_summary=format_review(fields, pricing.rounded()),
    )
    session.quote_id = quote.id
    session.status = "complete"
    return quote


def _process(db: Session, session: models.QuoteSession, user: models.User,
             answers: dict, user_content) -> dict:
    """Apply answers to the current stage, advance, and build the turn's response."""
    stage = session.stage
    fields = dict(session.params_json or {})
    messages = _log_message(list(session.messages_json or []), "user", user_content)

    update = engine.apply_answers(stage, fields, answers)
    fields = update.fields
    rejected = list(update.rejected)
    if stage == "paint_selection":
        rejected += _check_products(db, fields, update.accepted)

    new_stage = engine.advance(stage, fields)

    pricing = None
    quote = None
    warnings = []
    if new_stage in ("review", FINAL_STAGE):
        measurements, _, details = _pricing_for(db, fields, user)
        if details is not None:
            pricing = details.rounded()
            warnings = calculator.validate_measurements(measurements).warnings

    try:
        if new_stage == FINAL_STAGE and stage != FINAL_STAGE:
            quote = _create_quote(db, session, fields, user)

        next_questions = engine.get_next_questions(new_stage, fields)
        reply = build_reply(
            new_stage, fields, next_questions,
            rejected=rejected,
            paint_category=engine.current_paint_category(fields),
            pricing=pricing,
            quote_number=quote.quote_number if quote else None,
        )
        if not answers and not rejected:
            reply = "Sorry, I didn't catch that.\n" + reply

        messages = _log_message(messages, "assistant", reply)
        _save_state(session, new_stage, fields, messages)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Session %s update failed: %s", session.id, e)
        raise HTTPException(
            status_code=500,
            detail="Saving the session failed. Session is intact, send the message again.",
        )

    if new_stage != stage:
        logger.info("Session %s: %s -> %s", session.id, stage, new_stage)

    return {
        "session_id": session.id,
        "stage": new_stage,
        "previous_stage": stage,
        "reply": reply,
        "accepted": update.accepted,
        "rejected": [r.model_dump() for r in rejected],
        "fields": fields,
        "next_questions": _serialize_questions(next_questions),
        "completion": engine.get_completion_status(new_stage, fields),
        "estimate": _estimate(db, fields, user),
        "pricing": pricing,
        "warnings": warnings,
        "quote_id": quote.id if quote else session.quote_id,
        "quote_number": quote.quote_number if quote else None,
    }


def _restart(db: Session, session: models.QuoteSession) -> dict:
    stage, fields = engine.restart()
    messages = _log_message(list(session.messages_json or []), "assistant", GREETING)
    _save_state(session, stage, fields, messages)
    db.commit()
    return {
        "session_id": session.id,
        "stage": stage,
        "reply": GREETING,
        "fields": fields,
        "next_questions": _serialize_questions(engine.get_next_questions(stage, fields)),
        "completion": engine.get_completion_status(stage, fields),
    }


# --- Endpoints ---

@router.post("/start")
def start_session(
    request: StartSessionRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """New session at the first stage. A first message, if sent, is processed right away."""
    stage, fields = engine.restart()
    session = models.QuoteSession(
        id=str(uuid.uuid4()),
        user_id=current_user.id,
        stage=stage,
        params_json=fields,
        messages_json=_log_message([], "assistant", GREETING),
        status="active",
    )
    db.add(session)
    db.commit()

    if request.message:
        return send_message(session.id, MessageRequest(message=request.message), db, current_user)

    return {
        "session_id": session.id,
        "stage": stage,
        "reply": GREETING,
        "fields": fields,
        "next_questions": _serialize_questions(engine.get_next_questions(stage, fields)),
        "completion": engine.get_completion_status(stage, fields),
        "estimate": _estimate(db, fields, current_user),
    }


@router.post("/{session_id}/message")
def send_message(
    session_id: str,
    request: MessageRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Free-text turn. "start over" restarts; otherwise the rule parser reads
    the message for the current stage, and AI extraction (when configured)
    fills in anything it stated that the parser missed.
    """
    session = _load_session(db, session_id, current_user)
    text = request.message.strip()

    if is_restart_request(text):
        return _restart(db, session)

    stage = session.stage
    fields = dict(session.params_json or {})
    answers = parse_message(stage, text, fields, engine.current_paint_category(fields))

    if ai_extraction_enabled():
        questions = engine.get_next_questions(stage, fields) or engine.get_questions(stage, fields)
        ai_answers = extract_fields_with_ai(stage, text, questions)
        for field_id, value in ai_answers.items():
            answers.setdefault(field_id, value)

    return _process(db, session, current_user, answers, text)


@router.post("/{session_id}/answer")
def answer_questions(
    session_id: str,
    request: AnswerRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Structured answers for the current stage. Fields it doesn't own are rejected."""
    session = _load_session(db, session_id, current_user)
    if request.stage and request.stage != session.stage:
        raise HTTPException(
            status_code=400,
            detail=f"Session is at stage {session.stage}, not {request.stage}",
        )
    return _process(db, session, current_user, request.answers, request.answers)


@router.get("/{session_id}/status")
def get_session_status(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    session = _load_session(db, session_id, current_user, require_active=False)
    fields = dict(session.params_json or {})
    return {
        "session_id": session.id,
        "stage": session.stage,
        "status": session.status,
        "fields": fields,
        "next_questions": _serialize_questions(engine.get_next_questions(session.stage, fields)),
        "completion": engine.get_completion_status(session.stage, fields),
        "estimate": _estimate(db, fields, current_user),
        "quote_id": session.quote_id,
        "messages": session.messages_json or [],
        "created_at": session.created_at.isoformat() if session.created_at else None,
        "updated_at": session.updated_at.isoformat() if session.updated_at else None,
    }


@router.post("/{session_id}/restart")
def restart_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    session = _load_session(db, session_id, current_user)
    return _restart(db, session)


def _serialize_questions(questions: list[dict]) -> list[dict]:
    """Serialize question dicts for API response (strip internal-only fields)."""
    return [
        {
            "id": q["id"],
            "text": q["text"],
            "type": q["type"],
            "required": q.get("required", False),
            "hint": q.get("hint"),
            "options": q.get("options"),
            "unit": q.get("unit"),
        }
        for q in questions
    ]
