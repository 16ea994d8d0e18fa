"""Lead scoring, stage and prediction routes."""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...core.errors import ConfigurationError
from ...engine import LeadScoringEngine
from ..schemas.scoring import (
    ErrorResponse,
    LeadScoreRequest,
    RuleCreate,
    ScoreResponse,
    WeightsUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["scoring"])


def get_engine(request: Request) -> LeadScoringEngine:
    return request.app.state.engine


def _not_found(lead_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"success": False, "error": "not_found", "detail": f"Lead {lead_id} has not been scored"},
    )


def _config_error(e: ConfigurationError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"success": False, "error": "configuration_error", "detail": str(e)},
    )


def _server_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={"success": False, "error": "server_error", "detail": message},
    )


@router.post(
    "/scores",
    response_model=ScoreResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def score_lead(payload: LeadScoreRequest, engine: LeadScoringEngine = Depends(get_engine)):
    """Score a lead and return its record, stage and predictions."""
    try:
        record = engine.calculate_score(payload.model_dump(exclude_none=True))
    except Exception:
        logger.exception("Lead scoring error")
        raise _server_error("Internal processing error")

    prediction = engine.get_prediction(record.lead_id)
    return ScoreResponse(
        stage=engine.get_stage(record.lead_id),
        record=record.to_dict(),
        prediction=prediction.to_dict() if prediction else None,
    )


@router.get("/leads/{lead_id}/stage")
def get_stage(lead_id: str, engine: LeadScoringEngine = Depends(get_engine)):
    """Current qualification stage (the lowest stage for unscored leads)."""
    return {"lead_id": lead_id, "stage": engine.get_stage(lead_id)}


@router.get("/leads/{lead_id}/prediction", responses={404: {"model": ErrorResponse}})
def get_prediction(lead_id: str, engine: LeadScoringEngine = Depends(get_engine)):
    prediction = engine.get_prediction(lead_id)
    if prediction is None:
        raise _not_found(lead_id)
    return prediction.to_dict()


@router.get("/leads/{lead_id}/history")
def get_history(lead_id: str, engine: LeadScoringEngine = Depends(get_engine)):
    """Score history, oldest first, with the derived trend."""
    history = engine.get_history(lead_id)
    return {
        "lead_id": lead_id,
        "trend": history["trend"],
        "records": [r.to_dict() for r in history["records"]],
    }


@router.get("/leads/{lead_id}/transitions")
def get_transitions(lead_id: str, engine: LeadScoringEngine = Depends(get_engine)):
    return [t.to_dict() for t in engine.get_transitions(lead_id)]


@router.get("/benchmarks")
def get_benchmarks(engine: LeadScoringEngine = Depends(get_engine)):
    return engine.get_benchmarks().to_dict()


@router.get("/dashboard")
def get_dashboard(
    limit: int = Query(default=10, ge=1, le=100),
    engine: LeadScoringEngine = Depends(get_engine),
):
    """Summary stats, stage funnel, score distribution and top leads."""
    return {
        "summary": engine.dashboard_summary(),
        "funnel": engine.stage_funnel(),
        "distribution": engine.score_distribution(),
        "top_leads": engine.top_leads(limit),
    }


@router.get("/config")
def get_config(engine: LeadScoringEngine = Depends(get_engine)):
    return engine.current_config().to_dict()


@router.put("/config/weights", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
def update_weights(payload: WeightsUpdate, engine: LeadScoringEngine = Depends(get_engine)):
    """Replace category weights; rejected unless they sum to 1."""
    try:
        config = engine.update_weights(payload.weights, rescore=payload.rescore)
    except ConfigurationError as e:
        raise _config_error(e)
    except OSError:
        logger.exception("Failed to save scoring config")
        raise _server_error("Scoring config could not be saved")
    return config.to_dict()


@router.post("/config/rules", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
def add_rule(payload: RuleCreate, engine: LeadScoringEngine = Depends(get_engine)):
    try:
        rule = engine.add_scoring_rule(payload.category, payload.factor, payload.value, payload.points)
    except ConfigurationError as e:
        raise _config_error(e)
    except OSError:
        logger.exception("Failed to save scoring config")
        raise _server_error("Scoring config could not be saved")
    return rule.to_dict()
