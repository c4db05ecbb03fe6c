import logging

from fastapi import APIRouter, Depends, HTTPException

from churn_scoring.config import ScoringConfig
from churn_scoring.config_store import ScoringConfigStore
from core.exceptions import ConfigurationError, InvalidConfigError
from dashboard.dependencies import get_config_store
from dashboard.schemas import ScoringConfigResponse, ScoringConfigUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config/scoring", tags=["Scoring Config"])


@router.get("", response_model=ScoringConfigResponse)
async def get_scoring_config(store: ScoringConfigStore = Depends(get_config_store)):
    """Active weights and bucket thresholds."""
    return ScoringConfigResponse(data=store.current().to_dict())


@router.put("", response_model=ScoringConfigResponse)
async def replace_scoring_config(
    body: ScoringConfigUpdate,
    store: ScoringConfigStore = Depends(get_config_store),
):
    """
    Replace the scoring configuration.

    Every weight must be given. Thresholds keep their current
    values when omitted. 422 when any value is rejected; the
    active configuration is then unchanged.
    """
    thresholds = body.thresholds
    if thresholds is None:
        thresholds = store.current().thresholds.to_dict()
    try:
        proposed = ScoringConfig.from_mapping({"weights": body.weights, "thresholds": thresholds})
        saved = store.save(proposed)
    except InvalidConfigError as e:
        logger.warning(f"Scoring config rejected: {e.message}")
        raise HTTPException(status_code=422, detail=e.to_dict())
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())
    return ScoringConfigResponse(message="Scoring config updated", data=saved.to_dict())


@router.post("/reset", response_model=ScoringConfigResponse)
async def reset_scoring_config(store: ScoringConfigStore = Depends(get_config_store)):
    """Restore the default weights and thresholds."""
    try:
        saved = store.reset_to_defaults()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())
    return ScoringConfigResponse(message="Scoring config reset to defaults", data=saved.to_dict())
