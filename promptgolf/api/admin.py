"""Admin API - challenge authoring checks and registry reload."""

import logging

from fastapi import APIRouter, Depends

from ..challenges import ChallengeRegistry, challenge_loader
from .deps import get_registry, require_admin
from .schemas import ValidateChallengeRequest, ValidateChallengeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/challenges/validate", response_model=ValidateChallengeResponse)
async def validate_challenge_document(request: ValidateChallengeRequest):
    """
    Parse and validate a challenge document without registering it.

    Failures surface as PARSE_ERROR, SCHEMA_ERROR, SCORING_WEIGHT_ERROR or
    MAX_SCORE_MISMATCH with the full list of violations.
    """
    challenge = challenge_loader.parse(request.yaml_content)
    return ValidateChallengeResponse(
        valid=True,
        challenge=challenge.model_dump(by_alias=True, exclude_none=True),
        message=f"Challenge '{challenge.id}' is valid",
    )


@router.post("/challenges/reload")
async def reload_challenges(registry: ChallengeRegistry = Depends(get_registry)):
    """Re-scan the challenges directory and swap the registry index."""
    await registry.reload()
    logger.info("Registry reloaded by admin request")
    return {"status": "reloaded", "count": registry.size, "categories": registry.get_categories()}
