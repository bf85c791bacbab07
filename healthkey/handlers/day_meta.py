"""
Lambda handler for day attribute pushes.

Accepts ``{"steps": 8000}`` and/or ``{"cyclePhase": "luteal"}`` for today.
When ``latitude`` and ``longitude`` are given the day's weather is fetched
too, unless it is already known.
"""
from typing import Dict, Optional

from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from healthkey.handlers import error_response, json_response, parse_body
from healthkey.models.day_meta import DayMetaUpdate
from healthkey.utils.clients import get_engine
from healthkey.utils.logging import logger, log_exception
from healthkey.utils.weather import OpenMeteoClient

class DayMetaRequest(BaseModel):
    """Day attribute push request model."""
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    steps: Optional[int] = Field(None, ge=0)
    cycle_phase: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def _check_location(self) -> "DayMetaRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

@logger.inject_lambda_context
def handler(event: Dict, context: LambdaContext) -> Dict:
    """
    Handle a push of today's steps, cycle phase or location.

    Args:
        event: API Gateway Lambda proxy event
        context: Lambda context

    Returns:
        API Gateway Lambda proxy response with today's day meta
    """
    try:
        request = DayMetaRequest.model_validate(parse_body(event))
    except (ValueError, ValidationError) as e:
        logger.warning("Invalid day meta request", extra={"error": str(e)})
        return error_response(400, str(e))

    try:
        engine = get_engine()
        update = DayMetaUpdate.model_validate(
            request.model_dump(include={"steps", "cycle_phase"}, exclude_none=True)
        )
        meta = engine.day_metas.push_today(update)
        if request.latitude is not None:
            meta = engine.day_metas.refresh_weather(
                OpenMeteoClient(), request.latitude, request.longitude
            ) or meta
    except Exception as e:
        log_exception(logger, "Error processing day meta push", extra={
            "error_type": type(e).__name__,
            "error_details": str(e)
        })
        return error_response(500, "Internal error")

    return json_response(200, meta.model_dump(mode="json", by_alias=True, exclude_none=True))
