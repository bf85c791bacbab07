"""
Lambda handler for tap signals.

A POST with ``{"eventTypeId": "sleep_start"}`` opens or closes an event the
same way the quick-log button does. ``at`` optionally carries the tap time.
"""
from datetime import datetime
from typing import Dict, Optional

from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from healthkey.handlers import error_response, json_response, parse_body
from healthkey.services.exceptions import HealthKeyError, UnknownEventTypeError
from healthkey.utils.clients import get_engine
from healthkey.utils.logging import logger, log_exception

class TapRequest(BaseModel):
    """Tap request model."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_type_id: str = Field(..., min_length=1)
    at: Optional[datetime] = None

@logger.inject_lambda_context
def handler(event: Dict, context: LambdaContext) -> Dict:
    """
    Handle a tap on an event type.

    Args:
        event: API Gateway Lambda proxy event
        context: Lambda context

    Returns:
        API Gateway Lambda proxy response with the tap outcome
    """
    try:
        request = TapRequest.model_validate(parse_body(event))
    except (ValueError, ValidationError) as e:
        logger.warning("Invalid tap request", extra={"error": str(e)})
        return error_response(400, str(e))

    try:
        outcome = get_engine().tap(request.event_type_id, request.at)
    except UnknownEventTypeError as e:
        return error_response(404, str(e))
    except HealthKeyError as e:
        log_exception(logger, "Tap failed", extra={
            "event_type_id": request.event_type_id,
            "error_type": type(e).__name__
        })
        return error_response(500, str(e))
    except Exception as e:
        log_exception(logger, "Error processing tap", extra={
            "error_type": type(e).__name__,
            "error_details": str(e)
        })
        return error_response(500, "Internal error")

    logger.info("Processed tap", extra={
        "event_type_id": request.event_type_id,
        "result": outcome.result.value
    })
    return json_response(200, {
        "result": outcome.result.value,
        "eventId": outcome.event_id,
        "advisory": outcome.advisory
    })
