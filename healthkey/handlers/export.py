"""
Lambda handler for the iCalendar export of a day.

``GET ?date=YYYY-MM-DD`` returns the day's events as an ``.ics`` file;
without ``date`` today is exported.
"""
from typing import Dict

from aws_lambda_powertools.utilities.typing import LambdaContext

from healthkey.handlers import error_response
from healthkey.services.calendar_export import MEDIA_TYPE
from healthkey.services.exceptions import EmptyDayError
from healthkey.services.utils import parse_day
from healthkey.utils.clients import get_engine
from healthkey.utils.logging import logger, log_exception

@logger.inject_lambda_context
def handler(event: Dict, context: LambdaContext) -> Dict:
    """
    Handle an export request.

    Args:
        event: API Gateway Lambda proxy event
        context: Lambda context

    Returns:
        API Gateway Lambda proxy response with the calendar file
    """
    params = event.get("queryStringParameters") or {}
    try:
        engine = get_engine()
        day = parse_day(params["date"]) if params.get("date") else engine.today()
    except ValueError as e:
        return error_response(400, f"Invalid date: {str(e)}")
    except Exception as e:
        log_exception(logger, "Error initializing export", extra={
            "error_type": type(e).__name__,
            "error_details": str(e)
        })
        return error_response(500, "Internal error")

    try:
        data = engine.exporter.export_day(day)
    except EmptyDayError as e:
        return error_response(404, str(e))
    except Exception as e:
        log_exception(logger, "Error exporting day", extra={
            "day": day.isoformat(),
            "error_type": type(e).__name__,
            "error_details": str(e)
        })
        return error_response(500, "Internal error")

    return {
        "statusCode": 200,
        "headers": {
            "Content-Type": f"{MEDIA_TYPE}; charset=utf-8",
            "Content-Disposition": f'attachment; filename="{engine.exporter.filename(day)}"'
        },
        "body": data.decode("utf-8"),
        "isBase64Encoded": False
    }
