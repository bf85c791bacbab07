"""
Lambda handlers package for the HealthKey API.

Handlers return API Gateway Lambda proxy responses built with the helpers
below.
"""
import json
from typing import Any, Dict, Optional


def json_response(status_code: int, body: Any, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Build a JSON proxy response."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", **(headers or {})},
        "body": json.dumps(body, ensure_ascii=False, default=str),
        "isBase64Encoded": False
    }


def error_response(status_code: int, message: str) -> Dict[str, Any]:
    return json_response(status_code, {"error": message})


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Decode the JSON body of a proxy event.

    Raises:
        ValueError: If the body is missing or not a JSON object
    """
    raw = event.get("body")
    if not raw:
        raise ValueError("Request body is required")
    body = json.loads(raw)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


__all__ = ["json_response", "error_response", "parse_body"]
