"""
AWS Lambda handler for the UK Pension Calculator API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
from decimal import InvalidOperation

from pension_engine import CalculatorProcessor
from pension_engine.config import get_config
from pension_engine.journey.orchestrator import complete_calculator_from_dict, evaluate_journey_from_dict

config = get_config()

# Configure logging
logger = logging.getLogger()
logger.setLevel(getattr(logging, config.log_level, logging.INFO))

# Environment (dev, staging, prod)
ENVIRONMENT = config.environment

# Initialize processor (reused across warm invocations)
processor = CalculatorProcessor()

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

CALCULATE_PREFIX = "/calculate/"


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - POST /calculate/{calculator_type}
    - POST /journey/evaluate
    - POST /journey/complete
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path.startswith(CALCULATE_PREFIX) and http_method == "POST":
        calculator_type = path[len(CALCULATE_PREFIX):].strip("/")
        return handle_post(event, lambda data: processor.process_from_dict(calculator_type, data),
                           f"calculate {calculator_type}")
    elif path == "/journey/evaluate" and http_method == "POST":
        return handle_post(event, evaluate_journey_from_dict, "journey evaluate")
    elif path == "/journey/complete" and http_method == "POST":
        return handle_post(event, lambda data: complete_calculator_from_dict(data, processor),
                           "journey complete")
    else:
        return _response(404, {"error": "Not found", "path": path})


def _response(status_code, body):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(body)}


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def handle_api_info():
    """API information endpoint."""
    return _response(200, {
        "status": "ok",
        "message": "UK Pension Calculator API",
        "version": "1.0",
        "environment": ENVIRONMENT,
        "runtime": "AWS Lambda",
        "tax_year": processor.constants.tax_year,
        "calculators": processor.supported_types,
        "endpoints": {
            "calculate": "/calculate/{calculator_type} [POST]",
            "journey_evaluate": "/journey/evaluate [POST]",
            "journey_complete": "/journey/complete [POST]",
            "health": "/health [GET]",
        },
    })


def _parse_body(event):
    """Request body as a dict, or None when empty."""
    body = event.get("body", "")
    if not isinstance(body, str):
        return body
    if not body:
        return None
    # Handle base64 encoded body (API Gateway)
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)


def handle_post(event, action, label):
    """Run a POST action with the shared error mapping."""
    try:
        input_data = _parse_body(event)
        if input_data is None:
            return _response(400, {"error": "No input data provided", "status": "failed"})

        logger.info(f"Processing: {label}")
        result = action(input_data)
        logger.info(f"Processed successfully: {label}")

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except (ValueError, KeyError, TypeError, InvalidOperation) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        body = {"error": f"Validation error: {str(e)}", "status": "validation_failed"}
        field = getattr(e, "field", None)
        if field:
            body["field"] = field
        return _response(400, body)

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})
