from flask import Flask, request, jsonify
from flask_cors import CORS
from pension_engine import CalculatorProcessor
from pension_engine.config import get_config
from pension_engine.journey.orchestrator import complete_calculator_from_dict, evaluate_journey_from_dict
import logging
from decimal import InvalidOperation

config = get_config()

# Configure logging
logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the calculator pages call the API from the browser)
CORS(app)

# Initialize the calculator processor
processor = CalculatorProcessor()


def _validation_error(e: ValueError):
    body = {"error": str(e), "status": "validation_failed"}
    field = getattr(e, "field", None)
    if field:
        body["field"] = field
    return jsonify(body), 400


def _read_json():
    input_data = request.get_json(force=True, silent=True)
    if input_data is None:
        return None, (jsonify({"error": "Invalid or missing JSON body", "status": "failed"}), 400)
    return input_data, None


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "UK Pension Calculator API",
        "version": "1.0",
        "tax_year": processor.constants.tax_year,
        "calculators": processor.supported_types,
        "endpoints": {
            "calculate": "/calculate/<calculator_type> [POST]",
            "journey_evaluate": "/journey/evaluate [POST]",
            "journey_complete": "/journey/complete [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


@app.route("/calculate/<calculator_type>", methods=["POST"])
def calculate(calculator_type):
    """
    Run one pension calculator
    """
    try:
        input_data, error = _read_json()
        if error:
            return error

        logger.info(f"Calculating: {calculator_type}")

        result = processor.process_from_dict(calculator_type, input_data)

        logger.info(f"Calculation complete: {calculator_type}")

        return jsonify(result), 200

    except ValueError as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return _validation_error(e)

    except Exception as e:
        # Unexpected errors
        logger.error(f"Calculation error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during calculation",
            "status": "failed"
        }), 500


@app.route("/journey/evaluate", methods=["POST"])
def journey_evaluate():
    """
    Re-derive a client-held journey state and decide on the gate
    """
    try:
        input_data, error = _read_json()
        if error:
            return error

        return jsonify(evaluate_journey_from_dict(input_data)), 200

    except ValueError as e:
        logger.error(f"Validation error: {str(e)}")
        return _validation_error(e)

    except (KeyError, TypeError, InvalidOperation) as e:
        logger.error(f"Validation error: {str(e)}")
        return _validation_error(ValueError(str(e)))

    except Exception as e:
        logger.error(f"Journey error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during journey evaluation",
            "status": "failed"
        }), 500


@app.route("/journey/complete", methods=["POST"])
def journey_complete():
    """
    Run a calculator and record it against a client-held journey state
    """
    try:
        input_data, error = _read_json()
        if error:
            return error

        logger.info(f"Completing calculator: {input_data.get('calculator_type')}")
        return jsonify(complete_calculator_from_dict(input_data, processor)), 200

    except ValueError as e:
        logger.error(f"Validation error: {str(e)}")
        return _validation_error(e)

    except (KeyError, TypeError, InvalidOperation) as e:
        logger.error(f"Validation error: {str(e)}")
        return _validation_error(ValueError(str(e)))

    except Exception as e:
        logger.error(f"Journey error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during journey completion",
            "status": "failed"
        }), 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.port, debug=False)
