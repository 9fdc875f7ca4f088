"""
dataprobe - REST API.

Simple Flask REST API exposing the data diagnosis tables. Accepts either
a JSON body of records or an uploaded CSV file and returns JSON tables.

Usage:
    python api.py                    # Run on default port 5000
    python api.py --port 8080        # Run on custom port

Endpoints:
    GET  /                    - API documentation
    GET  /health              - Health check
    POST /diagnose            - Variable overview
    POST /diagnose/numeric    - Numeric variable diagnosis
    POST /diagnose/category   - Categorical level frequencies
    POST /diagnose/outlier    - Outlier diagnosis
    POST /describe            - Descriptive statistics
    POST /missing/pareto      - Missing value pareto table
"""

import sys
import argparse
import numpy as np
import pandas as pd
from pathlib import Path
from datetime import datetime

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
sys.path.insert(0, str(PROJECT_ROOT))

from flask import Flask, request, jsonify

from src.diagnose.diagnoser import DataDiagnoser
from src.eda.eda import ExploratoryDataAnalyzer
from src.missing.missing import na_pareto_table
from src.utils.logger import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

_diagnoser = DataDiagnoser(save_plots=False)
_analyzer = ExploratoryDataAnalyzer(save_plots=False)


# Request helpers


def _read_input() -> pd.DataFrame:
    """Build a DataFrame from an uploaded CSV or a JSON ``records`` body."""
    upload = request.files.get("file")
    if upload is not None:
        try:
            return pd.read_csv(upload)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise ValueError(f"Could not parse uploaded CSV: {e}")

    data = request.get_json(silent=True)
    if data is None:
        raise ValueError("Request body must be valid JSON or a CSV file upload")
    records = data.get("records") if isinstance(data, dict) else None
    if not isinstance(records, list) or not records:
        raise ValueError("JSON body must contain a non-empty 'records' list")
    return pd.DataFrame.from_records(records)


def _columns():
    data = request.get_json(silent=True)
    if isinstance(data, dict) and data.get("columns"):
        return data["columns"]
    columns = request.form.get("columns") or request.args.get("columns")
    return columns.split(",") if columns else None


def _param(name, cast, default=None):
    data = request.get_json(silent=True)
    value = data.get(name) if isinstance(data, dict) else None
    if value is None:
        value = request.form.get(name) or request.args.get(name)
    if value is None:
        return default
    if cast is bool and isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return cast(value)


def _to_json(table: pd.DataFrame) -> list:
    """Serialize a table to JSON-safe records (NaN becomes null)."""
    table = table.astype(object).where(pd.notna(table), None)
    records = table.to_dict(orient="records")
    for row in records:
        for key, value in row.items():
            if isinstance(value, np.generic):
                row[key] = value.item()
            elif isinstance(value, pd.Timestamp):
                row[key] = value.isoformat()
    return records


def _respond(build):
    """Run a table builder on the request data and wrap the result."""
    try:
        df = _read_input()
        table = build(df)
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Bad request on {request.path}: {e}")
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error(f"Failed on {request.path}: {e}")
        return jsonify({"error": str(e)}), 500

    return jsonify({
        "rows": int(len(df)),
        "columns": int(df.shape[1]),
        "result": _to_json(table),
    })


# Endpoints


@app.route("/", methods=["GET"])
def index():
    """Root endpoint with API documentation."""
    return jsonify({
        "name": "dataprobe API",
        "version": "1.0",
        "endpoints": {
            "GET /": "This documentation",
            "GET /health": "Health check",
            "POST /diagnose": "Variable overview (types, missing, unique)",
            "POST /diagnose/numeric": "Quartiles, zero/negative counts and outliers",
            "POST /diagnose/category": "Top levels of categorical variables",
            "POST /diagnose/outlier": "Outlier counts and means with/without outliers",
            "POST /describe": "Descriptive statistics and percentiles",
            "POST /missing/pareto": "Missing value pareto table"
        },
        "input": "JSON {\"records\": [...], \"columns\": [...]} or multipart CSV upload as 'file'",
        "example_request": {
            "records": [
                {"age": 34, "income": 52000, "city": "Lyon"},
                {"age": None, "income": 61000, "city": "Paris"},
                {"age": 29, "income": None, "city": "Paris"}
            ]
        }
    })


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "timestamp": datetime.now().isoformat()})


@app.route("/diagnose", methods=["POST"])
def diagnose():
    """Variable overview: type, missing count/percent, unique count/rate."""
    return _respond(lambda df: _diagnoser.diagnose(df, columns=_columns()))


@app.route("/diagnose/numeric", methods=["POST"])
def diagnose_numeric():
    return _respond(lambda df: _diagnoser.diagnose_numeric(df, columns=_columns()))


@app.route("/diagnose/category", methods=["POST"])
def diagnose_category():
    """Top ``top`` levels (ties kept) of each categorical variable."""
    return _respond(lambda df: _diagnoser.diagnose_category(
        df, columns=_columns(), top=_param("top", int)))


@app.route("/diagnose/outlier", methods=["POST"])
def diagnose_outlier():
    return _respond(lambda df: _diagnoser.diagnose_outlier(df, columns=_columns()))


@app.route("/describe", methods=["POST"])
def describe():
    return _respond(lambda df: _analyzer.describe(df, columns=_columns(), by=_param("by", str)))


@app.route("/missing/pareto", methods=["POST"])
def missing_pareto():
    """
    Missing value pareto table.

    Optional parameters: only_na (bool), relative (bool).
    Data without missing values is a bad request.
    """
    return _respond(lambda df: na_pareto_table(
        df,
        only_na=_param("only_na", bool, False),
        relative=_param("relative", bool, False)))


# Main

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="dataprobe REST API")
    parser.add_argument("--port", type=int, default=5000, help="Port to run the API on")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    print(f"Starting API server on http://{args.host}:{args.port}")
    print(f"  POST /diagnose          - Variable overview")
    print(f"  POST /missing/pareto    - Missing value pareto table")
    print(f"  GET  /health            - Health check")

    app.run(host=args.host, port=args.port, debug=args.debug)
