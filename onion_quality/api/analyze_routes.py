# onion_quality/api/analyze_routes.py
import logging
import os

from flask import Blueprint, current_app, jsonify, request

from onion_quality.core.errors import (
    ClassificationFailure, ImageDecodeError, InvalidUpload, ModelNotReady, ModelUnavailable
)
from onion_quality.services.analysis_service import (
    analyze_batch, analyze_image, failed_analysis, summarize_batch
)

logger = logging.getLogger(__name__)

bp = Blueprint("analyze", __name__)


def _engine():
    return current_app.extensions["onion_engine"]


@bp.route("/model/load", methods=["POST"])
def load_model():
    engine = _engine()
    try:
        started = engine.load_model()
    except ModelUnavailable as e:
        return jsonify({"error": "Model files not accessible", "detail": str(e)}), 503

    status = engine.get_status().to_dict()
    if not started:
        # another request is loading the model right now
        return jsonify(status), 202
    return jsonify(status), 200


@bp.route("/model/status", methods=["GET"])
def model_status():
    return jsonify(_engine().get_status().to_dict()), 200


def _file_size(file) -> int:
    stream = file.stream
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def validate_upload(file):
    """
    Same checks as the dashboard upload: image/* only, max MAX_UPLOAD_BYTES.
    Raises InvalidUpload.
    """
    mimetype = (file.mimetype or "").lower()
    if not mimetype.startswith("image/"):
        raise InvalidUpload(f"{file.filename}: unsupported file type {mimetype or 'unknown'}")

    limit = int(current_app.config.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
    size = _file_size(file)
    if size > limit:
        raise InvalidUpload(f"{file.filename}: file too large ({size} bytes, max {limit})")


@bp.route("/analyze", methods=["POST"])
def analyze():
    """
    Single image analysis:
    - multipart/form-data file "image"
    - returns OnionAnalysis JSON (camelCase keys)
    """
    if "image" not in request.files:
        return jsonify({"error": "No image file provided"}), 400

    file = request.files["image"]
    if file.filename == "":
        return jsonify({"error": "Empty filename"}), 400

    try:
        validate_upload(file)
    except InvalidUpload as e:
        return jsonify({"error": "Invalid upload", "detail": str(e)}), 400

    engine = _engine()
    try:
        engine.ensure_ready()
        result = analyze_image(engine, file)
    except ImageDecodeError as e:
        return jsonify({"error": "Invalid image", "detail": str(e)}), 400
    except (ModelUnavailable, ModelNotReady) as e:
        return jsonify({"error": "Model not available", "detail": str(e)}), 503
    except ClassificationFailure as e:
        return jsonify({"error": "Failed to classify image", "detail": str(e)}), 422
    except Exception as e:
        logger.exception("Unexpected error analyzing %s", file.filename)
        return jsonify({"error": "Failed to analyze image", "detail": str(e)}), 500

    return jsonify(result.to_dict()), 200


@bp.route("/analyze/batch", methods=["POST"])
def analyze_many():
    """
    Batch analysis, multipart field "images" (repeatable).
    Bad images and rejected uploads come back as grade-F placeholders; order is kept.
    """
    files = [f for f in request.files.getlist("images") if f and f.filename]
    if not files:
        return jsonify({"error": "No image files provided"}), 400

    max_n = int(current_app.config.get("MAX_BATCH_SIZE", 50))
    if len(files) > max_n:
        return jsonify({"error": f"Too many images (max {max_n})"}), 400

    engine = _engine()
    try:
        engine.ensure_ready()
    except (ModelUnavailable, ModelNotReady) as e:
        return jsonify({"error": "Model not available", "detail": str(e)}), 503

    rejected = {}
    for i, f in enumerate(files):
        try:
            validate_upload(f)
        except InvalidUpload as e:
            logger.warning("Rejected batch item #%d: %s", i, e)
            rejected[i] = e

    analyzed = iter(analyze_batch(engine, [f for i, f in enumerate(files) if i not in rejected]))
    results = [
        failed_analysis(rejected[i]) if i in rejected else next(analyzed)
        for i in range(len(files))
    ]

    return jsonify({
        "items": [r.to_dict() for r in results],
        "summary": summarize_batch(results),
    }), 200
