# onion_quality/core/config.py
import os
from dotenv import load_dotenv

# Load .env once at startup
load_dotenv()

def _env_bool(name: str, default: str = "0") -> bool:
    v = str(os.environ.get(name, default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on")

class Config:
    # =========================
    # APP
    # =========================
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # BASE_DIR = project root (folder containing onion_quality/)
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))

    # =========================
    # CLASSIFIER ARTIFACTS
    # =========================
    # Teachable Machine export: keras_model.h5 + metadata.json.
    # Either http(s) URLs or local paths.
    MODEL_BASE_URL = os.environ.get(
        "MODEL_BASE_URL",
        os.path.join(BASE_DIR, "models", "onion"),
    ).rstrip("/")

    MODEL_TOPOLOGY_URL = os.environ.get(
        "MODEL_TOPOLOGY_URL",
        MODEL_BASE_URL + "/keras_model.h5",
    )

    MODEL_METADATA_URL = os.environ.get(
        "MODEL_METADATA_URL",
        MODEL_BASE_URL + "/metadata.json",
    )

    # Remote artifacts are downloaded here before TensorFlow loads them
    MODEL_CACHE_DIR = os.environ.get(
        "MODEL_CACHE_DIR",
        os.path.join(BASE_DIR, "tmp_models"),
    )

    MODEL_FETCH_TIMEOUT = float(os.environ.get("MODEL_FETCH_TIMEOUT", 15))

    # Fixed by the exported model; not an env knob.
    IMG_SIZE = 224

    # =========================
    # ANALYSIS
    # =========================
    # Explicit label -> role mapping, format: "Rotten Onion:spoiled,Good Onion:healthy".
    # Empty = substring match on "spoiled"/"healthy".
    LABEL_ROLES = os.environ.get("LABEL_ROLES", "")

    # Cosmetic random decimals on displayed confidence (integer part unchanged)
    CONFIDENCE_JITTER = _env_bool("CONFIDENCE_JITTER", "0")

    MAX_BATCH_SIZE = int(os.environ.get("MAX_BATCH_SIZE", 50))

    # Per-file upload limit, same 5 MB cap the dashboard enforces
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
