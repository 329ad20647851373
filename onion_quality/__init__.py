# onion_quality/__init__.py
from flask import Flask
from flask_cors import CORS
from .core.config import Config
from .core.logging_config import configure_logging
from .api.analyze_routes import bp
from .ml.classification.model_loader import EngineContext


def create_app(engine=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Allow the dashboard (Vite dev server) to call the API
    CORS(app, resources={r"/api/*": {"origins": "*"}}, allow_headers=["Content-Type"])

    # One engine per app; tests pass their own with a fake classifier
    app.extensions["onion_engine"] = engine or EngineContext.from_config(Config)

    app.register_blueprint(bp, url_prefix="/api")

    return app
