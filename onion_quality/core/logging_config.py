# onion_quality/core/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO"):
    """
    Setup root logger once. Called from create_app();
    library callers can skip this and configure logging themselves.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=lvl, format=LOG_FORMAT)
    else:
        root.setLevel(lvl)
    logging.getLogger("onion_quality").setLevel(lvl)
