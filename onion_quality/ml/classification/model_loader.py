# onion_quality/ml/classification/model_loader.py
import datetime
import hashlib
import logging
import os
import random
import threading
from enum import Enum
from typing import Callable, List, Optional, Protocol, runtime_checkable
from urllib.parse import urlparse

import requests

from onion_quality.core.config import Config
from onion_quality.core.errors import ModelNotReady, ModelUnavailable
from onion_quality.models.analysis_result import ClassificationResult, ModelStatus
from onion_quality.services.deterioration_service import LabelRoles

logger = logging.getLogger(__name__)


class LoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


@runtime_checkable
class Classifier(Protocol):
    """What the engine needs from an image model. Test doubles implement this too."""

    def classify(self, image) -> List[ClassificationResult]:
        ...

    def get_total_classes(self) -> int:
        ...


def is_remote(location: str) -> bool:
    return urlparse(str(location)).scheme in ("http", "https")


def check_artifact(location: str, timeout: float = 15.0, session=None) -> None:
    """
    Make sure a model artifact is fetchable.
    - http(s): GET must answer 2xx (streamed, body is not downloaded)
    - local path: file must exist (reported as 404 otherwise)
    Raises ModelUnavailable.
    """
    if not is_remote(location):
        if not os.path.isfile(location):
            raise ModelUnavailable(location, status_code=404, reason="file not found")
        return

    http = session or requests
    try:
        resp = http.get(location, timeout=timeout, stream=True)
    except requests.RequestException as e:
        raise ModelUnavailable(location, reason=str(e)) from e

    try:
        if not resp.ok:
            raise ModelUnavailable(location, status_code=resp.status_code)
    finally:
        resp.close()


def materialize_artifact(location: str, cache_dir: str, timeout: float = 15.0) -> str:
    """
    Local path as-is; http(s) URL -> downloaded once into cache_dir.
    Written to a .part file first so an interrupted download is never reused.
    """
    if not is_remote(location):
        return location

    os.makedirs(cache_dir, exist_ok=True)
    name = os.path.basename(urlparse(location).path) or "artifact"
    digest = hashlib.sha1(location.encode("utf-8")).hexdigest()[:12]
    out_path = os.path.join(cache_dir, f"{digest}_{name}")

    if os.path.exists(out_path):
        return out_path

    logger.info("Downloading model artifact %s", location)
    resp = requests.get(location, timeout=timeout)
    resp.raise_for_status()
    tmp_path = out_path + ".part"
    with open(tmp_path, "wb") as f:
        f.write(resp.content)
    os.replace(tmp_path, out_path)
    return out_path


def _default_loader(topology_url: str, metadata_url: str):
    # TensorFlow is imported only when a real model is loaded
    from onion_quality.ml.classification.predict import TeachableMachineClassifier
    return TeachableMachineClassifier.load(topology_url, metadata_url)


class EngineContext:
    """
    Owns the classifier handle and its load state.

    One instance per process is the normal use; tests build their own
    with a fake loader. Analysis functions read `context.classifier`.
    """

    def __init__(
        self,
        topology_url: str,
        metadata_url: str,
        loader: Optional[Callable] = None,
        label_roles: Optional[LabelRoles] = None,
        fetch_timeout: float = 15.0,
        session=None,
        clock: Optional[Callable[[], datetime.date]] = None,
        confidence_rng=None,
    ):
        self.topology_url = topology_url
        self.metadata_url = metadata_url
        self.label_roles = label_roles or LabelRoles()
        self.fetch_timeout = float(fetch_timeout)
        self.clock = clock or datetime.date.today
        self.confidence_rng = confidence_rng

        self._loader = loader or _default_loader
        self._session = session
        self._lock = threading.Lock()
        self._state = LoadState.UNLOADED
        self._classifier = None
        self._class_count = 0

    @classmethod
    def from_config(cls, config=Config, **overrides) -> "EngineContext":
        kwargs = dict(
            topology_url=config.MODEL_TOPOLOGY_URL,
            metadata_url=config.MODEL_METADATA_URL,
            label_roles=LabelRoles.parse(config.LABEL_ROLES),
            fetch_timeout=config.MODEL_FETCH_TIMEOUT,
        )
        if config.CONFIDENCE_JITTER:
            kwargs["confidence_rng"] = random.Random()
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def classifier(self):
        if self._state is not LoadState.READY or self._classifier is None:
            raise ModelNotReady("Model not loaded. Call load_model() first.")
        return self._classifier

    def load_model(self) -> bool:
        """
        True  -> model ready (already loaded, or loaded now)
        False -> another load is in progress, nothing started
        Raises ModelUnavailable when an artifact is missing.
        """
        with self._lock:
            if self._state is LoadState.LOADING:
                logger.info("Model is already loading")
                return False
            if self._state is LoadState.READY:
                return True
            self._state = LoadState.LOADING

        try:
            logger.info("Loading classifier from %s", self.topology_url)
            check_artifact(self.topology_url, timeout=self.fetch_timeout, session=self._session)
            check_artifact(self.metadata_url, timeout=self.fetch_timeout, session=self._session)

            classifier = self._loader(self.topology_url, self.metadata_url)
            class_count = int(classifier.get_total_classes())
        except BaseException:
            # KeyboardInterrupt etc. must not leave the state stuck at LOADING
            logger.exception("Error loading model")
            with self._lock:
                self._state = LoadState.UNLOADED
            raise

        with self._lock:
            self._classifier = classifier
            self._class_count = class_count
            self._state = LoadState.READY

        logger.info("Model loaded successfully, classes: %d", class_count)
        return True

    def ensure_ready(self):
        """Load if needed; raise ModelNotReady while someone else is loading."""
        if not self.load_model():
            raise ModelNotReady("Model is still loading, try again shortly.")
        return self._classifier

    def get_status(self) -> ModelStatus:
        with self._lock:
            return ModelStatus(
                loaded=self._state is LoadState.READY,
                loading=self._state is LoadState.LOADING,
                class_count=self._class_count,
            )
