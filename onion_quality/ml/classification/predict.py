# onion_quality/ml/classification/predict.py
import json
import logging
from typing import List

import tensorflow as tf

from onion_quality.core.config import Config
from onion_quality.ml.classification.model_loader import materialize_artifact
from onion_quality.models.analysis_result import ClassificationResult
from onion_quality.utils.image_io import resize_for_classifier, to_model_batch

logger = logging.getLogger(__name__)


def _load_labels(metadata_path: str) -> List[str]:
    """
    Teachable Machine metadata.json:
      {"labels": ["Healthy Onion", "Spoiled Onion"], "imageSize": 224, ...}
    """
    with open(metadata_path, "r", encoding="utf-8") as f:
        meta = json.load(f)
    labels = meta.get("labels") or []
    if not labels:
        raise ValueError(f"metadata has no labels: {metadata_path}")
    return [str(x) for x in labels]


class TeachableMachineClassifier:
    """Keras model exported from Teachable Machine + its class labels."""

    def __init__(self, model, labels: List[str]):
        self._model = model
        self._labels = list(labels)

    @classmethod
    def load(cls, topology_url: str, metadata_url: str,
             cache_dir: str = None, timeout: float = None) -> "TeachableMachineClassifier":
        cache_dir = cache_dir or Config.MODEL_CACHE_DIR
        timeout = Config.MODEL_FETCH_TIMEOUT if timeout is None else timeout

        model_path = materialize_artifact(topology_url, cache_dir, timeout)
        metadata_path = materialize_artifact(metadata_url, cache_dir, timeout)

        # inference only, no optimizer state needed
        model = tf.keras.models.load_model(model_path, compile=False)
        labels = _load_labels(metadata_path)

        n_out = int(model.output_shape[-1])
        if n_out != len(labels):
            raise ValueError(
                f"Model outputs {n_out} classes but metadata lists {len(labels)} labels"
            )
        return cls(model, labels)

    def get_total_classes(self) -> int:
        return len(self._labels)

    def classify(self, image) -> List[ClassificationResult]:
        batch = to_model_batch(resize_for_classifier(image))
        preds = self._model.predict(batch, verbose=0)
        probs = preds[0]  # shape: (num_classes,)

        return [
            ClassificationResult(label=self._labels[i], probability=float(p))
            for i, p in enumerate(probs)
        ]
