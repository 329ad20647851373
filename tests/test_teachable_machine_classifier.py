# tests/test_teachable_machine_classifier.py
# Purpose: Keras adapter with a tiny in-memory model (skipped without TensorFlow).

import json

import numpy as np
import pytest
from PIL import Image

tf = pytest.importorskip("tensorflow")

from onion_quality.ml.classification.predict import TeachableMachineClassifier, _load_labels  # noqa: E402


class DummyModel:
    output_shape = (None, 2)

    def __init__(self, probs):
        self._probs = np.asarray([probs], dtype=np.float32)
        self.seen = None

    def predict(self, batch, verbose=0):
        self.seen = batch
        return self._probs


def test_classify_maps_labels_to_probs():
    model = DummyModel([0.25, 0.75])
    clf = TeachableMachineClassifier(model, ["Healthy Onion", "Spoiled Onion"])

    out = clf.classify(Image.new("RGB", (500, 300), (20, 40, 60)))

    assert clf.get_total_classes() == 2
    assert model.seen.shape == (1, 224, 224, 3)
    assert [r.label for r in out] == ["Healthy Onion", "Spoiled Onion"]
    assert out[1].probability == pytest.approx(0.75)


def test_load_labels(tmp_path):
    p = tmp_path / "metadata.json"
    p.write_text(json.dumps({"labels": ["healthy", "spoiled"], "imageSize": 224}))
    assert _load_labels(str(p)) == ["healthy", "spoiled"]

    p.write_text(json.dumps({"imageSize": 224}))
    with pytest.raises(ValueError):
        _load_labels(str(p))


def test_load_real_keras_file(tmp_path):
    inp = tf.keras.Input(shape=(224, 224, 3))
    x = tf.keras.layers.GlobalAveragePooling2D()(inp)
    out = tf.keras.layers.Dense(2, activation="softmax")(x)
    model = tf.keras.Model(inp, out)

    model_path = tmp_path / "keras_model.h5"
    model.save(str(model_path))
    meta_path = tmp_path / "metadata.json"
    meta_path.write_text(json.dumps({"labels": ["healthy", "spoiled"]}))

    clf = TeachableMachineClassifier.load(str(model_path), str(meta_path), cache_dir=str(tmp_path))
    res = clf.classify(Image.new("RGB", (224, 224), (128, 128, 128)))
    assert len(res) == 2
    assert sum(r.probability for r in res) == pytest.approx(1.0, abs=1e-4)
