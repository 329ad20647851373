# tests/conftest.py
import datetime
import io

import pytest
from PIL import Image

from onion_quality.ml.classification.model_loader import EngineContext
from onion_quality.models.analysis_result import ClassificationResult


class FakeClassifier:
    """
    Classifier double. `outputs` maps image colour (RGB tuple of pixel 0,0)
    to a list of (label, prob); anything else gets `default`.
    Raises for pure red images so batch failure handling can be exercised.
    """

    def __init__(self, default=None, outputs=None, fail_color=(255, 0, 0)):
        self.default = default if default is not None else [("Healthy Onion", 0.92), ("Spoiled Onion", 0.08)]
        self.outputs = outputs or {}
        self.fail_color = fail_color
        self.calls = []

    def get_total_classes(self) -> int:
        return len(self.default)

    def classify(self, image):
        self.calls.append(image.size)
        px = image.getpixel((0, 0))
        if px == self.fail_color:
            raise RuntimeError("classifier crashed")
        pairs = self.outputs.get(px, self.default)
        return [ClassificationResult(label=l, probability=p) for l, p in pairs]


def png_bytes(color=(200, 180, 120), size=(320, 240)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def artifacts(tmp_path):
    model = tmp_path / "keras_model.h5"
    meta = tmp_path / "metadata.json"
    model.write_bytes(b"fake")
    meta.write_text('{"labels": ["Healthy Onion", "Spoiled Onion"]}')
    return str(model), str(meta)


@pytest.fixture()
def fake_classifier():
    return FakeClassifier()


@pytest.fixture()
def engine(artifacts, fake_classifier):
    """Loaded EngineContext, clock fixed in September (harvest season)."""
    topo, meta = artifacts
    ctx = EngineContext(
        topo, meta,
        loader=lambda t, m: fake_classifier,
        clock=lambda: datetime.date(2024, 9, 15),
    )
    assert ctx.load_model() is True
    return ctx
