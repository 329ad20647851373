# onion_quality/core/errors.py


class OnionEngineError(Exception):
    """Base class for every error the engine raises on purpose."""


class ModelUnavailable(OnionEngineError):
    """
    One of the classifier artifacts could not be fetched.
    Raised by EngineContext.load_model(); never retried automatically.
    """

    def __init__(self, artifact: str, status_code: int | None = None, reason: str | None = None):
        self.artifact = artifact
        self.status_code = status_code
        self.reason = reason

        msg = f"Model artifact not accessible: {artifact}"
        if status_code is not None:
            msg += f" (Status: {status_code})"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


class ModelNotReady(OnionEngineError):
    """Analysis requested before the classifier finished loading."""


class ClassificationFailure(OnionEngineError):
    """The classifier returned no predictions."""


class ImageDecodeError(OnionEngineError, ValueError):
    """Input could not be decoded as a raster image."""


class InvalidUpload(OnionEngineError, ValueError):
    """Uploaded file is not an image/* type or exceeds the size limit."""
