"""Error kinds raised by the layers around the analysis core.

The core itself (signals, segmentation, quality, scoring) never raises for
well-typed input; these cover video decoding, the pose model and the
caller-facing analysis flow.
"""


class SwingSenseError(Exception):
    """Base class for analysis service errors."""


class VideoDecodeError(SwingSenseError):
    """The video could not be opened or decoded."""


class PoseModelError(SwingSenseError):
    """The pose model failed to load or was used outside its lifecycle."""


class NoSwingDetectedError(SwingSenseError):
    """No sampled frame contained a detectable subject."""

    def __init__(self, message: str = "No swing detected"):
        super().__init__(message)


class AnalysisCancelledError(SwingSenseError):
    """The caller cancelled an in-flight analysis."""
