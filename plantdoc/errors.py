"""
Error types surfaced by flows, acquisition sources and the analyzer
"""


class PlantDocError(Exception):
    """Base error. ``title``/``notice`` are the short texts shown to the user."""

    title = "Something went wrong"
    notice = "There was a problem processing your request. Please try again."

    def __init__(self, message: str = "", *, title: str = None, notice: str = None):
        super().__init__(message or self.notice)
        if title is not None:
            self.title = title
        if notice is not None:
            self.notice = notice


class InputValidationError(PlantDocError):
    """Malformed input to a flow (missing field, wrong type, bad data URI)"""

    title = "Invalid input"
    notice = "The request could not be validated."


class InferenceError(PlantDocError):
    """Model call failed, timed out, or returned output that fails validation"""

    title = "Analysis Failed"
    notice = "There was a problem analyzing your image. Please try again."


class CapacityError(PlantDocError):
    """Uploaded file exceeds the size limit"""

    title = "Image too large"
    notice = "Please upload an image smaller than 4MB."


class CameraUnavailableError(PlantDocError):
    """A camera with the requested facing mode could not be opened"""

    title = "Camera unavailable"
    notice = "The requested camera could not be opened."


class CameraPermissionError(PlantDocError):
    """No camera could be opened at all"""

    title = "Camera Access Denied"
    notice = "Please enable camera permissions in your browser settings to use this app."


class AnalysisInProgressError(PlantDocError):
    title = "Analysis in progress"
    notice = "Please wait for the current analysis to finish."
