"""
Image acquisition sources.

Both variants end the same way: a data URI set as the session's
candidate image (which clears prior results).
"""
import io
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from PIL import Image

from plantdoc.config import MAX_UPLOAD_BYTES
from plantdoc.errors import CameraPermissionError, CameraUnavailableError, CapacityError
from plantdoc.services.analyzer import AnalyzerSession
from plantdoc.utils.data_uri import encode_data_uri, guess_image_mime

logger = logging.getLogger(__name__)

ENVIRONMENT = "environment"
USER = "user"


class ImageSource(ABC):
    def __init__(self, session: AnalyzerSession):
        self.session = session

    def accept(self, data_uri: str) -> str:
        self.session.set_candidate_image(data_uri)
        return data_uri

    @abstractmethod
    async def acquire(self, *args, **kwargs) -> str:
        """Obtain a candidate image and return its data URI"""


# ============================================================================#
# File upload
# ============================================================================#

class FileUpload(ImageSource):
    def __init__(self, session: AnalyzerSession, max_bytes: int = MAX_UPLOAD_BYTES):
        super().__init__(session)
        self.max_bytes = max_bytes

    def check_size(self, size: Optional[int]):
        if size is not None and size > self.max_bytes:
            error = CapacityError(f"File is {size} bytes, limit is {self.max_bytes}")
            self.session.notify_error(error)
            raise error

    async def load(self, file) -> str:
        """Read an uploaded file (Starlette ``UploadFile`` or compatible).

        The declared size is checked before anything is read.
        """
        self.check_size(getattr(file, "size", None))

        data = await file.read()
        # size may be unknown until the body has been read
        self.check_size(len(data))

        mime_type = getattr(file, "content_type", None)
        if not mime_type or not mime_type.startswith("image/"):
            mime_type = guess_image_mime(data, getattr(file, "filename", None))

        logger.info(f"Loaded upload ({len(data)} bytes, {mime_type})")
        return self.accept(encode_data_uri(data, mime_type))

    async def load_bytes(self, data: bytes, filename: Optional[str] = None) -> str:
        self.check_size(len(data))
        return self.accept(encode_data_uri(data, guess_image_mime(data, filename)))

    async def acquire(self, file) -> str:
        return await self.load(file)


# ============================================================================#
# Camera capture
# ============================================================================#

class CameraDevice:
    def __init__(self, index: int, label: str, facing_mode: str):
        self.index = index
        self.label = label
        self.facing_mode = facing_mode

    def __repr__(self):
        return f"CameraDevice({self.index}, {self.label!r}, {self.facing_mode!r})"


class MediaStream(ABC):
    @property
    @abstractmethod
    def resolution(self):
        """(width, height) of the native video frames"""

    @abstractmethod
    def read_frame(self) -> Image.Image:
        """Current video frame as an RGB image"""

    @abstractmethod
    def stop(self):
        """Stop all tracks and release the device"""


class MediaDevices(ABC):
    @abstractmethod
    def enumerate(self) -> List[CameraDevice]:
        pass

    @abstractmethod
    def open(self, facing_mode: str, exact: bool = True) -> MediaStream:
        """Open a stream; raises ``CameraUnavailableError`` if none matches"""


class CameraCapture(ImageSource):
    """Live camera session with rear/front switching and still capture"""

    def __init__(self, session: AnalyzerSession, devices: MediaDevices, facing_mode: str = ENVIRONMENT):
        super().__init__(session)
        self.devices = devices
        self.facing_mode = facing_mode
        self.stream: Optional[MediaStream] = None
        self.permission_denied = False
        self.captured = False

    @property
    def has_multiple_cameras(self) -> bool:
        return len(self.devices.enumerate()) > 1

    def _open(self, facing_mode: str) -> MediaStream:
        fallback = USER if facing_mode == ENVIRONMENT else ENVIRONMENT
        try:
            stream = self.devices.open(facing_mode, exact=True)
            self.facing_mode = facing_mode
            return stream
        except CameraUnavailableError:
            logger.warning(f"No '{facing_mode}' camera, falling back to '{fallback}'")

        try:
            stream = self.devices.open(fallback, exact=False)
        except CameraUnavailableError as e:
            self.permission_denied = True
            error = CameraPermissionError(str(e))
            self.session.notify_error(error)
            logger.error("No camera available")
            raise error from e

        self.facing_mode = fallback
        return stream

    def start(self) -> "CameraCapture":
        self.stop()
        self.stream = self._open(self.facing_mode)
        self.permission_denied = False
        self.captured = False
        logger.info(f"Camera started ({self.facing_mode})")
        return self

    def switch_camera(self):
        target = USER if self.facing_mode == ENVIRONMENT else ENVIRONMENT
        self.stop()
        self.stream = self._open(target)
        self.captured = False

    def stop(self):
        if self.stream is not None:
            self.stream.stop()
            self.stream = None

    def capture(self) -> str:
        if self.stream is None:
            raise CameraPermissionError("Camera is not running")

        frame = self.stream.read_frame()
        width, height = self.stream.resolution
        if frame.size != (width, height):
            frame = frame.resize((width, height))

        buffer = io.BytesIO()
        frame.convert("RGB").save(buffer, format="JPEG")
        self.captured = True
        logger.info(f"Captured {width}x{height} frame")
        return self.accept(encode_data_uri(buffer.getvalue(), "image/jpeg"))

    def retake(self):
        self.session.clear_candidate_image()
        self.captured = False

    async def acquire(self) -> str:
        if self.stream is None:
            self.start()
        return self.capture()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
