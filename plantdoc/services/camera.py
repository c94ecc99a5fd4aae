"""
OpenCV-backed camera devices for CameraCapture
"""
import logging
from typing import Dict, List

import cv2
from PIL import Image

from plantdoc.config import CAMERA_ENVIRONMENT_INDEX, CAMERA_USER_INDEX
from plantdoc.errors import CameraUnavailableError
from plantdoc.services.acquisition import (
    ENVIRONMENT,
    USER,
    CameraDevice,
    MediaDevices,
    MediaStream,
)

logger = logging.getLogger(__name__)

WARMUP_FRAMES = 5  # auto-exposure / auto-focus


class OpenCVStream(MediaStream):
    def __init__(self, cap, facing_mode: str):
        self.cap = cap
        self.facing_mode = facing_mode

    @property
    def resolution(self):
        return (
            int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def read_frame(self) -> Image.Image:
        ret, frame = self.cap.read()
        if not ret or frame is None:
            raise CameraUnavailableError("Camera opened but read() returned no frame")
        return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))

    def stop(self):
        self.cap.release()


class OpenCVMediaDevices(MediaDevices):
    def __init__(self, indices: Dict[str, int] = None, video_capture=cv2.VideoCapture):
        self.indices = indices or {
            ENVIRONMENT: CAMERA_ENVIRONMENT_INDEX,
            USER: CAMERA_USER_INDEX,
        }
        self.video_capture = video_capture

    def _try_open(self, index: int):
        cap = self.video_capture(index)
        if cap.isOpened():
            return cap
        cap.release()
        return None

    def enumerate(self) -> List[CameraDevice]:
        devices = []
        for facing_mode, index in self.indices.items():
            cap = self._try_open(index)
            if cap is not None:
                devices.append(CameraDevice(index, f"Camera {index}", facing_mode))
                cap.release()
        return devices

    def open(self, facing_mode: str, exact: bool = True) -> MediaStream:
        candidates = [facing_mode]
        if not exact:
            candidates += [mode for mode in self.indices if mode != facing_mode]

        for mode in candidates:
            index = self.indices.get(mode)
            if index is None:
                continue
            cap = self._try_open(index)
            if cap is None:
                logger.debug(f"Camera index {index} ({mode}) not available")
                continue
            for _ in range(WARMUP_FRAMES):
                cap.read()
            logger.info(f"Opened camera index {index} ({mode})")
            return OpenCVStream(cap, mode)

        raise CameraUnavailableError(f"No camera available for facing mode '{facing_mode}'")
