from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import cv2

from ..core.errors import CameraUnavailable

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """Something that yields image frames until it is released."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the device; raise ``CameraUnavailable`` if that fails."""

    @abstractmethod
    def read(self) -> Any | None:
        """Return the next frame, or ``None`` if none is ready."""

    @abstractmethod
    def release(self) -> None:
        ...


class OpenCVCamera(FrameSource):
    def __init__(self, index: int = 0) -> None:
        self.index = index
        self._capture: cv2.VideoCapture | None = None

    def open(self) -> None:
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailable()
        self._capture = capture
        logger.info("camera.opened", extra={"extra_data": {"index": self.index}})

    def read(self) -> Any | None:
        if self._capture is None:
            return None
        ok, frame = self._capture.read()
        return frame if ok else None

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("camera.released", extra={"extra_data": {"index": self.index}})
