"""QR decoding from still images and from a live camera feed."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import cv2
import numpy as np

from ..core.barcodes import normalize_barcode
from ..core.errors import ValidationError
from .camera import FrameSource

logger = logging.getLogger(__name__)

Decoder = Callable[[Any], "str | None"]


def decode_frame(frame: Any) -> str | None:
    data, _points, _straight = cv2.QRCodeDetector().detectAndDecode(frame)
    return data or None


def decode_image(data: bytes) -> str | None:
    """Decode the first QR code in an uploaded image; ``None`` if there is none."""

    if not data:
        raise ValidationError("Please choose an image to scan")
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise ValidationError("Could not read the uploaded image")
    return normalize_barcode(decode_frame(image))


class ScanSession:
    """One open-scan-close cycle of the camera scanner.

    ``start`` acquires the device and launches a background task that decodes
    frames until one yields a code. ``close`` cancels that task, waits for any
    frame read still running on the worker thread, then releases the device.
    It runs exactly once, on explicit close or on leaving the ``async with``
    block, whether or not a code was found.
    """

    def __init__(self, source: FrameSource, decoder: Decoder = decode_frame, interval: float = 0.1) -> None:
        self.source = source
        self.decoder = decoder
        self.interval = interval
        self._executor: ThreadPoolExecutor | None = None
        self._task: asyncio.Task | None = None
        self._opened = False
        self._closed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task is not None:
            return
        if self._closed:
            raise RuntimeError("scan session already closed")
        loop = asyncio.get_running_loop()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="qr-scan")
        try:
            await loop.run_in_executor(self._executor, self.source.open)
        except BaseException:
            self._executor.shutdown(wait=False)
            self._executor = None
            self._closed = True
            raise
        self._opened = True
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> str:
        loop = asyncio.get_running_loop()
        while True:
            frame = await loop.run_in_executor(self._executor, self.source.read)
            if frame is not None:
                code = normalize_barcode(self.decoder(frame))
                if code:
                    logger.info("scanner.decoded", extra={"extra_data": {"barcode": code}})
                    return code
            await asyncio.sleep(self.interval)

    async def result(self, timeout: float | None = None) -> str:
        """Wait for the first decoded code."""

        if self._task is None:
            raise RuntimeError("scan session not started")
        return await asyncio.wait_for(asyncio.shield(self._task), timeout)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        task, self._task = self._task, None
        executor, self._executor = self._executor, None
        try:
            if task is not None:
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
            if executor is not None:
                await asyncio.to_thread(executor.shutdown, True)
        finally:
            if self._opened:
                self._opened = False
                self.source.release()

    async def __aenter__(self) -> "ScanSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def scan_once(source: FrameSource, timeout: float | None = None, interval: float = 0.1) -> str:
    """Open the source, wait for one code, and always release the source."""

    async with ScanSession(source, interval=interval) as session:
        return await session.result(timeout)
