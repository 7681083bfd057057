import json
import os
import sys
from pathlib import Path

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("STORAGE_BACKEND", "memory")

from extinguisher_tracker import cli, create_app
from extinguisher_tracker.cli import main
from extinguisher_tracker.core.errors import CameraUnavailable
from extinguisher_tracker.core.settings import AppSettings
from extinguisher_tracker.services import qr
from extinguisher_tracker.services.camera import FrameSource
from extinguisher_tracker.stores import MemoryStorage


@pytest.fixture()
def session(tmp_path):
    app = create_app(AppSettings(STORAGE_BACKEND="memory", DATA_DIR=tmp_path), storage=MemoryStorage())
    with TestClient(app) as client:
        yield client


def run(session, *argv):
    return main(["--base-url", "http://testserver", *argv], session=session)


def test_register_log_and_resolve(session, capsys):
    assert run(session, "resolve", "FE-001") == 0
    assert json.loads(capsys.readouterr().out)["outcome"] == "not_found"

    assert run(session, "register", "FE-001", "--no", "EX-10", "--location", "Lobby", "--tested", "2024-01-01") == 0
    assert json.loads(capsys.readouterr().out)["barcode"] == "FE-001"

    assert run(session, "log", "FE-001", "--date", "2024-06-01", "--remarks", "refill", "--user", "A") == 0
    assert json.loads(capsys.readouterr().out)["remarks"] == "refill"

    assert run(session, "resolve", "FE-001") == 0
    resolved = json.loads(capsys.readouterr().out)
    assert resolved["outcome"] == "found"
    assert len(resolved["extinguisher"]["maintenanceLogs"]) == 1


def test_duplicate_registration_exits_with_application_error(session, capsys):
    args = ("register", "FE-001", "--no", "EX-10", "--location", "Lobby", "--tested", "2024-01-01")
    assert run(session, *args) == 0
    capsys.readouterr()

    assert run(session, *args) == 1
    assert json.loads(capsys.readouterr().err) == {"error": "Barcode already exists"}


def test_log_for_unregistered_code_is_an_application_error(session, capsys):
    assert run(session, "log", "FE-404", "--date", "2024-06-01", "--remarks", "x", "--user", "A") == 1
    assert "not registered" in capsys.readouterr().err


def test_batch_prints_one_code_per_line(session, capsys):
    assert run(session, "batch", "FE-", "3") == 0
    assert capsys.readouterr().out.splitlines() == ["FE-001", "FE-002", "FE-003"]

    assert run(session, "batch", "FE-", "0") == 1


def test_list(session, capsys):
    run(session, "register", "FE-001", "--no", "EX-10", "--location", "Lobby", "--tested", "2024-01-01")
    capsys.readouterr()
    assert run(session, "list") == 0
    assert [row["barcode"] for row in json.loads(capsys.readouterr().out)] == ["FE-001"]


class StillCamera(FrameSource):
    """Serves one rendered QR label forever."""

    instances = []

    def __init__(self, index=0):
        self.index = index
        self.frame = cv2.imdecode(np.frombuffer(qr.render_png("FE-001"), np.uint8), cv2.IMREAD_COLOR)
        self.released = 0
        StillCamera.instances.append(self)

    def open(self):
        pass

    def read(self):
        return self.frame

    def release(self):
        self.released += 1


class MissingCamera(StillCamera):
    def open(self):
        raise CameraUnavailable()


def test_scan_resolves_code_seen_by_camera(session, capsys, monkeypatch):
    monkeypatch.setattr(cli, "OpenCVCamera", StillCamera)
    StillCamera.instances.clear()
    run(session, "register", "FE-001", "--no", "EX-10", "--location", "Lobby", "--tested", "2024-01-01")
    capsys.readouterr()

    assert run(session, "scan", "--camera", "2", "--wait", "10") == 0
    resolved = json.loads(capsys.readouterr().out)
    assert resolved["outcome"] == "found"
    assert resolved["barcode"] == "FE-001"
    camera = StillCamera.instances[-1]
    assert camera.index == 2
    assert camera.released == 1


def test_scan_without_camera_is_an_application_error(session, capsys, monkeypatch):
    monkeypatch.setattr(cli, "OpenCVCamera", MissingCamera)
    assert run(session, "scan") == 1
    assert json.loads(capsys.readouterr().err) == {"error": "No camera found on this device"}
