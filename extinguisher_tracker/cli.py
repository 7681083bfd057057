"""
extinguisher-tracker command line client.

Purpose:
  Drive a running tracker over its JSON API from a terminal or a handheld
  scanner that types into one.

Commands:
  resolve BARCODE                      found -> record with history, else not_found
  register BARCODE --no N --location L --tested YYYY-MM-DD
  log BARCODE --date YYYY-MM-DD --remarks TEXT --user NAME
  batch PREFIX COUNT                   print generated codes, one per line
  list                                 every registered extinguisher
  scan [--camera N] [--wait S]         read a QR code from a local camera, then resolve it

Base URL precedence:
  1) --base-url
  2) env TRACKER_BASE_URL
  3) http://localhost:8090

Exit codes:
  0 = success
  1 = handled application error (validation, duplicate, not found)
  2 = network/HTTP error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

import requests

from .core.errors import TrackerError
from .services.camera import OpenCVCamera
from .services.scanner import scan_once

DEFAULT_BASE_URL = "http://localhost:8090"


class ApiError(Exception):
    """The server answered with a documented error body."""

    def __init__(self, status_code: int, error: str, details: Any = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


class TrackerClient:
    def __init__(self, base_url: str, session: Any = None, timeout: float = 15.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/{path.lstrip('/')}"

    @staticmethod
    def _check(response: Any, *expected: int) -> Any:
        if response.status_code in expected:
            return response.json()
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text}
        if response.status_code >= 500 or not isinstance(body, dict):
            raise requests.HTTPError(f"Request failed ({response.status_code}): {body}", response=response)
        raise ApiError(response.status_code, str(body.get("error", "Error")), body.get("details"))

    def resolve(self, barcode: str) -> Dict[str, Any]:
        r = self.session.get(self._url("resolve"), params={"barcode": barcode}, timeout=self.timeout)
        return self._check(r, 200)

    def list_extinguishers(self) -> List[Dict[str, Any]]:
        r = self.session.get(self._url("extinguishers"), timeout=self.timeout)
        return self._check(r, 200)

    def register(self, barcode: str, extinguisher_no: str, location: str, date_of_testing: str) -> Dict[str, Any]:
        payload = {
            "barcode": barcode,
            "extinguisherNo": extinguisher_no,
            "location": location,
            "dateOfTesting": date_of_testing,
        }
        r = self.session.post(self._url("extinguishers"), json=payload, timeout=self.timeout)
        return self._check(r, 201)

    def add_log(self, barcode: str, date_work_done: str, remarks: str, user: str) -> Dict[str, Any]:
        resolution = self.resolve(barcode)
        if resolution.get("outcome") != "found":
            raise ApiError(404, f"Barcode {resolution.get('barcode', barcode)} is not registered")
        payload = {
            "extinguisherId": resolution["extinguisher"]["id"],
            "dateWorkDone": date_work_done,
            "remarks": remarks,
            "user": user,
        }
        r = self.session.post(self._url("maintenance-logs"), json=payload, timeout=self.timeout)
        return self._check(r, 201)

    def batch(self, prefix: str, count: int) -> List[str]:
        r = self.session.post(self._url("barcodes/batch"), json={"prefix": prefix, "count": count}, timeout=self.timeout)
        return self._check(r, 200)["barcodes"]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="extinguisher-tracker", description="Fire extinguisher tracker API client.")
    p.add_argument("--base-url", default=os.getenv("TRACKER_BASE_URL", DEFAULT_BASE_URL),
                   help=f"Tracker base URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--timeout", type=float, default=15.0, help="HTTP timeout in seconds (default: 15)")
    sub = p.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Look up a scanned barcode.")
    resolve.add_argument("barcode")

    register = sub.add_parser("register", help="Register a new extinguisher.")
    register.add_argument("barcode")
    register.add_argument("--no", dest="extinguisher_no", required=True, help="Fire extinguisher number.")
    register.add_argument("--location", required=True)
    register.add_argument("--tested", dest="date_of_testing", required=True, help="Date of testing (YYYY-MM-DD).")

    log = sub.add_parser("log", help="Append a maintenance log entry.")
    log.add_argument("barcode")
    log.add_argument("--date", dest="date_work_done", required=True, help="Date work done (YYYY-MM-DD).")
    log.add_argument("--remarks", required=True)
    log.add_argument("--user", required=True, help="Technician name.")

    batch = sub.add_parser("batch", help="Generate sequential barcodes.")
    batch.add_argument("prefix")
    batch.add_argument("count", type=int)

    sub.add_parser("list", help="List registered extinguishers.")

    scan = sub.add_parser("scan", help="Scan a QR code with a local camera and look it up.")
    scan.add_argument("--camera", type=int, default=int(os.getenv("TRACKER_CAMERA", "0")),
                      help="Camera device index (default: 0)")
    scan.add_argument("--wait", type=float, default=30.0,
                      help="Seconds to wait for a readable code (default: 30)")
    return p.parse_args(argv)


def run(args: argparse.Namespace, client: TrackerClient) -> Any:
    if args.command == "resolve":
        return client.resolve(args.barcode)
    if args.command == "register":
        return client.register(args.barcode, args.extinguisher_no, args.location, args.date_of_testing)
    if args.command == "log":
        return client.add_log(args.barcode, args.date_work_done, args.remarks, args.user)
    if args.command == "batch":
        return client.batch(args.prefix, args.count)
    if args.command == "scan":
        barcode = asyncio.run(scan_once(OpenCVCamera(args.camera), timeout=args.wait))
        return client.resolve(barcode)
    return client.list_extinguishers()


def main(argv: Optional[Sequence[str]] = None, session: Any = None) -> int:
    args = parse_args(argv)
    client = TrackerClient(args.base_url, session=session, timeout=args.timeout)
    try:
        result = run(args, client)
    except ApiError as e:
        body = {"error": e.error}
        if e.details is not None:
            body["details"] = e.details
        print(json.dumps(body, indent=2), file=sys.stderr)
        return 1
    except TrackerError as e:
        print(json.dumps({"error": e.message}, indent=2), file=sys.stderr)
        return 1
    except asyncio.TimeoutError:
        print(json.dumps({"error": "No QR code detected"}, indent=2), file=sys.stderr)
        return 1
    except requests.exceptions.RequestException as e:
        print(f"NETWORK_ERROR: {e}", file=sys.stderr)
        return 2

    if args.command == "batch":
        print("\n".join(result))
    else:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
