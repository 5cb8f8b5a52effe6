import json
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from schemas import RemoteReading

logger = logging.getLogger(__name__)


class RemoteSyncError(RuntimeError):
    pass


@dataclass
class CloudClient:
    base_url: str
    api_token: str | None = None
    timeout: int = 10

    def list_params(self) -> List[RemoteReading]:
        payload = self._request("GET", "params")
        if not isinstance(payload, list):
            raise RemoteSyncError("Remote returned an unexpected payload for params")
        readings: List[RemoteReading] = []
        seen = set()
        for idx, row in enumerate(payload):
            try:
                reading = RemoteReading.model_validate(row)
            except ValidationError as exc:
                raise RemoteSyncError(f"Remote reading #{idx} is malformed: {exc.errors()[0]['msg']}") from exc
            if reading.id in seen:
                raise RemoteSyncError(f"Remote reading #{idx} repeats id {reading.id}")
            seen.add(reading.id)
            readings.append(reading)
        return readings

    def upsert_params(self, rows: Sequence[Dict[str, Any]]) -> Dict[str, int]:
        result = self._request("POST", "params/batch", list(rows))
        if not isinstance(result, dict):
            raise RemoteSyncError("Remote returned an unexpected payload for params/batch")
        try:
            return {"inserted": int(result.get("inserted", 0)), "updated": int(result.get("updated", 0))}
        except (TypeError, ValueError) as exc:
            raise RemoteSyncError("Remote returned non-numeric batch counts") from exc

    def _request(self, method: str, path: str, body: Any = None) -> Any:
        if not self.base_url:
            raise RemoteSyncError("Remote URL is required")
        url = _api_url(self.base_url, path)
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                content = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            detail = _error_detail(exc)
            logger.warning("Remote %s %s failed with %s", method, url, exc.code)
            raise RemoteSyncError(f"Remote returned {exc.code}: {detail}") from exc
        except urllib.error.URLError as exc:
            logger.warning("Remote %s %s unreachable: %s", method, url, exc.reason)
            raise RemoteSyncError(f"Unable to reach remote logbook at {self.base_url}") from exc
        except OSError as exc:
            # timeouts and resets while reading the body
            logger.warning("Remote %s %s interrupted: %s", method, url, exc)
            raise RemoteSyncError(f"Connection to remote logbook failed: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise RemoteSyncError("Remote returned a body that is not UTF-8") from exc
        if not content:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise RemoteSyncError("Remote returned invalid JSON") from exc


def _api_url(base_url: str, path: str) -> str:
    trimmed = base_url.strip().rstrip("/")
    if "://" not in trimmed:
        trimmed = f"http://{trimmed}"
    split = urllib.parse.urlsplit(trimmed)
    prefix = split.path if split.path.endswith("/api") else f"{split.path}/api"
    return urllib.parse.urlunsplit((split.scheme, split.netloc, f"{prefix}/{path}", "", ""))


def _error_detail(exc: urllib.error.HTTPError) -> str:
    try:
        raw = exc.read().decode("utf-8")
    except Exception:
        return exc.reason or ""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(data, dict):
        return str(data.get("detail") or data.get("error") or raw)
    return raw


def client_from_env() -> Optional[CloudClient]:
    url = os.environ.get("REEF_REMOTE_URL", "").strip()
    if not url:
        return None
    try:
        timeout = int(os.environ.get("REEF_REMOTE_TIMEOUT", "10"))
    except ValueError:
        timeout = 10
    return CloudClient(base_url=url, api_token=os.environ.get("REEF_REMOTE_TOKEN") or None, timeout=timeout)
