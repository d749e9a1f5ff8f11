"""
Device fingerprinting for anonymous clients.

A fingerprint is a pseudo-identity, not a verified one: it is stable for a
given browser/device as long as the client keeps its cached value, and it is
not guaranteed to be unique. It is used for spam prevention and one-vote-per-
device tracking without requiring an account.
"""

import hashlib
import json
from pathlib import Path
from typing import Optional, Protocol

import structlog
from pydantic import BaseModel, Field

from core.logging import short_id

logger = structlog.get_logger(__name__)

# Separator between signal components. Fixed: changing it changes every fingerprint.
COMPONENT_SEPARATOR = "|||"

UNKNOWN_SIGNAL = "unknown"
CANVAS_BLOCKED = "canvas-blocked"
WEBGL_BLOCKED = "webgl-blocked"


class DeviceSignals(BaseModel):
    """Client-observable signals collected by the browser."""

    user_agent: str = Field(..., alias="userAgent")
    screen_width: int = Field(..., ge=0, alias="screenWidth")
    screen_height: int = Field(..., ge=0, alias="screenHeight")
    color_depth: int = Field(..., ge=0, alias="colorDepth")
    timezone: str
    language: str
    platform: str

    hardware_concurrency: Optional[int] = Field(None, ge=0, alias="hardwareConcurrency")
    device_memory: Optional[float] = Field(None, ge=0, alias="deviceMemory")

    # Canvas render snapshot (data URL); None when canvas access was blocked
    canvas_data: Optional[str] = Field(None, alias="canvasData")

    # WebGL unmasked vendor/renderer; None when WebGL is disabled
    webgl_vendor: Optional[str] = Field(None, alias="webglVendor")
    webgl_renderer: Optional[str] = Field(None, alias="webglRenderer")

    model_config = {"populate_by_name": True}

    def components(self) -> list[str]:
        """Ordered signal components. Blocked signals become sentinels so the shape stays stable."""
        parts = [
            self.user_agent,
            f"{self.screen_width}x{self.screen_height}x{self.color_depth}",
            self.timezone,
            self.language,
            self.platform,
            str(self.hardware_concurrency) if self.hardware_concurrency else UNKNOWN_SIGNAL,
        ]

        if self.device_memory:
            parts.append(f"{self.device_memory:g}")

        parts.append(self.canvas_data or CANVAS_BLOCKED)

        if self.webgl_vendor is not None and self.webgl_renderer is not None:
            parts.append(f"{self.webgl_vendor}~{self.webgl_renderer}")
        else:
            parts.append(WEBGL_BLOCKED)

        return parts


def generate_fingerprint(signals: DeviceSignals) -> str:
    """Compute the SHA-256 hex fingerprint for a set of device signals."""
    payload = COMPONENT_SEPARATOR.join(signals.components())
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# =============================================================================
# Persistence
# =============================================================================


class FingerprintCache(Protocol):
    """Where a client keeps its fingerprint between sessions."""

    def load(self) -> Optional[str]: ...

    def save(self, fingerprint: str) -> None: ...


class InMemoryFingerprintCache:
    """Cache that lives as long as the process."""

    def __init__(self) -> None:
        self._value: Optional[str] = None

    def load(self) -> Optional[str]:
        return self._value

    def save(self, fingerprint: str) -> None:
        self._value = fingerprint


class FileFingerprintCache:
    """
    JSON file cache for non-browser clients (CLI tools, bots under test).

    Deleting the file resets the identity, the same way clearing browser
    storage does.
    """

    STORAGE_KEY = "hot_takes_device_fp"

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        value = data.get(self.STORAGE_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    def save(self, fingerprint: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({self.STORAGE_KEY: fingerprint}), encoding="utf-8")


def get_device_fingerprint(signals: DeviceSignals, cache: FingerprintCache) -> str:
    """
    Return the cached fingerprint, computing and persisting it on first use.

    A failure to persist is logged and otherwise ignored: the fingerprint is
    still valid for the current session.
    """
    cached = cache.load()
    if cached:
        return cached

    fingerprint = generate_fingerprint(signals)
    try:
        cache.save(fingerprint)
    except OSError as e:
        logger.warning("fingerprint_persist_failed", fingerprint=short_id(fingerprint), error=str(e))

    return fingerprint
