"""
Identity endpoints.

For clients that collect device signals but cannot hash them locally.
The server keeps nothing: the caller stores the returned fingerprint and
sends it with later writes.
"""

from fastapi import APIRouter

from schemas.identity import FingerprintResponse
from services.fingerprint import DeviceSignals, generate_fingerprint

router = APIRouter()


@router.post("/fingerprint", response_model=FingerprintResponse)
async def compute_fingerprint(signals: DeviceSignals) -> FingerprintResponse:
    return FingerprintResponse(fingerprint=generate_fingerprint(signals))
