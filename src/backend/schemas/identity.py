"""
Identity-related Pydantic schemas.

The request body is services.fingerprint.DeviceSignals.
"""

from pydantic import BaseModel


class FingerprintResponse(BaseModel):
    fingerprint: str
