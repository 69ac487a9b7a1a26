"""
Data Router

Serves live power analyzer measurements:
- GET /data polls the device once per request

Poll failures are logged in full and answered with an opaque 503 so that
register addresses never reach external callers.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from analyzer.common.exceptions import PollError
from analyzer.common.logging_setup import get_service_logger
from analyzer.services.device.poller import AnalyzerPoller
from analyzer.services.device.snapshot import Snapshot
from analyzer_api.services.settings import Settings, get_settings

router = APIRouter()

logger = get_service_logger("api.data")

UNAVAILABLE_DETAIL = "Power analyzer unavailable"


# ============================================
# SCHEMAS
# ============================================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PhasePowerResponse(CamelModel):
    """Measurements for one phase."""
    power: int
    apparent_power: int
    reactive_power: int


class SnapshotResponse(CamelModel):
    """All measurements from one poll."""
    imported_power_total: int
    imported_reactive_power_total: int
    exported_power_total: int
    exported_reactive_power_total: int
    phase1: PhasePowerResponse
    phase2: PhasePowerResponse
    phase3: PhasePowerResponse


# ============================================
# HELPER FUNCTIONS
# ============================================

def snapshot_to_response(snapshot: Snapshot) -> SnapshotResponse:
    """Convert a poll Snapshot to its response schema."""
    return SnapshotResponse.model_validate(snapshot.as_dict())


def get_poller(settings: Settings = Depends(get_settings)) -> AnalyzerPoller:
    """Dependency for a poller configured from settings."""
    device = settings.device_config()
    return AnalyzerPoller(unit_id=device.unit_id, timeout=device.timeout_s)


def get_device_address(settings: Settings = Depends(get_settings)) -> str:
    """Dependency for the configured device address."""
    return settings.device_config().address


# ============================================
# ENDPOINTS
# ============================================

@router.get("/data", response_model=SnapshotResponse)
def get_data(
    poller: AnalyzerPoller = Depends(get_poller),
    address: str = Depends(get_device_address),
):
    """
    Poll the power analyzer and return all measurements.

    Runs in the threadpool; each request opens its own Modbus connection.
    """
    try:
        snapshot = poller.poll(address)
    except PollError as e:
        logger.error(
            f"Poll failed: {e.message}",
            extra={"device": address, "register": getattr(e, "register", None)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=UNAVAILABLE_DETAIL,
        )

    return snapshot_to_response(snapshot)
