"""Internal constants shared across the library."""

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0

LAT_LIMIT = 90.0
LNG_LIMIT = 180.0

# ------------------------------------------------------------------
# Sensor failure codes (W3C Geolocation numbering, plus NOT_SUPPORTED)
# ------------------------------------------------------------------

NOT_SUPPORTED = -1
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

SENSOR_ERROR_NAMES: dict[int, str] = {
    NOT_SUPPORTED: "NOT_SUPPORTED",
    PERMISSION_DENIED: "PERMISSION_DENIED",
    POSITION_UNAVAILABLE: "POSITION_UNAVAILABLE",
    TIMEOUT: "TIMEOUT",
}

SENSOR_ERROR_MESSAGES: dict[int, str] = {
    NOT_SUPPORTED: "Geolocation not supported",
    PERMISSION_DENIED: "Location permission denied",
    POSITION_UNAVAILABLE: "Location data unavailable",
    TIMEOUT: "Location request timed out",
}

GENERIC_SENSOR_ERROR_MESSAGE = "GPS error"


def sensor_error_message(code: int) -> str:
    """Human-readable message for a sensor failure *code*."""
    return SENSOR_ERROR_MESSAGES.get(code, GENERIC_SENSOR_ERROR_MESSAGE)
