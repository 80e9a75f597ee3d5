"""Internal constants shared across the package."""

API_DOMAINS: dict[str, str] = {
    "eu": "vocapi.wirelesscar.net",
    "na": "vocapi-na.wirelesscar.net",
    "cn": "vocapi-cn.wirelesscar.net",
}
API_ENDPOINT = "/customerapi/rest/v3.0/"

X_CLIENT_VERSION = "4.6.9.264685"
X_OS_VERSION = "13.3.1"
USER_AGENT = "Volvo%20On%20Call/4.6.9.264685 CFNetwork/1120 Darwin/19.0.0"

CONTENT_TYPE_JSON = "application/json; charset=utf-8"
CONTENT_TYPE_CLIENT_POSITION = "application/vnd.wirelesscar.com.voc.ClientPosition.v4+json; charset=utf-8"
CONTENT_TYPE_CHARGE_LOCATION = "application/vnd.wirelesscar.com.voc.ChargeLocation.v4+json; charset=utf-8"

# Service invocation polling
POLL_INTERVAL_SECONDS = 1.0
POLL_ATTEMPTS = 15

# ------------------------------------------------------------------
# Distance between two coordinates
# ------------------------------------------------------------------

_NAUTICAL_MILE_DEGREES = 60
_STATUTE_MILES_PER_NAUTICAL = 1.1515
KM_PER_STATUTE_MILE = 1.609344
KM_PER_DEGREE = _NAUTICAL_MILE_DEGREES * _STATUTE_MILES_PER_NAUTICAL * KM_PER_STATUTE_MILE
