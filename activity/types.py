"""
Activity - Measurement names, roles and tag/field keys.

All names written by the activity engine live here so the schema stays
consistent across record variants.
"""

from enum import Enum


# =============================================================
# MEASUREMENTS
# =============================================================

class ActivityMeasurement(str, Enum):
    """Measurement a classified activity point is written to."""
    POC = "helium_poc_activity"
    REWARD = "helium_reward"
    DATA_TRANSFER = "helium_data_transfer"
    UNKNOWN = "helium_unknown_activity"


# =============================================================
# POC ROLES
# =============================================================

class PocRole(str, Enum):
    """Role of the queried node in a proof-of-coverage event."""
    CHALLENGED_BEACONER = "challenged_beaconer"
    BROADCAST_BEACON = "broadcast_beacon"
    WITNESSED_BEACON = "witnessed_beacon"
    CONSTRUCTED_CHALLENGE = "constructed_challenge"


# =============================================================
# REWARD CATEGORIES
# =============================================================

MIXED_REWARD_TYPE = "mixed"

# raw reward code -> category shown by the explorer
REWARD_TYPE_EXPLORER: dict[str, str] = {
    "poc_witnesses": "witness",
    "poc_challengers": "challenger",
    "poc_challengees": "beacon",
    "data_credits": "data_transfer",
    "consensus": "consensus",
    "securities": "securities",
}


# =============================================================
# TAG / FIELD KEYS
# =============================================================

TAG_HOTSPOT_ID = "hotspot_id"
TAG_HOTSPOT_NAME = "hotspot_name"
TAG_GEOTEXT = "geotext"
TAG_POC_ROLE = "poc_role"
TAG_POC_RESULT = "poc_result"
TAG_BEACONER = "beaconer"
TAG_REWARD_TYPE_POC = "reward_type_poc"
TAG_REWARD_TYPE_EXPLORER = "reward_type_explorer"

FIELD_EVENT = "event"
FIELD_WITNESSES = "witnesses"
FIELD_REWARD_AMOUNT = "reward_amount"
FIELD_PACKETS = "packets"
FIELD_DATA_CREDITS = "data_credits"
