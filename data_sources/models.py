"""
Data Source Models - Typed views of Helium API responses.

Provides strict typing for everything the exporter reads from the network:
node (hotspot) snapshots, activity records, network stats and accounts.

Activity records form a closed set of variants sharing ActivityRecord:

    PocRequest              poc_request_v1
    PocReceipt              poc_receipts_v1, poc_receipts_v2
    RewardBatch             rewards_v1, rewards_v2, rewards_v3
    DataTransferSettlement  state_channel_close_v1
    UnknownActivity         anything else (or a known type that fails validation)
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator


logger = logging.getLogger(__name__)


# 1 HNT = 10^8 bones
BONES_PER_HNT = 100_000_000


# =============================================================
# NODE
# =============================================================

class Geocode(BaseModel):
    """Reverse-geocoded location of a hotspot."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    short_city: Optional[str] = None
    short_street: Optional[str] = None
    short_state: Optional[str] = None
    short_country: Optional[str] = None
    long_city: Optional[str] = None


class NodeStatus(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    online: Optional[str] = None
    height: Optional[int] = None


class Node(BaseModel):
    """Read-only snapshot of a monitored hotspot."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    address: str
    name: str
    geocode: Geocode = Field(default_factory=Geocode)
    lat: Optional[float] = None
    lng: Optional[float] = None
    reward_scale: Optional[float] = None
    score: Optional[float] = None
    score_update_height: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("score_update_height", "scoreUpdateHeight"),
    )
    mode: Optional[str] = None
    last_change_block: int
    status: Optional[NodeStatus] = None

    @property
    def display_name(self) -> str:
        """Raw name de-hyphenated and title-cased: angry-purple-tiger -> Angry Purple Tiger."""
        return " ".join(
            part[:1].upper() + part[1:]
            for part in self.name.split("-")
        )

    @property
    def geotext(self) -> str:
        return f"{self.geocode.short_city}, {self.geocode.short_street}"

    @property
    def is_online(self) -> Optional[bool]:
        if self.status is None or self.status.online is None:
            return None
        return self.status.online == "online"


# =============================================================
# ACTIVITY RECORDS
# =============================================================

class ActivityRecord(BaseModel):
    """Base of all activity variants: a typed event at a fixed point in history."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    time: int
    hash: Optional[str] = None
    height: Optional[int] = None


class PocRequest(ActivityRecord):
    challenger: str


class Witness(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    gateway: str
    is_valid: Optional[bool] = None


class PathHop(BaseModel):
    """One hop of a PoC receipt path."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    challengee: str
    result: str = "unknown"
    witnesses: list[Witness] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _null_result(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("result") is None:
            data = {**data, "result": "unknown"}
        return data


class PocReceipt(ActivityRecord):
    challenger: str
    path: list[PathHop] = Field(min_length=1)

    @property
    def first_hop(self) -> PathHop:
        return self.path[0]


class RewardComponent(BaseModel):
    """One category of earned value inside a reward batch (amount in bones)."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    amount: int = 0
    gateway: Optional[str] = None
    account: Optional[str] = None


class RewardBatch(ActivityRecord):
    rewards: list[RewardComponent] = Field(min_length=1)
    total_amount: float

    @model_validator(mode="before")
    @classmethod
    def _sum_components(cls, data: Any) -> Any:
        # The API only carries per-component amounts; the total is their sum in HNT
        if isinstance(data, dict) and data.get("total_amount") is None:
            rewards = data.get("rewards") or []
            try:
                bones = sum(int(r.get("amount", 0)) for r in rewards)
            except (AttributeError, TypeError, ValueError):
                return data
            data = {**data, "total_amount": bones / BONES_PER_HNT}
        return data


class StateChannelSummary(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    num_packets: int
    num_dcs: int
    client: Optional[str] = None
    owner: Optional[str] = None


class DataTransferSettlement(ActivityRecord):
    summaries: list[StateChannelSummary] = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _lift_summaries(cls, data: Any) -> Any:
        if isinstance(data, dict) and "summaries" not in data:
            channel = data.get("state_channel")
            if isinstance(channel, dict):
                data = {**data, "summaries": channel.get("summaries")}
        return data


class UnknownActivity(ActivityRecord):
    """Fallback variant: keeps the raw payload for operator review."""
    raw: dict[str, Any] = Field(default_factory=dict)


Activity = Union[
    PocRequest,
    PocReceipt,
    RewardBatch,
    DataTransferSettlement,
    UnknownActivity,
]


ACTIVITY_VARIANTS: dict[str, type[ActivityRecord]] = {
    "poc_request_v1": PocRequest,
    "poc_receipts_v1": PocReceipt,
    "poc_receipts_v2": PocReceipt,
    "rewards_v1": RewardBatch,
    "rewards_v2": RewardBatch,
    "rewards_v3": RewardBatch,
    "state_channel_close_v1": DataTransferSettlement,
}


def _epoch_seconds(value: Any) -> Optional[int]:
    """Whole-number epoch seconds from an int, integral float or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_activity(raw: dict[str, Any]) -> Optional[Activity]:
    """
    Parse one raw activity record into its variant.

    Unknown types, and known types whose payload does not validate,
    degrade to UnknownActivity. A record without a whole-number time
    cannot be placed in the window and is dropped (None).
    """
    time_value = _epoch_seconds(raw.get("time")) if isinstance(raw, dict) else None
    if time_value is None:
        logger.warning(f"Dropping activity record without usable time: {raw!r}")
        return None
    raw = {**raw, "time": time_value}

    record_type = str(raw.get("type", ""))
    variant = ACTIVITY_VARIANTS.get(record_type)

    if variant is not None:
        try:
            return variant.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Malformed {record_type} activity at {time_value}, "
                f"treating as unknown: {e.error_count()} validation errors"
            )

    return UnknownActivity(
        type=record_type,
        time=time_value,
        hash=raw.get("hash") if isinstance(raw.get("hash"), str) else None,
        raw=raw,
    )


@dataclass(frozen=True)
class ActivityPage:
    """One page of a node's activity feed, newest first."""
    records: tuple[Activity, ...] = ()
    cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return bool(self.cursor)


# =============================================================
# NETWORK & ACCOUNT SNAPSHOTS
# =============================================================

class NetworkCounts(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    transactions: int
    challenges: int
    blocks: int
    hotspots: int = 0
    hotspots_online: int = 0
    hotspots_dataonly: int = 0


class ChallengeCounts(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    active: int
    last_day: Optional[int] = None


class BlockTimeStats(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    avg: float = 0.0
    stddev: Optional[float] = None


class BlockTimes(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    last_day: BlockTimeStats = Field(default_factory=BlockTimeStats)


class NetworkStats(BaseModel):
    """Network-wide statistics (GET /stats)."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    counts: NetworkCounts
    challenge_counts: ChallengeCounts
    block_times: BlockTimes = Field(default_factory=BlockTimes)


class Account(BaseModel):
    """Wallet balances in their smallest units (bones for HNT/HST, DC for data credits)."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    address: str
    balance: int = 0
    staked_balance: int = 0
    sec_balance: int = 0
    dc_balance: int = 0

    @property
    def balance_hnt(self) -> float:
        return self.balance / BONES_PER_HNT

    @property
    def staked_balance_hnt(self) -> float:
        return self.staked_balance / BONES_PER_HNT

    @property
    def sec_balance_hst(self) -> float:
        return self.sec_balance / BONES_PER_HNT

    @property
    def dc_balance_dc(self) -> float:
        return float(self.dc_balance)
