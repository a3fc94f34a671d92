from dataclasses import dataclass

from catchflow.common import LossReason


@dataclass(frozen=True, slots=True)
class WaterGenerated:
    amount: float  # ML
    t: int  # timestep


@dataclass(frozen=True, slots=True)
class WaterReceived:
    amount: float
    t: int


@dataclass(frozen=True, slots=True)
class WaterReleased:
    amount: float
    t: int


@dataclass(frozen=True, slots=True)
class WaterLost:
    amount: float
    reason: LossReason
    t: int


@dataclass(frozen=True, slots=True)
class WaterSpilled:
    amount: float
    t: int


@dataclass(frozen=True, slots=True)
class DeficitRecorded:
    required: float
    actual: float
    deficit: float
    t: int


NodeEvent = WaterGenerated | WaterReceived | WaterReleased | WaterLost | WaterSpilled | DeficitRecorded
