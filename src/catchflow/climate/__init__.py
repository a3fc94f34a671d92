from .align import align_time_frame, find_common_timeframe
from .climate import Climate, ClimateStep

__all__ = [
    "Climate",
    "ClimateStep",
    "align_time_frame",
    "find_common_timeframe",
]
