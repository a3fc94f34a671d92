from dataclasses import dataclass, field
from typing import Any, ClassVar, Self

from catchflow.climate import ClimateStep
from catchflow.common import EVAPORATION, SEEPAGE, ParamBounds
from catchflow.errors import ConfigurationError

from .base import NetworkNode
from .curves import PowerCurve, StorageCurve, TabulatedCurve
from .events import DeficitRecorded, WaterLost, WaterReceived, WaterReleased, WaterSpilled
from .registry import register


@register("DamNode")
@dataclass
class DamNode(NetworkNode):
    """Reservoir tracking stored volume with an explicit mass balance.

    Per timestep, with ``v`` the volume at the start of the step (all in ML)::

        raw = v + inflow + rain * A(v) - evap_coef * evap * A(v)
                - storage_coef * v - extraction + exchange
        spill = max(0, raw - max_store)
        v' = clamp(raw, 0, max_store)

    ``A(v)`` is the surface area (km²) from the storage curve, so mm times km²
    gives ML. Extraction is the water order; when the reservoir runs dry the
    unmet part of the order is not released. Outflow is spill plus the water
    order actually met.

    Without a curve the dam gets a ``PowerCurve`` with zero surface area, as
    does a ``TabulatedCurve`` without an area column. Rainfall and evaporation
    then add and remove nothing; give ``full_area`` or ``areas`` for them to
    act on the reservoir surface.
    """

    node_type: ClassVar[str] = "DamNode"
    __params__: ClassVar[tuple[str, ...]] = ("storage_coef", "evap_coef")
    __bounds__: ClassVar[dict[str, ParamBounds]] = {
        "storage_coef": (0.0, 0.05),
        "evap_coef": (0.5, 1.5),
    }

    max_store: float = 1000.0  # ML
    initial_storage: float | None = None  # ML, defaults to max_store
    curve: StorageCurve | None = None
    storage_coef: float = 0.0005  # seepage fraction of stored volume per step
    evap_coef: float = 1.0  # open water evaporation scaling
    volume: list[float] = field(default_factory=list, init=False, repr=False)
    level: list[float] = field(default_factory=list, init=False, repr=False)
    spill: list[float] = field(default_factory=list, init=False, repr=False)
    _storage: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.max_store <= 0:
            raise ConfigurationError(f"Node '{self.node_id}': max_store must be positive")
        if self.initial_storage is None:
            self.initial_storage = self.max_store
        if not 0 <= self.initial_storage <= self.max_store:
            raise ConfigurationError(f"Node '{self.node_id}': initial_storage must lie within [0, max_store]")
        if self.curve is None:
            self.curve = PowerCurve(max_volume=self.max_store, full_level=1.0)
        self._storage = self.initial_storage

    @property
    def storage(self) -> float:
        return self._storage

    def step(
        self,
        forcing: ClimateStep,
        inflow: float = 0.0,
        extraction: float = 0.0,
        exchange: float = 0.0,
    ) -> float:
        t = self.timestep
        v0 = self._storage
        surface = self.curve.area(v0)

        rain_vol = forcing.rainfall * surface
        evap_vol = self.evap_coef * forcing.evaporation * surface if forcing.evaporation is not None else 0.0
        seepage = self.storage_coef * v0

        raw = v0 + inflow + rain_vol - evap_vol - seepage - extraction + exchange
        spilled = max(0.0, raw - self.max_store)
        shortfall = max(0.0, -raw)
        new_volume = min(max(raw, 0.0), self.max_store)
        released = max(0.0, extraction - shortfall)
        outflow = spilled + released
        level = self.curve.level(new_volume)

        self._check_finite(volume=new_volume, level=level, outflow=outflow)

        self._storage = new_volume
        self.volume.append(new_volume)
        self.level.append(level)
        self.spill.append(spilled)
        self.outflow.append(outflow)

        if inflow > 0:
            self.record(WaterReceived(amount=inflow, t=t))
        if evap_vol > 0:
            self.record(WaterLost(amount=evap_vol, reason=EVAPORATION, t=t))
        if seepage > 0:
            self.record(WaterLost(amount=seepage, reason=SEEPAGE, t=t))
        if released > 0:
            self.record(WaterReleased(amount=released, t=t))
        if released < extraction:
            self.record(DeficitRecorded(required=extraction, actual=released, deficit=extraction - released, t=t))
        if spilled > 0:
            self.record(WaterSpilled(amount=spilled, t=t))
        return outflow

    def reset(self) -> None:
        super().reset()
        self._storage = self.initial_storage
        self.volume.clear()
        self.level.clear()
        self.spill.clear()

    @classmethod
    def from_spec(cls, name: str, details: dict[str, Any]) -> Self:
        parameters = cls._split_parameters(name, details)
        if "max_store" not in details:
            raise ConfigurationError(f"Node '{name}': DamNode requires max_store")
        max_store = float(details["max_store"])
        initial = details.get("initial_storage")

        if "storage_curve" in details and "power_curve" in details:
            raise ConfigurationError(f"Node '{name}': give either storage_curve or power_curve, not both")
        curve: StorageCurve | None = None
        if "storage_curve" in details:
            table = details["storage_curve"]
            curve = TabulatedCurve(
                volumes=tuple(table["volumes"]),
                levels=tuple(table["levels"]),
                areas=tuple(table["areas"]) if table.get("areas") is not None else None,
            )
        elif "power_curve" in details:
            curve = PowerCurve(max_volume=max_store, **details["power_curve"])

        return cls(
            node_id=str(details.get("node_id", name)),
            name=name,
            max_store=max_store,
            initial_storage=float(initial) if initial is not None else None,
            curve=curve,
            **parameters,
        )
