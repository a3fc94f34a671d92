import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Self

from catchflow.climate import ClimateStep
from catchflow.common import Parameterized
from catchflow.errors import ConfigurationError, SimulationError

from .events import NodeEvent


@dataclass
class NetworkNode(Parameterized):
    """Base class for every node in a stream network.

    A node owns its parameters, its dynamic state and a per-timestep output
    history. ``step`` advances the node by exactly one timestep; ``reset``
    restores the state captured at construction and clears the history while
    keeping the current parameter values.
    """

    node_type: ClassVar[str] = "NetworkNode"

    node_id: str
    name: str = field(default="", kw_only=True)
    events: list[NodeEvent] = field(default_factory=list, init=False, repr=False)
    outflow: list[float] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.node_id
        self._check_params()

    @property
    def timestep(self) -> int:
        """Index of the next timestep this node will evaluate."""
        return len(self.outflow)

    def record(self, event: NodeEvent) -> None:
        self.events.append(event)

    def events_at(self, t: int) -> list[NodeEvent]:
        return [e for e in self.events if e.t == t]

    def events_of_type[T: NodeEvent](self, event_type: type[T]) -> list[T]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear_events(self) -> None:
        self.events.clear()

    def step(
        self,
        forcing: ClimateStep,
        inflow: float = 0.0,
        extraction: float = 0.0,
        exchange: float = 0.0,
    ) -> float:
        """Advance one timestep and return the outflow (ML)."""
        raise NotImplementedError("Subclasses must implement step()")

    def reset(self) -> None:
        """Reset node to initial state for a fresh simulation run.

        Clears events and output history. Subclasses restore their own state,
        calling super().reset() first.
        """
        self.clear_events()
        self.outflow.clear()

    def _check_finite(self, **values: float) -> None:
        bad = {k: v for k, v in values.items() if not math.isfinite(v)}
        if bad:
            names = ", ".join(f"{k}={v}" for k, v in bad.items())
            raise SimulationError(
                f"Node '{self.node_id}' produced non-finite values at timestep {self.timestep}: {names}"
            )

    @classmethod
    def from_spec(cls, name: str, details: dict[str, Any]) -> Self:
        """Create a node from one entry of a topology mapping."""
        raise NotImplementedError("Subclasses must implement from_spec()")

    @classmethod
    def _split_parameters(cls, name: str, details: dict[str, Any]) -> dict[str, float]:
        parameters = dict(details.get("parameters") or {})
        unknown = set(parameters) - set(cls.__params__)
        if unknown:
            raise ConfigurationError(f"Node '{name}': unknown parameters for {cls.node_type}: {sorted(unknown)}")
        return {k: float(v) for k, v in parameters.items()}
