from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catchflow.network import StreamNetwork


@dataclass(frozen=True, slots=True)
class CalibrationResult:
    node_id: str
    parameters: dict[str, float]
    score: float  # raw metric value of the best candidate
    objective_value: float  # value the optimizer minimized

    def apply(self, network: StreamNetwork) -> None:
        """Set the calibrated parameters on ``network`` and reset it."""
        node = network.get_node(self.node_id)
        node.update_parameters([self.parameters[name] for name in node.__params__])
        network.reset()
