"""Error taxonomy for the scheduling core."""


class SchedulingError(Exception):
    """Base class for all scheduling errors."""


class InvalidCapacityConfig(SchedulingError):
    """A member's working hours or working days cannot produce capacity."""


class InvalidAllocation(SchedulingError):
    """An allocation was rejected at the ledger boundary."""


class RebalanceNonConvergence(SchedulingError):
    """The rebalancer stopped at its iteration cap.

    Carried on the RebalancePlan as a warning value; the core never raises it.
    """

    def __init__(self, iterations: int, residual_hours: float):
        self.iterations = iterations
        self.residual_hours = residual_hours
        super().__init__(
            f"Rebalance stopped after {iterations} iterations with "
            f"{residual_hours:.2f}h still over the utilization limit"
        )
