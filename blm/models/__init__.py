from blm.models.base import PlanLockedError, PlanState, SamplerModel, sweep
from blm.models.blm import BayesianLinearModel
from blm.models.correlation import CorrelationModel


__all__ = [
    "BayesianLinearModel",
    "CorrelationModel",
    "SamplerModel",

    "PlanState",
    "PlanLockedError",
    "sweep",
]
