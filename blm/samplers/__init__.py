import logging
import math
from typing import Any, List, Mapping, Optional, Sequence

from blm.samplers.base import ChainState, CorrelationState, DegenerateColumn, \
    InverseGammaPrior, NonFiniteDraw, NonPositiveVariance, NormalPrior, RegressionData, SamplerError, \
    Updater, UnsupportedSamplerType
from blm.samplers.gibbs import GibbsCoefficient, GibbsVariance
from blm.samplers.metropolis import MetropolisCoefficient, MetropolisCorrelation, \
    RandomWalkMetropolis
from blm.samplers.posterior import CorrelationData

L = logging.getLogger(__name__)


GIBBS_TYPES = {"gibbs"}
METROPOLIS_TYPES = {"metropolis", "metropolis-hastings", "mh"}


def _get(spec: Any, key: str, default=None):
    if isinstance(spec, Mapping):
        return spec.get(key, default)
    return getattr(spec, key, default)


def sampler_type(spec: Any) -> str:
    """
    Normalize a per-parameter sampler specification (a string, a mapping or a
    ``SamplerConfig``) to one of ``"gibbs"`` or ``"metropolis"``.
    """
    type_ = spec if isinstance(spec, str) else _get(spec, "type")
    if not isinstance(type_, str):
        raise UnsupportedSamplerType(f"Invalid sampler specification: {spec!r}")

    type_ = type_.lower()
    if type_ in GIBBS_TYPES:
        return "gibbs"
    elif type_ in METROPOLIS_TYPES:
        return "metropolis"
    raise UnsupportedSamplerType(f"Unknown sampler type: {type_}")


def make_coefficient_updater(index: int, spec: Any, prior: NormalPrior,
                             name: Optional[str] = None) -> Updater:
    type_ = sampler_type(spec)
    if type_ == "gibbs":
        return GibbsCoefficient(index, prior, name=name)

    tuning = _get(spec, "tuning") if not isinstance(spec, str) else None
    if tuning is None:
        raise UnsupportedSamplerType(f"Metropolis sampler for {name} requires a tuning scale")
    lower = _get(spec, "lower")
    upper = _get(spec, "upper")
    proposal = RandomWalkMetropolis(
        float(tuning),
        lower=-math.inf if lower is None else float(lower),
        upper=math.inf if upper is None else float(upper))
    return MetropolisCoefficient(index, prior, proposal, name=name)


def make_variance_updater(spec: Any, prior: InverseGammaPrior) -> Updater:
    if sampler_type(spec) != "gibbs":
        raise UnsupportedSamplerType("The residual variance can only be Gibbs-sampled")
    return GibbsVariance(prior)


def resolve_plan(names: Sequence[str],
                 samplers: Mapping[str, Any],
                 coef_priors: Mapping[str, NormalPrior],
                 variance_prior: InverseGammaPrior,
                 variance_sampler: Any = "gibbs") -> List[Updater]:
    """
    Resolve per-parameter sampler specifications into a fixed list of updaters,
    in sweep order: coefficients in column order, then the residual variance.
    Parameters missing from ``samplers`` are Gibbs-sampled.
    """
    unknown = set(samplers) - set(names)
    if unknown:
        raise ValueError(f"Sampler specified for unknown parameters: {sorted(unknown)}")

    plan: List[Updater] = [
        make_coefficient_updater(j, samplers.get(name, "gibbs"),
                                 coef_priors.get(name, NormalPrior()), name=name)
        for j, name in enumerate(names)
    ]
    plan.append(make_variance_updater(variance_sampler, variance_prior))

    L.debug("Resolved sampling plan: %s", plan)
    return plan


__all__ = [
    "ChainState",
    "CorrelationState",
    "CorrelationData",
    "RegressionData",
    "NormalPrior",
    "InverseGammaPrior",
    "Updater",

    "GibbsCoefficient",
    "GibbsVariance",
    "MetropolisCoefficient",
    "MetropolisCorrelation",
    "RandomWalkMetropolis",

    "resolve_plan",
    "sampler_type",

    "SamplerError",
    "DegenerateColumn",
    "NonPositiveVariance",
    "UnsupportedSamplerType",
    "NonFiniteDraw",
]
