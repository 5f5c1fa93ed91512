"""
Bayesian linear regression with a per-parameter choice of Gibbs or
Metropolis-Hastings updates.

    y ~ N(X beta, sigma2 I)
    beta_j ~ N(mean_j, variance_j)
    sigma2 ~ Inverse-Gamma(shape, scale)
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import torch
from typeguard import typechecked

from blm.models.base import SamplerModel
from blm.samplers import resolve_plan
from blm.samplers.base import ChainState, NonPositiveVariance, RegressionData
from blm.typing import Coefficients, DesignMatrix, Response
from blm.util import as_inverse_gamma_prior, as_normal_prior

L = logging.getLogger(__name__)


VARIANCE_NAMES = ("sigma2", "sigma")


class BayesianLinearModel(SamplerModel):
    """
    Args:
        samplers: Maps parameter names to sampler specifications. A specification
            is ``"gibbs"`` or a mapping such as
            ``{"type": "metropolis", "tuning": 0.25}``. Unlisted parameters are
            Gibbs-sampled; the residual variance (``sigma2``) always is.
        priors: Maps coefficient names to Normal priors, given as ``NormalPrior``,
            ``(mean, variance)`` or ``{"mean": ..., "variance": ...}``. Unlisted
            coefficients get ``N(0, 1000)``.
        variance_prior: Inverse-Gamma ``(shape, scale)`` prior on the residual
            variance.
        initial_values: Maps parameter names (and ``sigma2``) to starting values,
            or a list of such mappings, one per chain. Coefficients default to zero
            and ``sigma2`` to one.
        iterations: Default chain length, including the initial state.
        burn: Number of leading iterations ignored by posterior summaries.
        chains: Number of independent chains.
        random_state: Seed or ``numpy.random.RandomState``.
    """

    def __init__(self,
                 samplers: Optional[Mapping[str, Any]] = None,
                 priors: Optional[Mapping[str, Any]] = None,
                 variance_prior: Any = None,
                 initial_values: Optional[Union[Mapping[str, float],
                                                Sequence[Mapping[str, float]]]] = None,
                 iterations: int = 10000,
                 burn: Optional[int] = 1000,
                 chains: int = 1,
                 random_state=None,
                 pbar: bool = False,
                 name: Optional[str] = None):
        self.samplers = samplers
        self.priors = priors
        self.variance_prior = variance_prior
        self.initial_values = initial_values

        self.iterations = iterations
        self.burn = burn
        self.chains = chains

        self.random_state = random_state
        self.pbar = pbar
        self.name = name

    ######## Configuration

    def set_sampler(self, parameter: str, type: str = "gibbs",
                    tuning: Optional[float] = None,
                    lower: Optional[float] = None,
                    upper: Optional[float] = None) -> "BayesianLinearModel":
        spec: Dict[str, Any] = {"type": type}
        if tuning is not None:
            spec["tuning"] = tuning
        if lower is not None:
            spec["lower"] = lower
        if upper is not None:
            spec["upper"] = upper

        samplers = dict(self.samplers or {})
        samplers[parameter] = spec
        return self.set_params(samplers=samplers)

    def set_prior(self, parameter: str, mean: float = 0., variance: float = 1000.
                  ) -> "BayesianLinearModel":
        priors = dict(self.priors or {})
        priors[parameter] = (mean, variance)
        return self.set_params(priors=priors)

    def set_variance_prior(self, shape: float = 0.001, scale: float = 0.001
                           ) -> "BayesianLinearModel":
        return self.set_params(variance_prior=(shape, scale))

    def set_initial_values(self, initial_values) -> "BayesianLinearModel":
        return self.set_params(initial_values=initial_values)

    ######## Sampling

    def _split_samplers(self):
        samplers = dict(self.samplers or {})
        variance_sampler = "gibbs"
        for name in VARIANCE_NAMES:
            if name in samplers:
                variance_sampler = samplers.pop(name)
        return samplers, variance_sampler

    def _initial_state(self, data: RegressionData, values: Optional[Mapping[str, float]]
                       ) -> ChainState:
        values = dict(values or {})
        sigma2 = float(values.pop("sigma2", 1.))
        if not sigma2 > 0:
            raise NonPositiveVariance(f"Initial residual variance must be positive, got {sigma2}")

        unknown = set(values) - set(data.names)
        if unknown:
            raise ValueError(f"Initial values given for unknown parameters: {sorted(unknown)}")

        coefficients = torch.tensor([float(values.get(name, 0.)) for name in data.names],
                                    dtype=torch.float64)
        return ChainState(coefficients, sigma2)

    def _initial_states(self, data: RegressionData, n_chains: int) -> List[ChainState]:
        initial_values = self.initial_values
        if initial_values is None or isinstance(initial_values, Mapping):
            return [self._initial_state(data, initial_values)] * n_chains

        initial_values = list(initial_values)
        if len(initial_values) != n_chains:
            raise ValueError(f"Got {len(initial_values)} sets of initial values for {n_chains} chains")
        return [self._initial_state(data, values) for values in initial_values]

    def _prepare(self, data: RegressionData, chains: int):
        samplers, variance_sampler = self._split_samplers()
        coef_priors = {name: as_normal_prior(prior)
                       for name, prior in (self.priors or {}).items()}
        unknown = set(coef_priors) - set(data.names)
        if unknown:
            raise ValueError(f"Priors given for unknown parameters: {sorted(unknown)}")

        plan = resolve_plan(data.names, samplers, coef_priors,
                            as_inverse_gamma_prior(self.variance_prior),
                            variance_sampler=variance_sampler)
        initial_states = self._initial_states(data, chains)
        return data, plan, data.names + ["sigma2"], initial_states

    def sample_posterior(self, X: Union[RegressionData, DesignMatrix, np.ndarray],
                         y: Optional[Union[Response, np.ndarray]] = None,
                         names: Optional[List[str]] = None,
                         iterations: Optional[int] = None,
                         chains: Optional[int] = None) -> "BayesianLinearModel":
        """
        Lock the sampling plan and draw ``iterations`` states per chain (the first
        being the initial state).

        ``X`` is either a ``RegressionData`` or a design matrix (including any
        intercept column), in which case ``y`` is required.
        """
        if isinstance(X, RegressionData):
            data = X
        else:
            if y is None:
                raise ValueError("y is required when X is a design matrix")
            data = RegressionData(X, y, names=names)

        iterations = self.iterations if iterations is None else iterations
        chains = self.chains if chains is None else chains
        L.info("Sampling %d chain(s) of %d iterations for %d coefficients on %d observations",
               chains, iterations, data.n_coef, data.n_obs)
        return self._start_sampling(data, chains, iterations=iterations)

    def fit(self, X, y=None, **kwargs) -> "BayesianLinearModel":
        return self.sample_posterior(X, y, **kwargs)

    ######## Posterior summaries

    @property
    def coef_(self) -> Coefficients:
        """
        Posterior mean of the coefficients, after burn-in.
        """
        samples = self.posterior_.samples(self._burn())
        return samples[:, :-1].mean(dim=0)

    @property
    def sigma_(self) -> float:
        """
        Posterior mean of the residual standard deviation, after burn-in.
        """
        sigma2 = self.posterior_.samples(self._burn())[:, -1]
        return sigma2.sqrt().mean().item()

    @typechecked
    def predict(self, X: DesignMatrix) -> Response:
        return X.to(torch.float64) @ self.coef_
