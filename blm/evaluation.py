"""
Model-level summaries computed from posterior draws of a `BayesianLinearModel`.
"""

import logging
from typing import Callable, NamedTuple, Optional, Tuple

import torch
import torch.distributions as dist
from sklearn.utils import check_random_state
from typeguard import typechecked

from blm.models.blm import BayesianLinearModel
from blm.samplers.base import RegressionData
from blm.typing import DesignMatrix

L = logging.getLogger(__name__)


class DIC(NamedTuple):
    dic: float
    """
    Deviance information criterion, ``mean_deviance + pd``.
    """

    mean_deviance: float
    """
    Posterior mean of the deviance, ``-2 log p(y | beta, sigma2)``.
    """

    pd: float
    """
    Effective number of parameters, mean deviance minus the deviance at the
    posterior mean.
    """


def _log_likelihood(data: RegressionData, coefficients: torch.Tensor,
                    sigma2: torch.Tensor) -> torch.Tensor:
    """
    Log likelihood of the data at each of a batch of draws.
    """
    y_hat = coefficients @ data.X.T
    return dist.Normal(y_hat, sigma2.sqrt().unsqueeze(-1)).log_prob(data.y).sum(dim=-1)


def _draws(model: BayesianLinearModel, burn: Optional[int]) -> Tuple[torch.Tensor, torch.Tensor]:
    samples = model.posterior_.samples(model._burn() if burn is None else burn)
    return samples[:, :-1], samples[:, -1]


def dic(model: BayesianLinearModel, burn: Optional[int] = None) -> DIC:
    coefficients, sigma2 = _draws(model, burn)

    deviance = -2 * _log_likelihood(model.data_, coefficients, sigma2)
    mean_deviance = deviance.mean().item()
    deviance_at_mean = -2 * _log_likelihood(
        model.data_, coefficients.mean(dim=0, keepdim=True),
        sigma2.mean().reshape(1)).item()

    pd = mean_deviance - deviance_at_mean
    return DIC(mean_deviance + pd, mean_deviance, pd)


def bayesian_r2(model: BayesianLinearModel, burn: Optional[int] = None) -> torch.Tensor:
    """
    Posterior draws of the Bayesian R-squared,
    ``var(X beta) / (var(X beta) + sigma2)``, one per retained iteration.
    """
    coefficients, sigma2 = _draws(model, burn)

    fit_variance = (coefficients @ model.data_.X.T).var(dim=1)
    return fit_variance / (fit_variance + sigma2)


@typechecked
def posterior_predictive(model: BayesianLinearModel,
                         X: Optional[DesignMatrix] = None,
                         burn: Optional[int] = None,
                         random_state=None) -> torch.Tensor:
    """
    Draw replicated responses ``y_rep ~ N(X beta, sigma2)``, one row per
    retained posterior draw.

    Args:
        X: Design matrix to predict at. Defaults to the sampled data.
        random_state: Seed or ``numpy.random.RandomState`` for the noise.

    Returns:
        ``n_draws * n_obs`` tensor.
    """
    coefficients, sigma2 = _draws(model, burn)
    X = model.data_.X if X is None else X.to(torch.float64)
    return _replicate(coefficients @ X.T, sigma2, random_state)


def _replicate(mean: torch.Tensor, sigma2: torch.Tensor, random_state) -> torch.Tensor:
    random_state = check_random_state(random_state)
    noise = dist.Normal(torch.zeros_like(mean), sigma2.sqrt().unsqueeze(-1))
    # Inverse CDF of uniforms from the numpy stream, so draws follow ``random_state``.
    u = torch.as_tensor(random_state.uniform(size=tuple(mean.shape)), dtype=mean.dtype)
    return mean + noise.icdf(u.clamp(1e-12, 1 - 1e-12))


def residual_skewness(residuals: torch.Tensor) -> torch.Tensor:
    """
    Sample skewness of each row of ``residuals``.
    """
    centered = residuals - residuals.mean(dim=-1, keepdim=True)
    return (centered ** 3).mean(dim=-1) / (centered ** 2).mean(dim=-1) ** 1.5


def residual_kurtosis(residuals: torch.Tensor) -> torch.Tensor:
    """
    Sample excess kurtosis of each row of ``residuals``.
    """
    centered = residuals - residuals.mean(dim=-1, keepdim=True)
    return (centered ** 4).mean(dim=-1) / (centered ** 2).mean(dim=-1) ** 2 - 3.


class PPC(NamedTuple):
    observed: torch.Tensor
    """
    Discrepancy of the observed data at each posterior draw.
    """

    replicated: torch.Tensor
    """
    Discrepancy of the replicated data at each posterior draw.
    """

    p_value: float
    """
    Posterior predictive p-value, the share of draws where the replicated
    discrepancy is at least the observed one.
    """


def posterior_predictive_check(model: BayesianLinearModel,
                               statistic: Callable[[torch.Tensor], torch.Tensor] = residual_skewness,
                               burn: Optional[int] = None,
                               random_state=None) -> PPC:
    """
    Compare a residual statistic of the observed data with the same statistic
    of data replicated from the posterior predictive distribution. Residuals are
    taken against ``X beta`` of each posterior draw, both for ``y`` and for its
    replicate. p-values near 0 or 1 flag a misfit.
    """
    coefficients, sigma2 = _draws(model, burn)
    data = model.data_
    mean = coefficients @ data.X.T
    y_rep = _replicate(mean, sigma2, random_state)

    observed = statistic(data.y - mean)
    replicated = statistic(y_rep - mean)
    p_value = (replicated >= observed).double().mean().item()
    L.debug("Posterior predictive check with %s: p = %.3f", statistic.__name__, p_value)
    return PPC(observed, replicated, p_value)
