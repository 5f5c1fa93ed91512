from typing import cast

from hydra import compose, initialize
import hydra.utils
import pytest

from blm.config import Config
from blm.generators import SimulatedCorrelation, SimulatedRegression
from blm.models import BayesianLinearModel, CorrelationModel
from blm.samplers import GibbsCoefficient, GibbsVariance, MetropolisCoefficient


def compose_config(*overrides) -> Config:
    with initialize(version_base=None, config_path="../../conf"):
        return cast(Config, compose(config_name="config.yaml", overrides=list(overrides)))


def test_blm_mh_config():
    cfg = compose_config("model=blm_mh", "model.iterations=200", "model.burn=50",
                         "model.pbar=false", "dataset.n_obs=100")

    dataset = hydra.utils.call(cfg.dataset)
    assert isinstance(dataset, SimulatedRegression)
    assert dataset.data.names == ["intercept", "x1"]

    model = hydra.utils.call(cfg.model)
    assert isinstance(model, BayesianLinearModel)
    assert model.samplers["intercept"]["tuning"] == 0.25

    model.sample_posterior(dataset.data)
    assert isinstance(model.plan_[0], MetropolisCoefficient)
    assert model.plan_[0].proposal.tuning == 0.25
    assert isinstance(model.plan_[1], GibbsCoefficient)
    assert isinstance(model.plan_[2], GibbsVariance)

    assert len(model.posterior_) == 2
    assert model.posterior_.n_iter == 200
    assert set(model.acceptance_rates_) == {"intercept"}


def test_correlation_config():
    cfg = compose_config("model=correlation", "dataset=simulated_correlation",
                         "model.iterations=100", "model.pbar=false")

    dataset = hydra.utils.call(cfg.dataset)
    assert isinstance(dataset, SimulatedCorrelation)

    model = hydra.utils.call(cfg.model)
    assert isinstance(model, CorrelationModel)
    model.sample_posterior(dataset.x, dataset.y)
    assert -1 < model.rho_ < 1


def test_unknown_sampler_type_in_config():
    cfg = compose_config("model.iterations=10", "model.pbar=false",
                         "model.samplers={x1:{type:slice}}")
    model = hydra.utils.call(cfg.model)
    with pytest.raises(ValueError):
        model.sample_posterior(hydra.utils.call(cfg.dataset).data)
