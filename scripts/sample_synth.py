"""
Simulate a dataset with known parameters and sample its posterior.

    python scripts/sample_synth.py model=blm_mh
    python scripts/sample_synth.py model=correlation dataset=simulated_correlation
"""

import logging
from pprint import pprint

import hydra
from omegaconf import OmegaConf

from blm.config import Config
from blm.evaluation import bayesian_r2, dic, posterior_predictive_check, residual_kurtosis, \
    residual_skewness
from blm.generators import SimulatedCorrelation, SimulatedRegression
from blm.models import BayesianLinearModel

L = logging.getLogger(__name__)


@hydra.main(version_base=None, config_path="../conf", config_name="config.yaml")
def main(cfg: Config):
    print(OmegaConf.to_yaml(cfg))

    # Set up Tensorboard singleton instance before sampling.
    tb = hydra.utils.call(cfg.viz.tensorboard)

    dataset = hydra.utils.call(cfg.dataset)
    model = hydra.utils.call(cfg.model)

    if isinstance(dataset, SimulatedRegression):
        if not isinstance(model, BayesianLinearModel):
            raise ValueError("A regression dataset needs model=blm or model=blm_mh")
        L.info("Ground truth: coefficients %s, sigma %.3f",
               dataset.coefficients.tolist(), dataset.sigma)
        model.sample_posterior(dataset.data)
    elif isinstance(dataset, SimulatedCorrelation):
        if isinstance(model, BayesianLinearModel):
            raise ValueError("A correlation dataset needs model=correlation")
        L.info("Ground truth: rho %.3f", dataset.rho)
        model.sample_posterior(dataset.x, dataset.y)
    else:
        raise ValueError(f"Unknown dataset type {type(dataset)}")

    pprint(model.posterior_means())
    pprint(model.acceptance_rates_)

    if isinstance(model, BayesianLinearModel):
        model_dic = dic(model)
        r2 = bayesian_r2(model)
        L.info("DIC %.2f (pD %.2f); Bayesian R2 %.3f",
               model_dic.dic, model_dic.pd, r2.mean().item())
        for statistic in (residual_skewness, residual_kurtosis):
            ppc = posterior_predictive_check(model, statistic)
            L.info("Posterior predictive p-value for %s: %.3f", statistic.__name__, ppc.p_value)

    model.to_dataframe().to_csv(cfg.viz.posterior_path, index=False)
    tb.close()


if __name__ == "__main__":
    main()
