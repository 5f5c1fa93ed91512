from dataclasses import dataclass, field
from typing import List, Optional

from hydra.core.config_store import ConfigStore


GROUP = "dataset"


@dataclass
class DatasetConfig:
    random_state: Optional[int] = None


@dataclass
class SimulatedRegressionConfig(DatasetConfig):
    n_obs: int = 500

    coefficients: List[float] = field(default_factory=lambda: [4.2, 1.87])
    """
    Ground-truth coefficients. The first is the intercept.
    """

    sigma: float = 2.1
    """
    Ground-truth residual standard deviation.
    """

    x_mean: float = 0.0
    x_sd: float = 3.0

    _target_: str = "blm.generators.sample_dataset"
    _convert_: str = "all"


@dataclass
class SimulatedCorrelationConfig(DatasetConfig):
    n_obs: int = 200
    rho: float = 0.5

    _target_: str = "blm.generators.sample_correlated"


cs = ConfigStore.instance()
cs.store(group=GROUP, name="base_simulated_regression", node=SimulatedRegressionConfig)
cs.store(group=GROUP, name="base_simulated_correlation", node=SimulatedCorrelationConfig)
