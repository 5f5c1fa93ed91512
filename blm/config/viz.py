from dataclasses import dataclass, field

from hydra.core.config_store import ConfigStore


GROUP = "viz"


@dataclass
class TensorboardConfig:

    log_dir: str = "."
    """
    Directory to store tensorboard logs. Relative to Hydra output path.
    """

    flush_secs: int = 60

    _target_: str = "blm.tensorboard.Tensorboard.instance"


@dataclass
class VizConfig:

    tensorboard: TensorboardConfig = field(default_factory=lambda: TensorboardConfig())

    posterior_path: str = "posterior.csv"
    """
    Where to write the pooled chains. Relative to Hydra output path.
    """


cs = ConfigStore.instance()
cs.store(group=GROUP, name="base_viz", node=VizConfig)
cs.store(group=f"{GROUP}/tensorboard", name="base_tensorboard", node=TensorboardConfig)
