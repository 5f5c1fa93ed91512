from torch.utils.tensorboard import SummaryWriter


class Tensorboard:
    """
    Single access point for Tensorboard SummaryWriter which manages global steps.

    Nothing is written until a script creates the instance (normally through
    ``hydra.utils.call(cfg.viz.tensorboard)``); library code reporting through
    ``tb_add_scalar`` is a no-op before that.
    """

    _disabled = False

    @classmethod
    def disable(cls):
        cls._disabled = True

    @classmethod
    def active(cls) -> bool:
        instance = getattr(Tensorboard, "_instance", None)
        return not cls._disabled and hasattr(instance, "summary_writer")

    @staticmethod
    def instance(*args, **kwargs):
        if not hasattr(Tensorboard, "_instance"):
            Tensorboard._instance = Tensorboard(*args, **kwargs)
        return Tensorboard._instance

    def __init__(self, log_dir=".", **kwargs):
        if self._disabled:
            return

        # We use default log_dir=. because we've already changed dir into the Hydra
        # output directory.
        self.global_step = 0
        self.summary_writer = SummaryWriter(
            log_dir=log_dir,
            **kwargs
        )

    def add_scalar(self, tag, scalar_value, global_step=None):
        if self._disabled:
            return
        if global_step is None:
            global_step = self.global_step
        self.summary_writer.add_scalar(tag, scalar_value, global_step)

    def close(self):
        if self._disabled:
            return
        self.summary_writer.close()


def tb_add_scalar(tag, scalar_value, global_step=None):
    if Tensorboard.active():
        Tensorboard.instance().add_scalar(tag, scalar_value, global_step)
