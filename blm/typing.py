from typing_extensions import TypeAlias

from jaxtyping import Float
import torch


T: TypeAlias = torch.Tensor


class DIMS:
    """
    Defines standard names for tensor dimensions used across samplers, models and
    scripts.
    """

    N = n_obs = "n_obs"
    """
    Number of observations (rows of the design matrix).
    """

    P = n_coef = "n_coef"
    """
    Number of regression coefficients, one per design matrix column (including
    the intercept column).
    """

    K = n_iter = "n_iter"
    """
    Number of stored iterations in a chain, including the initial state.
    """


DesignMatrix: TypeAlias = Float[T, "n_obs n_coef"]
Response: TypeAlias = Float[T, "n_obs"]
Coefficients: TypeAlias = Float[T, "n_coef"]
CrossProduct: TypeAlias = Float[T, "n_coef n_coef"]
