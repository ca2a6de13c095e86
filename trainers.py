"""
Least mean squares offline trainer.

Solves for the input→output weights of a Trainable in one shot, either
with the Moore-Penrose pseudo inverse or the Wiener-Hopf normal
equations, optionally with ridge regression and input noise.
"""

from enum import Enum

import numpy as np
from rules import UniformNoise


class DataNotInitializedError(ValueError):
    """Training data is missing or does not fit the network."""


class SolutionType(Enum):
    MOORE_PENROSE = "Moore-Penrose"
    WIENER_HOPF   = "Wiener-Hopf"


class LMSOffline:

    def __init__(self, trainable, solution_type: SolutionType = SolutionType.MOORE_PENROSE,
                 alpha: float = 0.0, noise: UniformNoise = None,
                 on_progress=None):
        if alpha < 0:
            raise ValueError("ridge regression alpha must be >= 0")
        self.trainable     = trainable
        self.solution_type = solution_type
        self.alpha         = alpha
        self.noise         = noise
        self.on_progress   = on_progress    # called with (stage, fraction)
        self.error         = None

    def _check_data(self):
        ts = self.trainable.training_set
        if not ts.is_initialized or ts.targets is None:
            raise DataNotInitializedError("input and target data must both be set")
        n_in  = len(self.trainable.input_neurons)
        n_out = len(self.trainable.output_neurons)
        if ts.inputs.shape[1] != n_in:
            raise DataNotInitializedError(
                f"input data has {ts.inputs.shape[1]} columns, network has {n_in} inputs")
        if ts.targets.shape[1] != n_out:
            raise DataNotInitializedError(
                f"target data has {ts.targets.shape[1]} columns, network has {n_out} outputs")
        if ts.inputs.shape[0] != ts.targets.shape[0]:
            raise DataNotInitializedError("input and target row counts differ")
        return ts.inputs, ts.targets

    def _report(self, stage: str, fraction: float):
        if self.on_progress:
            self.on_progress(stage, fraction)

    def solve(self) -> np.ndarray:
        """Return the (n_inputs, n_outputs) weight matrix."""
        x, t = self._check_data()
        if self.noise is not None:
            x = x + self.noise.sample(x.shape)
        self._report("data", 0.25)

        n = x.shape[1]
        if self.solution_type is SolutionType.WIENER_HOPF:
            xtx = x.T @ x + self.alpha * np.eye(n)
            w = np.linalg.solve(xtx, x.T @ t)
        elif self.alpha > 0:
            # Ridge via the augmented system [x; sqrt(a) I] w = [t; 0]
            x_aug = np.vstack([x, np.sqrt(self.alpha) * np.eye(n)])
            t_aug = np.vstack([t, np.zeros((n, t.shape[1]))])
            w = np.linalg.pinv(x_aug) @ t_aug
        else:
            w = np.linalg.pinv(x) @ t
        self._report("solve", 0.75)
        return w

    def apply(self) -> float:
        """Fit, write the weights into the network, return mean squared error."""
        self.trainable.init_network()
        w = self.solve()
        self.trainable.weights.set_weight_matrix(w)
        ts = self.trainable.training_set
        self.error = float(np.mean((ts.inputs @ w - ts.targets) ** 2))
        self._report("done", 1.0)
        return self.error
