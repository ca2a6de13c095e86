"""Tests for the LMS offline trainer."""
import numpy as np
import pytest

from network import Network
from rules import UniformNoise
from subnetworks import LMSNetwork, TrainingSet
from trainers import LMSOffline, SolutionType, DataNotInitializedError

INPUTS  = [[0, 0], [0, 1], [1, 0], [1, 1]]
TARGETS = [[0], [-1], [1], [0]]      # x0 - x1


def _lms():
    lms = LMSNetwork(Network(), 2, 1)
    lms.training_set = TrainingSet(INPUTS, TARGETS)
    return lms


class TestLMSOffline:

    @pytest.mark.parametrize("solution", list(SolutionType))
    def test_exact_fit(self, solution):
        lms = _lms()
        error = LMSOffline(lms, solution).apply()
        assert error == pytest.approx(0.0, abs=1e-10)
        np.testing.assert_allclose(lms.weights.weight_matrix(), [[1], [-1]], atol=1e-9)
        assert lms.predict([1, 0])[0] == pytest.approx(1.0)

    @pytest.mark.parametrize("solution", list(SolutionType))
    def test_ridge_shrinks_weights(self, solution):
        plain = _lms()
        LMSOffline(plain, solution).apply()
        ridge = _lms()
        error = LMSOffline(ridge, solution, alpha=5.0).apply()
        assert error > 0
        assert (np.abs(ridge.weights.weight_matrix()).sum()
                < np.abs(plain.weights.weight_matrix()).sum())

    def test_noise_perturbs_solution(self):
        lms = _lms()
        noise = UniformNoise(0.0, 0.5, np.random.default_rng(0))
        LMSOffline(lms, noise=noise).apply()
        assert not np.allclose(lms.weights.weight_matrix(), [[1], [-1]])

    def test_progress_reported(self):
        stages = []
        LMSOffline(_lms(), on_progress=lambda s, f: stages.append((s, f))).apply()
        assert stages[-1] == ("done", 1.0)

    def test_missing_data(self):
        lms = LMSNetwork(Network(), 2, 1)
        with pytest.raises(DataNotInitializedError):
            LMSOffline(lms).apply()

    def test_mismatched_columns(self):
        lms = LMSNetwork(Network(), 3, 1)
        lms.training_set = TrainingSet(INPUTS, TARGETS)
        with pytest.raises(DataNotInitializedError):
            LMSOffline(lms).apply()

    def test_negative_alpha(self):
        with pytest.raises(ValueError):
            LMSOffline(_lms(), alpha=-1.0)
