"""Tests for neuron and synapse update rules."""
import numpy as np
import pytest

from network import Neuron
from rules import LinearRule, BinaryRule, StaticSynapseRule, UniformNoise


class TestLinearRule:

    def test_slope_and_bias(self):
        rule = LinearRule(slope=2.0)
        assert rule.linear_rule(0.25, 0.1) == pytest.approx(0.6)

    def test_clipping(self):
        rule = LinearRule()
        assert rule.linear_rule(3.0, 0.0) == 1.0
        assert rule.linear_rule(-3.0, 0.0) == -1.0

    def test_no_clipping(self):
        rule = LinearRule(clipping=False)
        assert rule.linear_rule(3.0, 0.5) == pytest.approx(3.5)

    def test_array_inputs(self):
        rule = LinearRule()
        out = rule.linear_rule(np.array([-2.0, 0.5, 2.0]), np.zeros(3))
        np.testing.assert_allclose(out, [-1.0, 0.5, 1.0])

    def test_noise_stays_within_generator_range(self):
        rule = LinearRule(clipping=False, add_noise=True,
                          noise_generator=UniformNoise(0.0, 0.1,
                                                       np.random.default_rng(0)))
        for _ in range(20):
            assert 1.0 <= rule.linear_rule(1.0, 0.0) < 1.1

    def test_derivative(self):
        rule = LinearRule(slope=3.0)
        assert rule.get_derivative(0.0) == 3.0
        assert rule.get_derivative(1.0) == 0.0
        assert rule.get_derivative(-1.5) == 0.0

    def test_contextual_increment_respects_bound(self):
        n = Neuron(rule=LinearRule())
        n.increment = 0.3
        n.force_set_activation(0.9)
        n.increment_activation()
        assert n.activation == 1.0
        n.increment_activation()
        assert n.activation == 1.0
        n.decrement_activation()
        assert n.activation == pytest.approx(0.7)

    def test_deep_copy_is_independent(self):
        rule = LinearRule(slope=2.0, upper_bound=5.0)
        copy = rule.deep_copy()
        copy.upper_bound = 1.0
        assert rule.upper_bound == 5.0
        assert copy.slope == 2.0

    def test_apply_uses_neuron_input_and_bias(self):
        n = Neuron(rule=LinearRule(), bias=0.25)
        n.input = 0.5
        n.update()
        assert n.activation == pytest.approx(0.75)


class TestBinaryRule:

    def test_threshold(self):
        rule = BinaryRule(threshold=0.5)
        assert rule.binary_rule(0.6, 0.0) == 1.0
        assert rule.binary_rule(0.4, 0.0) == 0.0
        assert rule.binary_rule(0.4, 0.2) == 1.0

    def test_bounds_are_floor_and_ceiling(self):
        rule = BinaryRule(ceiling=2.0, floor=-2.0)
        assert rule.upper_bound == 2.0
        assert rule.lower_bound == -2.0


class TestMisc:

    def test_static_rule_leaves_strength(self):
        from network import Synapse
        s = Synapse(Neuron(), Neuron(), 0.7, rule=StaticSynapseRule())
        s.update()
        assert s.strength == 0.7

    def test_uniform_noise_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            UniformNoise(1.0, 0.0)
