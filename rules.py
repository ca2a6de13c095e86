"""
Update rules for EvoBrain neurons and synapses.

A neuron rule turns a neuron's summed input (plus its bias) into a new
activation. A synapse rule may adjust a synapse's strength after each
network update.
"""

import numpy as np


# ──────────────────────────────────────────────────────────────────────────────
# Noise
# ──────────────────────────────────────────────────────────────────────────────

class UniformNoise:
    """Uniform real distribution on [floor, ceiling)."""

    def __init__(self, floor: float = 0.0, ceiling: float = 1.0, rng=None):
        if ceiling < floor:
            raise ValueError(f"ceiling {ceiling} is below floor {floor}")
        self.floor   = floor
        self.ceiling = ceiling
        self.rng     = rng if rng is not None else np.random.default_rng()

    def sample(self, size=None):
        return self.rng.uniform(self.floor, self.ceiling, size)

    def deep_copy(self):
        return UniformNoise(self.floor, self.ceiling)


# ──────────────────────────────────────────────────────────────────────────────
# Neuron rules
# ──────────────────────────────────────────────────────────────────────────────

class LinearRule:
    """
    Standard linear neuron: activation = input * slope + bias,
    optionally noisy and clipped to [lower_bound, upper_bound].
    """

    name = "Linear"

    def __init__(self, slope: float = 1.0, clipping: bool = True,
                 upper_bound: float = 1.0, lower_bound: float = -1.0,
                 add_noise: bool = False, noise_generator=None):
        self.slope           = slope
        self.clipping        = clipping
        self.upper_bound     = upper_bound
        self.lower_bound     = lower_bound
        self.add_noise       = add_noise
        self.noise_generator = noise_generator or UniformNoise()

    def apply(self, neuron):
        neuron.activation = self.linear_rule(neuron.input, neuron.bias)

    def linear_rule(self, value, bias):
        """Works on scalars and on numpy arrays of inputs/biases alike."""
        ret = value * self.slope + bias
        if self.add_noise:
            ret = ret + self.noise_generator.sample(np.shape(ret) or None)
        if self.clipping:
            ret = self.clip(ret)
        return ret

    def clip(self, val):
        if np.ndim(val):
            return np.clip(val, self.lower_bound, self.upper_bound)
        return max(self.lower_bound, min(self.upper_bound, val))

    def get_derivative(self, val: float) -> float:
        if val >= self.upper_bound or val <= self.lower_bound:
            return 0.0
        return self.slope

    def contextual_increment(self, neuron):
        act = neuron.activation
        if self.clipping:
            if act >= self.upper_bound:
                return
            act = self.clip(act + neuron.increment)
        else:
            act = act + neuron.increment
        neuron.force_set_activation(act)

    def contextual_decrement(self, neuron):
        act = neuron.activation
        if self.clipping:
            if act <= self.lower_bound:
                return
            act = self.clip(act - neuron.increment)
        else:
            act = act - neuron.increment
        neuron.force_set_activation(act)

    def deep_copy(self):
        return LinearRule(self.slope, self.clipping, self.upper_bound,
                          self.lower_bound, self.add_noise,
                          self.noise_generator.deep_copy())


class BinaryRule:
    """Ceiling if input + bias exceeds the threshold, floor otherwise."""

    name = "Binary"

    def __init__(self, threshold: float = 0.5, ceiling: float = 1.0,
                 floor: float = 0.0):
        self.threshold = threshold
        self.ceiling   = ceiling
        self.floor     = floor

    @property
    def upper_bound(self):
        return self.ceiling

    @property
    def lower_bound(self):
        return self.floor

    def apply(self, neuron):
        neuron.activation = self.binary_rule(neuron.input, neuron.bias)

    def binary_rule(self, value, bias):
        return self.ceiling if value + bias > self.threshold else self.floor

    def contextual_increment(self, neuron):
        neuron.force_set_activation(self.ceiling)

    def contextual_decrement(self, neuron):
        neuron.force_set_activation(self.floor)

    def deep_copy(self):
        return BinaryRule(self.threshold, self.ceiling, self.floor)


# ──────────────────────────────────────────────────────────────────────────────
# Synapse rules
# ──────────────────────────────────────────────────────────────────────────────

class StaticSynapseRule:
    """Strength never changes."""

    name = "Static"

    def __init__(self, clipped: bool = False):
        self.clipped = clipped

    def apply(self, synapse):
        pass

    def deep_copy(self):
        return StaticSynapseRule(self.clipped)
