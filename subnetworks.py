"""
Prebuilt subnetworks: winner-take-all groups, Hopfield networks and
a two-layer LMS network, plus the Trainable interface trainers use.
"""

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np
from network import NeuronGroup, SynapseGroup
from rules import BinaryRule, LinearRule


# ──────────────────────────────────────────────────────────────────────────────
# Training data
# ──────────────────────────────────────────────────────────────────────────────

class TrainingSet:
    """Input rows and matching target rows."""

    def __init__(self, inputs=None, targets=None):
        self.inputs  = None if inputs is None else np.atleast_2d(np.asarray(inputs, dtype=float))
        self.targets = None if targets is None else np.atleast_2d(np.asarray(targets, dtype=float))

    @property
    def is_initialized(self) -> bool:
        return self.inputs is not None and self.inputs.size > 0


class Trainable(ABC):
    """Anything a trainer can fit: inputs, outputs and a training set."""

    @property
    @abstractmethod
    def network(self): ...

    @property
    @abstractmethod
    def weights(self) -> SynapseGroup:
        """Input to output synapses the trainer writes into."""

    @property
    @abstractmethod
    def input_neurons(self) -> list: ...

    @property
    @abstractmethod
    def output_neurons(self) -> list: ...

    @property
    @abstractmethod
    def training_set(self) -> TrainingSet: ...

    def init_network(self):
        """Reset state before a training run. Nothing to do by default."""


# ──────────────────────────────────────────────────────────────────────────────
# Winner take all
# ──────────────────────────────────────────────────────────────────────────────

class WinnerTakeAll(NeuronGroup):
    """
    The neuron with the largest net input gets win_value, all others
    get lose_value. Ties go to the lowest index. With use_random a
    random neuron wins with probability random_prob.
    """

    def __init__(self, network, num_neurons: int, win_value: float = 1.0,
                 lose_value: float = 0.0, use_random: bool = False,
                 random_prob: float = 0.1, rng=None):
        super().__init__(network, num_neurons, label="WTA")
        if num_neurons < 1:
            raise ValueError("winner take all needs at least one neuron")
        self.win_value   = win_value
        self.lose_value  = lose_value
        self.use_random  = use_random
        self.random_prob = random_prob
        self.rng         = rng if rng is not None else np.random.default_rng()

    def winning_index(self) -> int:
        if self.use_random and self.rng.random() < self.random_prob:
            return int(self.rng.integers(0, len(self.neuron_list)))
        best_idx, best_val = 0, self.neuron_list[0].input
        for i, n in enumerate(self.neuron_list):
            if n.input > best_val:
                best_idx, best_val = i, n.input
        return best_idx

    def update(self):
        for n in self.neuron_list:
            n.update_inputs()
        winner = self.winning_index()
        for i, n in enumerate(self.neuron_list):
            n.force_set_activation(self.win_value if i == winner else self.lose_value)


# ──────────────────────────────────────────────────────────────────────────────
# Hopfield
# ──────────────────────────────────────────────────────────────────────────────

def bipolar(value: float) -> float:
    """Map binary 0 onto -1, leaving other values unchanged."""
    return -1.0 if value == 0 else value


class HopfieldUpdate(Enum):
    RAND = ("Random", "Randomly ordered sequential update (different every time)")
    SEQ  = ("Sequential", "Sequential update of neurons (same sequence every time)")
    SYNC = ("Synchronous", "Synchronous update of neurons")

    def __init__(self, display_name, description):
        self.display_name = display_name
        self.description  = description

    def update(self, hop):
        neurons = list(hop.neuron_group.neuron_list)
        if self is HopfieldUpdate.SYNC:
            hop.neuron_group.update()
            return
        if self is HopfieldUpdate.RAND:
            neurons = [neurons[i] for i in hop.rng.permutation(len(neurons))]
        for n in neurons:
            n.update_inputs()
            n.update()

    @classmethod
    def from_name(cls, name: str) -> "HopfieldUpdate":
        for hu in cls:
            if hu.display_name == name:
                return hu
        raise ValueError(f"No such Hopfield update function: {name!r}")

    @classmethod
    def names(cls) -> list:
        return [hu.display_name for hu in cls]


class Hopfield(Trainable):
    """Discrete Hopfield network of binary neurons with recurrent weights."""

    DEFAULT_NUM_UNITS = 36

    def __init__(self, network, num_neurons: int = DEFAULT_NUM_UNITS,
                 update_func: HopfieldUpdate = HopfieldUpdate.SYNC, rng=None):
        self._network    = network
        self.label       = "Hopfield network"
        self.update_func = update_func
        self.rng         = rng if rng is not None else np.random.default_rng()
        self._training_set = TrainingSet()

        self.neuron_group = NeuronGroup(network, num_neurons, label="H")
        self.neuron_group.set_neuron_type(BinaryRule(threshold=0, ceiling=1, floor=0))
        self.neuron_group.set_increment(1)
        self._weights = SynapseGroup(self.neuron_group, self.neuron_group)

    @property
    def network(self):
        return self._network

    @property
    def weights(self) -> SynapseGroup:
        return self._weights

    @property
    def flat_neuron_list(self) -> list:
        return list(self.neuron_group.neuron_list)

    @property
    def input_neurons(self) -> list:
        return self.flat_neuron_list

    @property
    def output_neurons(self) -> list:
        return self.flat_neuron_list

    @property
    def training_set(self) -> TrainingSet:
        return self._training_set

    def update(self):
        self.update_func.update(self)

    def randomize(self, low: float = -1.0, high: float = 1.0):
        """Random symmetric weights with an empty diagonal."""
        n = len(self.neuron_group)
        w = np.triu(self.rng.uniform(low, high, size=(n, n)), k=1)
        self.weights.set_weight_matrix(w + w.T)

    def train_on_current_pattern(self):
        for s in self.weights.synapses:
            s.strength += bipolar(s.source.activation) * bipolar(s.target.activation)

    def train(self):
        """Store every training pattern (outer product rule)."""
        if not self._training_set.is_initialized:
            raise ValueError("Hopfield training set is empty")
        patterns = np.vectorize(bipolar)(self._training_set.inputs)
        if patterns.shape[1] != len(self.neuron_group):
            raise ValueError(
                f"patterns have {patterns.shape[1]} columns, "
                f"network has {len(self.neuron_group)} neurons")
        w = patterns.T @ patterns
        np.fill_diagonal(w, 0.0)
        self.weights.set_weight_matrix(w)

    def set_pattern(self, pattern):
        self.neuron_group.set_activations(pattern)

    @property
    def pattern(self) -> np.ndarray:
        return self.neuron_group.activations


# ──────────────────────────────────────────────────────────────────────────────
# LMS network
# ──────────────────────────────────────────────────────────────────────────────

class LMSNetwork(Trainable):
    """Clamped input layer fully connected to a linear output layer."""

    def __init__(self, network, num_inputs: int, num_outputs: int):
        self._network = network
        self.label   = "LMS network"
        self.input_layer = NeuronGroup(network, num_inputs, label="in")
        self.input_layer.set_clamped(True)
        self.output_layer = NeuronGroup(network, num_outputs, label="out")
        self.output_layer.set_neuron_type(LinearRule(clipping=False))
        self._weights = SynapseGroup(self.input_layer, self.output_layer)
        self._training_set = TrainingSet()

    @property
    def network(self):
        return self._network

    @property
    def weights(self) -> SynapseGroup:
        return self._weights

    @property
    def flat_neuron_list(self) -> list:
        return self.input_layer.neuron_list + self.output_layer.neuron_list

    @property
    def input_neurons(self) -> list:
        return self.input_layer.neuron_list

    @property
    def output_neurons(self) -> list:
        return self.output_layer.neuron_list

    @property
    def training_set(self) -> TrainingSet:
        return self._training_set

    @training_set.setter
    def training_set(self, value: TrainingSet):
        self._training_set = value

    def init_network(self):
        self.output_layer.clear()

    def update(self):
        self.output_layer.update()

    def predict(self, inputs) -> np.ndarray:
        """Clamp inputs, run one update, return output activations."""
        self.input_layer.set_activations(inputs)
        self.update()
        return self.output_layer.activations
