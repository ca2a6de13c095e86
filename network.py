"""
Network execution engine for EvoBrain.

A Network holds loose neurons and synapses plus higher level models
(neuron collections, neuron groups, synapse groups, subnetworks).

One call to Network.update() is one buffered iteration:
  1. every loose neuron gathers its input
  2. every loose neuron applies its update rule
  3. every model updates itself (groups run their own update policy)
  4. synapse rules run
"""

import numpy as np
from rules import LinearRule, StaticSynapseRule


class ExpressionError(RuntimeError):
    """A gene could not be expressed into a network."""


# ──────────────────────────────────────────────────────────────────────────────
# Neurons and synapses
# ──────────────────────────────────────────────────────────────────────────────

class Neuron:
    """A single node. Clamped neurons keep their activation across updates."""

    def __init__(self, network=None, rule=None, activation: float = 0.0,
                 bias: float = 0.0, clamped: bool = False, label: str = ""):
        self.network      = network
        self.rule         = rule if rule is not None else LinearRule()
        self.activation   = activation
        self.bias         = bias
        self.clamped      = clamped
        self.label        = label
        self.increment    = 0.1
        self.input        = 0.0
        self.fan_in       = []
        self.fan_out      = []
        self.parent_group = None
        self._external    = 0.0

    @property
    def upper_bound(self):
        return self.rule.upper_bound

    @upper_bound.setter
    def upper_bound(self, value):
        self.rule.upper_bound = value

    @property
    def lower_bound(self):
        return self.rule.lower_bound

    @lower_bound.setter
    def lower_bound(self, value):
        self.rule.lower_bound = value

    def add_input_value(self, value: float):
        """External input, consumed by the next update_inputs()."""
        self._external += value

    def update_inputs(self):
        total = self._external
        for s in self.fan_in:
            total += s.psr
        self.input     = total
        self._external = 0.0

    def update(self):
        if self.clamped:
            return
        self.rule.apply(self)

    def force_set_activation(self, value: float):
        self.activation = value

    def increment_activation(self):
        self.rule.contextual_increment(self)

    def decrement_activation(self):
        self.rule.contextual_decrement(self)

    def clear(self):
        self.activation = 0.0
        self.input      = 0.0
        self._external  = 0.0

    def __repr__(self):
        return f"Neuron({self.label or id(self)}, act={self.activation:.3f})"


class Synapse:
    """Weighted directed connection. Registers itself on both endpoints."""

    def __init__(self, source: Neuron, target: Neuron, strength: float = 1.0,
                 rule=None):
        self.source   = source
        self.target   = target
        self.strength = strength
        self.enabled  = True
        self.rule     = rule if rule is not None else StaticSynapseRule()
        source.fan_out.append(self)
        target.fan_in.append(self)

    @property
    def psr(self) -> float:
        """Post-synaptic response."""
        if not self.enabled:
            return 0.0
        return self.source.activation * self.strength

    def update(self):
        self.rule.apply(self)

    def __repr__(self):
        return f"Synapse({self.source.label} → {self.target.label}, w={self.strength:+.3f})"


# ──────────────────────────────────────────────────────────────────────────────
# Models
# ──────────────────────────────────────────────────────────────────────────────

class NeuronCollection:
    """A labelled view over loose neurons. Has no update behaviour of its own."""

    def __init__(self, network, neurons: list, label: str = ""):
        self.network     = network
        self.neuron_list = list(neurons)
        self.label       = label
        self.location    = (0.0, 0.0)

    @property
    def activations(self) -> np.ndarray:
        return np.array([n.activation for n in self.neuron_list])

    def update(self):
        pass

    def __len__(self):
        return len(self.neuron_list)


class NeuronGroup:
    """
    A group owning its neurons. The default update is buffered: all
    neurons gather input, then all neurons apply their rule.
    """

    def __init__(self, network, num_neurons: int, label: str = ""):
        self.network     = network
        self.label       = label
        self.location    = (0.0, 0.0)
        self.neuron_list = []
        for i in range(num_neurons):
            n = Neuron(network, label=f"{label}{i}")
            n.parent_group = self
            self.neuron_list.append(n)

    def set_neuron_type(self, rule):
        """Give every neuron its own copy of rule."""
        for n in self.neuron_list:
            n.rule = rule.deep_copy()

    def set_increment(self, increment: float):
        for n in self.neuron_list:
            n.increment = increment

    def set_clamped(self, clamped: bool):
        for n in self.neuron_list:
            n.clamped = clamped

    @property
    def activations(self) -> np.ndarray:
        return np.array([n.activation for n in self.neuron_list])

    def set_activations(self, values):
        if len(values) != len(self.neuron_list):
            raise ValueError(
                f"expected {len(self.neuron_list)} values, got {len(values)}")
        for n, v in zip(self.neuron_list, values):
            n.force_set_activation(float(v))

    def update(self):
        for n in self.neuron_list:
            n.update_inputs()
        for n in self.neuron_list:
            n.update()

    def clear(self):
        for n in self.neuron_list:
            n.clear()

    def __len__(self):
        return len(self.neuron_list)


class SynapseGroup:
    """All-to-all synapses from one neuron group to another."""

    def __init__(self, source, target, strength: float = 0.0):
        self.source = source
        self.target = target
        self.recurrent = source is target
        self.synapses = []
        for src in source.neuron_list:
            for tar in target.neuron_list:
                if self.recurrent and src is tar:
                    continue
                self.synapses.append(Synapse(src, tar, strength))

    def randomize(self, rng=None, low: float = -1.0, high: float = 1.0):
        if rng is None:
            rng = np.random.default_rng()
        for s in self.synapses:
            s.strength = float(rng.uniform(low, high))

    def weight_matrix(self) -> np.ndarray:
        """Weights as a (len(source), len(target)) matrix; missing = 0."""
        src_idx = {id(n): i for i, n in enumerate(self.source.neuron_list)}
        tar_idx = {id(n): j for j, n in enumerate(self.target.neuron_list)}
        w = np.zeros((len(self.source), len(self.target)))
        for s in self.synapses:
            w[src_idx[id(s.source)], tar_idx[id(s.target)]] = s.strength
        return w

    def set_weight_matrix(self, w):
        w = np.asarray(w, dtype=float)
        if w.shape != (len(self.source), len(self.target)):
            raise ValueError(
                f"weight matrix shape {w.shape} does not match "
                f"({len(self.source)}, {len(self.target)})")
        src_idx = {id(n): i for i, n in enumerate(self.source.neuron_list)}
        tar_idx = {id(n): j for j, n in enumerate(self.target.neuron_list)}
        for s in self.synapses:
            s.strength = float(w[src_idx[id(s.source)], tar_idx[id(s.target)]])

    def update(self):
        for s in self.synapses:
            s.update()


# ──────────────────────────────────────────────────────────────────────────────
# Network
# ──────────────────────────────────────────────────────────────────────────────

class Network:
    """Container and update loop for neurons, synapses and models."""

    def __init__(self, time_step: float = 1.0):
        self.neurons    = []     # loose neurons
        self.synapses   = []     # loose synapses
        self.models     = []     # collections, groups, subnetworks
        self.time_step  = time_step
        self.time       = 0.0
        self.iterations = 0
        # node gene → expressed neuron (identity keyed)
        self._expressed = {}

    def add_network_model(self, model):
        if isinstance(model, Neuron):
            model.network = self
            self.neurons.append(model)
        elif isinstance(model, Synapse):
            self.synapses.append(model)
        else:
            self.models.append(model)
        return model

    def express(self, chromosome) -> list:
        """
        Express every gene of a chromosome into this network.
        Node genes yield neurons, connection genes yield synapses.
        """
        return [gene.express(self) for gene in chromosome]

    def register_expression(self, gene, neuron):
        self._expressed[gene] = neuron

    def expressed_neuron(self, gene) -> Neuron:
        try:
            return self._expressed[gene]
        except KeyError:
            raise ExpressionError(
                "connection endpoint was not expressed into this network") from None

    def get_models(self, kind) -> list:
        return [m for m in self.models if isinstance(m, kind)]

    @property
    def flat_neuron_list(self) -> list:
        neurons = list(self.neurons)
        for m in self.models:
            if isinstance(m, NeuronGroup):
                neurons.extend(m.neuron_list)
            elif hasattr(m, "flat_neuron_list"):
                neurons.extend(m.flat_neuron_list)
        return neurons

    def update(self):
        for n in self.neurons:
            n.update_inputs()
        for n in self.neurons:
            n.update()
        for m in self.models:
            m.update()
        for s in self.synapses:
            s.update()
        self.iterations += 1
        self.time += self.time_step

    def clear_activations(self):
        for n in self.flat_neuron_list:
            n.clear()
