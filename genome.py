"""
Genetic encoding for EvoBrain.

A genotype is a set of chromosomes. Node chromosomes hold NodeGenes,
each of which expresses into one Neuron. Connection chromosomes hold
ConnectionGenes, each naming a source and target node gene and
expressing into one Synapse between the neurons those genes produced.

Genes are hashed by identity, so a (source, target) pair of node genes
identifies a connection within a genotype.
"""

import itertools

import numpy as np
from network import Neuron, Synapse, ExpressionError
from rules import LinearRule

__all__ = ["NodeGene", "ConnectionGene", "Chromosome",
           "cartesian_product", "ExpressionError"]


# ──────────────────────────────────────────────────────────────────────────────
# Genes
# ──────────────────────────────────────────────────────────────────────────────

class NodeGene:
    """Template for one neuron."""

    def __init__(self, clamped: bool = False, activation: float = 0.0,
                 bias: float = 0.0, upper_bound: float = 1.0,
                 lower_bound: float = -1.0):
        self.clamped     = clamped
        self.activation  = activation
        self.bias        = bias
        self.upper_bound = upper_bound
        self.lower_bound = lower_bound

    def express(self, network) -> Neuron:
        rule = LinearRule(upper_bound=self.upper_bound, lower_bound=self.lower_bound)
        neuron = Neuron(network, rule=rule, activation=self.activation,
                        bias=self.bias, clamped=self.clamped)
        network.add_network_model(neuron)
        network.register_expression(self, neuron)
        return neuron

    def copy(self) -> "NodeGene":
        return NodeGene(self.clamped, self.activation, self.bias,
                        self.upper_bound, self.lower_bound)

    def __repr__(self):
        return f"NodeGene(bias={self.bias:+.3f}, clamped={self.clamped})"


class ConnectionGene:
    """Template for one synapse between two node genes."""

    def __init__(self, source: NodeGene, target: NodeGene, strength: float = 1.0):
        self.source   = source
        self.target   = target
        self.strength = strength

    def express(self, network) -> Synapse:
        synapse = Synapse(network.expressed_neuron(self.source),
                          network.expressed_neuron(self.target),
                          self.strength)
        network.add_network_model(synapse)
        return synapse

    def copy(self, gene_map: dict = None) -> "ConnectionGene":
        """Copy, re-pointing endpoints through gene_map (old → new node gene)."""
        gene_map = gene_map or {}
        return ConnectionGene(gene_map.get(self.source, self.source),
                              gene_map.get(self.target, self.target),
                              self.strength)

    def __repr__(self):
        return f"ConnectionGene(w={self.strength:+.3f})"


# ──────────────────────────────────────────────────────────────────────────────
# Chromosome
# ──────────────────────────────────────────────────────────────────────────────

class Chromosome:
    """Ordered, growable list of genes of one kind."""

    def __init__(self, genes=None):
        self.genes = list(genes) if genes is not None else []

    def add(self, gene):
        self.genes.append(gene)
        return gene

    def sample_one(self, rng=None):
        if not self.genes:
            raise IndexError("cannot sample from an empty chromosome")
        if rng is None:
            rng = np.random.default_rng()
        return self.genes[int(rng.integers(0, len(self.genes)))]

    def copy(self, gene_map: dict = None) -> "Chromosome":
        """
        Copy every gene. Node genes record old → new in gene_map (when
        given) so that connection chromosomes copied afterwards with the
        same map point at the new node genes.
        """
        new = Chromosome()
        for gene in self.genes:
            if isinstance(gene, ConnectionGene):
                new.add(gene.copy(gene_map))
            else:
                copied = new.add(gene.copy())
                if gene_map is not None:
                    gene_map[gene] = copied
        return new

    def __getitem__(self, index):
        return self.genes[index]

    def __iter__(self):
        return iter(self.genes)

    def __len__(self):
        return len(self.genes)

    def __add__(self, other) -> list:
        return self.genes + list(other)

    def __radd__(self, other) -> list:
        return list(other) + self.genes

    def __repr__(self):
        return f"Chromosome({len(self.genes)} genes)"


def cartesian_product(a, b) -> list:
    return list(itertools.product(a, b))
