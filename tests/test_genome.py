"""Tests for genes, chromosomes and the cow genotype."""
import numpy as np
import pytest

from cow_grazing import CowGenotype
from config import OUTPUT_BOUND
from genome import NodeGene, ConnectionGene, Chromosome, cartesian_product
from network import Network


class TestChromosome:

    def test_copy_remaps_connections(self):
        a, b = NodeGene(), NodeGene()
        nodes = Chromosome([a, b])
        conns = Chromosome([ConnectionGene(a, b, 0.4)])
        gene_map = {}
        new_nodes = nodes.copy(gene_map)
        new_conns = conns.copy(gene_map)
        assert new_conns[0].source is new_nodes[0]
        assert new_conns[0].target is new_nodes[1]
        assert new_conns[0].strength == 0.4
        assert new_nodes[0] is not a

    def test_copy_is_deep(self):
        gene = NodeGene(bias=0.5)
        copy = Chromosome([gene]).copy()
        copy[0].bias = 2.0
        assert gene.bias == 0.5

    def test_concatenation(self):
        a, b, c = NodeGene(), NodeGene(), NodeGene()
        combined = Chromosome([a]) + Chromosome([b]) + Chromosome([c])
        assert combined == [a, b, c]

    def test_sample_one(self):
        genes = [NodeGene() for _ in range(5)]
        chrom = Chromosome(genes)
        assert chrom.sample_one(np.random.default_rng(0)) in genes
        with pytest.raises(IndexError):
            Chromosome().sample_one()

    def test_cartesian_product(self):
        assert cartesian_product([1, 2], ["a"]) == [(1, "a"), (2, "a")]


class TestCowGenotype:

    def test_initial_structure(self):
        g = CowGenotype(seed=1)
        assert len(g.input_chromosome) == 4
        assert len(g.hidden_chromosome) == 2
        assert len(g.output_chromosome) == 3
        assert len(g.connection_chromosome) == 7
        drive = g.input_chromosome[3]
        assert drive.clamped and drive.activation == 1.0
        assert g.connection_chromosome[-1].source is drive
        assert all(o.upper_bound == OUTPUT_BOUND and o.lower_bound == -OUTPUT_BOUND
                   for o in g.output_chromosome)

    def test_same_seed_same_wiring(self):
        def wiring(g):
            nodes = g.input_chromosome + g.hidden_chromosome + g.output_chromosome
            return [(nodes.index(c.source), nodes.index(c.target))
                    for c in g.connection_chromosome]
        assert wiring(CowGenotype(seed=5)) == wiring(CowGenotype(seed=5))

    def test_express(self):
        g = CowGenotype(seed=2)
        net = Network()
        ph = g.express_with(net)
        assert (len(ph.inputs), len(ph.hiddens), len(ph.outputs)) == (4, 2, 3)
        assert len(ph.connections) == 7
        assert ph.inputs.label == "input"
        assert ph.inputs.neuron_list[3].activation == 1.0
        assert all(n.clamped for n in ph.inputs.neuron_list)
        assert ph.outputs.neuron_list[0].upper_bound == OUTPUT_BOUND

    def test_copy_is_independent(self):
        g = CowGenotype(seed=3)
        c = g.copy()
        own = set(c.input_chromosome + c.hidden_chromosome + c.output_chromosome)
        for conn in c.connection_chromosome:
            assert conn.source in own and conn.target in own
        c.mutate()
        assert [x.strength for x in g.connection_chromosome] != \
               [x.strength for x in c.connection_chromosome]
        # copy still expresses on its own
        assert len(c.express_with(Network()).connections) == len(c.connection_chromosome)

    def test_mutation_grows_without_duplicate_connections(self):
        g = CowGenotype(seed=4)
        initial = [(c.source, c.target) for c in g.connection_chromosome]
        hidden_before = len(g.hidden_chromosome)
        for _ in range(60):
            g.mutate()
        added = [(c.source, c.target) for c in g.connection_chromosome][len(initial):]
        assert added, "60 mutations at p=0.25 should add a connection"
        assert len(set(added)) == len(added)
        assert not set(added) & set(initial)
        assert len(g.hidden_chromosome) >= hidden_before
        targets = set(g.hidden_chromosome + g.output_chromosome)
        assert all(t in targets for _, t in added)

    def test_mutation_moves_hidden_biases(self):
        g = CowGenotype(seed=6)
        g.mutate()
        assert any(h.bias != 0.0 for h in g.hidden_chromosome)
        assert all(i.bias == 0.0 for i in g.input_chromosome)
