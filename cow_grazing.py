"""
Grazing cows.

Each sim puts a few cows in a grassy tile world sprinkled with flowers.
Every cow is driven by a small network expressed from a CowGenotype:

  3 flower sensors ──┐
  drive neuron (1.0) ┴→ hidden nodes → 3 outputs → straight / left / right

A cow earns one fitness point per flower it walks onto; the flower
is eaten and a new one grows somewhere else. A sim's fitness is the
fitness of its worst cow, so evolution favours sims where every cow
learns to graze.
"""

import numpy as np
from config import (
    MAX_GENERATIONS, ITERATIONS_PER_RUN, POPULATION_SIZE, ELIMINATION_RATIO,
    STOP_PERCENTILE, STOP_FITNESS, PEEK_PERCENTILES,
    NUM_COWS, NUM_SENSOR_INPUTS, INITIAL_HIDDEN, NUM_OUTPUTS, OUTPUT_BOUND,
    INITIAL_CONNECTIONS, DRIVE_INDEX, DRIVE_ACTIVATION,
    MUTATION_STEP, ADD_CONNECTION_PROB, ADD_HIDDEN_PROB,
    MAP_WIDTH, MAP_HEIGHT, BASE_TILE, FLOWER_TILE, FLOWER_TYPE, FLOWER_LAYER,
    NUM_FLOWERS, SENSOR_RADIUS, SENSOR_ANGLES, SENSOR_DISPERSION,
    CENTRAL_SENSOR_LABEL, CENTRAL_DISPERSION, FOUND_THRESHOLD,
)
from evolution import EvoSim, Evaluator
from genome import NodeGene, ConnectionGene, Chromosome, cartesian_product
from network import NeuronCollection
from workspace import Workspace, NetworkComponent, OdorWorldComponent
from world import (OdorWorldEntity, TileSensor, LinearDecayFunction,
                   StepDecayFunction)

MAX_SEED = 2**63 - 1


# ──────────────────────────────────────────────────────────────────────────────
# Genotype / phenotype
# ──────────────────────────────────────────────────────────────────────────────

class CowPhenotype:
    """The live network a CowGenotype expressed into."""

    def __init__(self, inputs: NeuronCollection, hiddens: NeuronCollection,
                 outputs: NeuronCollection, connections: list):
        self.inputs      = inputs
        self.hiddens     = hiddens
        self.outputs     = outputs
        self.connections = connections


class CowGenotype:

    def __init__(self, seed: int = None):
        if seed is None:
            seed = int(np.random.default_rng().integers(0, MAX_SEED))
        self.seed = seed
        self.rng  = np.random.default_rng(seed)
        rng = self.rng

        self.input_chromosome = Chromosome(
            [NodeGene(clamped=True) for _ in range(NUM_SENSOR_INPUTS)])
        # Never coupled; keeps the network active without sensory input
        self.input_chromosome.add(NodeGene(clamped=True, activation=DRIVE_ACTIVATION))

        self.hidden_chromosome = Chromosome(
            [NodeGene() for _ in range(INITIAL_HIDDEN)])
        self.output_chromosome = Chromosome(
            [NodeGene(upper_bound=OUTPUT_BOUND, lower_bound=-OUTPUT_BOUND)
             for _ in range(NUM_OUTPUTS)])

        self.connection_chromosome = Chromosome()
        for _ in range(INITIAL_CONNECTIONS):
            self.connection_chromosome.add(ConnectionGene(
                self.input_chromosome.sample_one(rng),
                self.hidden_chromosome.sample_one(rng)))
            self.connection_chromosome.add(ConnectionGene(
                self.hidden_chromosome.sample_one(rng),
                self.output_chromosome.sample_one(rng)))
        self.connection_chromosome.add(ConnectionGene(
            self.input_chromosome[DRIVE_INDEX],
            self.hidden_chromosome.sample_one(rng)))

    def express_with(self, network) -> CowPhenotype:
        def collection(chromosome, label):
            c = NeuronCollection(network, network.express(chromosome), label)
            network.add_network_model(c)
            return c

        inputs  = collection(self.input_chromosome, "input")
        hiddens = collection(self.hidden_chromosome, "hidden")
        outputs = collection(self.output_chromosome, "output")
        return CowPhenotype(inputs, hiddens, outputs,
                            network.express(self.connection_chromosome))

    def copy(self) -> "CowGenotype":
        new = CowGenotype(int(self.rng.integers(0, MAX_SEED)))
        gene_map = {}
        new.input_chromosome      = self.input_chromosome.copy(gene_map)
        new.hidden_chromosome     = self.hidden_chromosome.copy(gene_map)
        new.output_chromosome     = self.output_chromosome.copy(gene_map)
        new.connection_chromosome = self.connection_chromosome.copy(gene_map)
        return new

    def mutate(self):
        rng = self.rng
        for gene in self.hidden_chromosome:
            gene.bias += rng.uniform(-MUTATION_STEP, MUTATION_STEP)
        for gene in self.connection_chromosome:
            gene.strength += rng.uniform(-MUTATION_STEP, MUTATION_STEP)

        existing = {(c.source, c.target) for c in self.connection_chromosome}
        available = [
            pair for pair in cartesian_product(
                self.input_chromosome + self.hidden_chromosome + self.output_chromosome,
                self.hidden_chromosome + self.output_chromosome)
            if pair not in existing
        ]
        if rng.random() < ADD_CONNECTION_PROB and available:
            source, target = available[int(rng.integers(0, len(available)))]
            self.connection_chromosome.add(ConnectionGene(
                source, target, strength=rng.uniform(-1.0, 1.0)))

        # Grow the hidden layer
        if rng.random() < ADD_HIDDEN_PROB:
            self.hidden_chromosome.add(NodeGene())

    @property
    def num_genes(self) -> int:
        return (len(self.input_chromosome) + len(self.hidden_chromosome)
                + len(self.output_chromosome) + len(self.connection_chromosome))


# ──────────────────────────────────────────────────────────────────────────────
# Flowers
# ──────────────────────────────────────────────────────────────────────────────

def add_find_flower_action(workspace, entity, fitness_fn=None, rng=None):
    """
    Each iteration: if the entity's central sensor is on a flower, eat
    it, grow a new flower at a random cell and report +1 fitness.
    """
    if rng is None:
        rng = np.random.default_rng()
    world    = entity.world
    tile_map = world.tile_map
    flower_layer = tile_map.get_layer(FLOWER_LAYER)
    sensor   = entity.get_sensor(CENTRAL_SENSOR_LABEL)

    def find_flower():
        if sensor.current_value <= FOUND_THRESHOLD or sensor.nearest_tile is None:
            return
        # the sensed flower, which may sit in a cell next to the cow's own
        x, y = sensor.nearest_tile
        tile_map.set_tile(x, y, 0, flower_layer)
        nx, ny = tile_map.random_grid_coordinate(rng)
        tile_map.set_tile(nx, ny, FLOWER_TILE, flower_layer)
        # other cows must not eat the same flower this iteration
        world.update_sensors()
        if fitness_fn:
            fitness_fn(1.0)

    workspace.add_update_action(f"{entity.name} found a flower", find_flower)


# ──────────────────────────────────────────────────────────────────────────────
# Sim
# ──────────────────────────────────────────────────────────────────────────────

class CowSim(EvoSim):

    def __init__(self, cow_genotypes: list = None, workspace: Workspace = None,
                 iterations_per_run: int = ITERATIONS_PER_RUN,
                 num_cows: int = NUM_COWS):
        if cow_genotypes is None:
            cow_genotypes = [CowGenotype() for _ in range(num_cows)]
        if not cow_genotypes:
            raise ValueError("a cow sim needs at least one genotype")
        self.cow_genotypes      = cow_genotypes
        self.workspace          = workspace if workspace is not None else Workspace()
        self.iterations_per_run = iterations_per_run
        self.rng = np.random.default_rng(int(cow_genotypes[0].rng.integers(0, 2**31)))

        self.cow_fitnesses  = {}      # CowPhenotype → fitness
        self.cow_phenotypes = None    # set by build()

        # World
        self.world_component = self.workspace.add_workspace_component(
            OdorWorldComponent("Odor World 1"))
        self.odor_world = self.world_component.world
        tile_map = self.odor_world.tile_map
        tile_map.update_map_size(MAP_WIDTH, MAP_HEIGHT)
        tile_map.fill(BASE_TILE)
        self.flower_layer = tile_map.add_layer(tile_map.create_tile_map_layer(FLOWER_LAYER))

        # One network and one cow per genotype
        self.networks = [
            self.workspace.add_workspace_component(
                NetworkComponent(f"Network {i + 1}")).network
            for i in range(len(cow_genotypes))
        ]
        self.entities = []
        for i in range(len(cow_genotypes)):
            cow = self.odor_world.add_entity(OdorWorldEntity(self.odor_world, "cow"))
            cow.location = self.odor_world.clamp((i + 1) * 100.0, (i + 1) * 100.0)
            self.entities.append(cow)

        # Flower sensors that can guide the cow
        self.sensors = [
            [cow.add_sensor(TileSensor(
                FLOWER_TYPE, radius=SENSOR_RADIUS, angle=angle,
                decay_function=LinearDecayFunction(SENSOR_DISPERSION)))
             for angle in SENSOR_ANGLES]
            for cow in self.entities
        ]
        # Central sensor decides when a flower is actually found
        self.center_flower_sensors = {
            cow: cow.add_sensor(TileSensor(
                FLOWER_TYPE, radius=0.0, label=CENTRAL_SENSOR_LABEL,
                decay_function=StepDecayFunction(CENTRAL_DISPERSION)))
            for cow in self.entities
        }
        self.effectors = []
        for cow in self.entities:
            cow.add_default_effectors()
            self.effectors.append(cow.effectors)

        self.add_flowers()
        self.odor_world.update_sensors()

    # ──────────────────────────────────────────────────────────────────────────

    def add_flowers(self, num_flowers: int = NUM_FLOWERS):
        tile_map = self.odor_world.tile_map
        tile_map.clear(self.flower_layer)
        for _ in range(num_flowers):
            x, y = tile_map.random_grid_coordinate(self.rng)
            tile_map.set_tile(x, y, FLOWER_TILE, self.flower_layer)

    def _add_update_actions(self, cow: CowPhenotype, entity):
        def add_fitness(delta: float):
            self.cow_fitnesses[cow] = self.cow_fitnesses.get(cow, 0.0) + delta

        add_fitness(0.0)
        add_find_flower_action(self.workspace, entity, add_fitness, self.rng)

    def build(self):
        if self.cow_phenotypes is not None:
            return
        self.cow_phenotypes = [
            genotype.express_with(network)
            for genotype, network in zip(self.cow_genotypes, self.networks)
        ]
        couplings = self.workspace.coupling_manager
        for cow, sensors, effectors in zip(self.cow_phenotypes, self.sensors,
                                           self.effectors):
            couplings.couple(sensors, cow.inputs.neuron_list)
            couplings.couple(cow.outputs.neuron_list, effectors)
        for cow, entity in zip(self.cow_phenotypes, self.entities):
            self._add_update_actions(cow, entity)

    def layout_phenotypes(self):
        """Display positions used by the network diagram."""
        for cow in self.cow_phenotypes or []:
            cow.inputs.location  = (0.0, 150.0)
            cow.hiddens.location = (0.0, 60.0)
            cow.outputs.location = (0.0, -25.0)

    def mutate(self):
        for genotype in self.cow_genotypes:
            genotype.mutate()

    def visualize(self, workspace) -> "CowSim":
        return CowSim([g.copy() for g in self.cow_genotypes], workspace,
                      self.iterations_per_run)

    def copy(self) -> "CowSim":
        return CowSim([g.copy() for g in self.cow_genotypes], Workspace(),
                      self.iterations_per_run)

    def eval(self) -> float:
        self.build()
        self.workspace.iterate(self.iterations_per_run)
        return min(self.cow_fitnesses.values(), default=0.0)


# ──────────────────────────────────────────────────────────────────────────────
# Evolution
# ──────────────────────────────────────────────────────────────────────────────

def format_peek(evaluator, percentiles=PEEK_PERCENTILES) -> str:
    return " ".join(f"{p}: {evaluator.nth_percentile_fitness(p):.3f}"
                    for p in percentiles)


def print_peek(evaluator):
    print(f"[{evaluator.generation}] {format_peek(evaluator)}")


def make_evaluator(
    max_generations:    int   = MAX_GENERATIONS,
    iterations_per_run: int   = ITERATIONS_PER_RUN,
    population_size:    int   = POPULATION_SIZE,
    elimination_ratio:  float = ELIMINATION_RATIO,
    num_cows:           int   = NUM_COWS,
    stop_percentile:    float = STOP_PERCENTILE,
    stop_fitness:       float = STOP_FITNESS,
    seed:               int   = None,
    peek               = print_peek,
    stop_event         = None,     # threading.Event; set → stop after this generation
) -> Evaluator:
    """Evaluator for cow sims with the percentile / generation stopping rule."""
    master = np.random.default_rng(seed)

    def populate():
        genotypes = [CowGenotype(int(master.integers(0, MAX_SEED)))
                     for _ in range(num_cows)]
        return CowSim(genotypes, iterations_per_run=iterations_per_run)

    def should_stop(ev) -> bool:
        if stop_event is not None and stop_event.is_set():
            return True
        return (ev.nth_percentile_fitness(stop_percentile) > stop_fitness
                or ev.generation > max_generations)

    return Evaluator(populate, population_size, elimination_ratio,
                     should_stop, peek, percentiles=PEEK_PERCENTILES)


def run_evolution(**kwargs) -> list:
    """Evolve cow sims; returns them best first."""
    return make_evaluator(**kwargs).run()
