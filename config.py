"""
EvoBrain Configuration
All tunable parameters for the grazing-cow neuroevolution simulation.
"""

# ─── Evolution ────────────────────────────────────────────────────────────────
MAX_GENERATIONS    = 50     # stop after this many generations
ITERATIONS_PER_RUN = 2000   # workspace iterations each sim is evaluated for
POPULATION_SIZE    = 100    # sims per generation
ELIMINATION_RATIO  = 0.5    # fraction of worst sims replaced each generation

# Stop early once this percentile of the population beats STOP_FITNESS
STOP_PERCENTILE  = 10
STOP_FITNESS     = 400.0
PEEK_PERCENTILES = (0, 10, 25, 50, 75, 90, 100)

# ─── Cow Genotype ─────────────────────────────────────────────────────────────
NUM_COWS            = 2      # cows (and networks) per sim
NUM_SENSOR_INPUTS   = 3      # input nodes driven by flower sensors
INITIAL_HIDDEN      = 2      # hidden nodes in a fresh genotype
NUM_OUTPUTS         = 3      # straight, left, right effectors
OUTPUT_BOUND        = 10.0   # output nodes clip to ±OUTPUT_BOUND
INITIAL_CONNECTIONS = 3      # input→hidden + hidden→output pairs
DRIVE_INDEX         = 3      # input gene forced to DRIVE_ACTIVATION
DRIVE_ACTIVATION    = 1.0

MUTATION_STEP       = 1.0    # biases/strengths move by U(-step, step)
ADD_CONNECTION_PROB = 0.25
ADD_HIDDEN_PROB     = 0.1

# ─── World ────────────────────────────────────────────────────────────────────
MAP_WIDTH   = 25          # tiles east-west
MAP_HEIGHT  = 25          # tiles north-south
TILE_SIZE   = 32          # pixels per tile edge
BASE_TILE   = "Grass1"
FLOWER_TILE = "DaisyCenter"
FLOWER_TYPE = "flower"
FLOWER_LAYER = "Flower Layer"
NUM_FLOWERS = 5

# Tile name → tile type (None = untyped background)
TILE_TYPES = {
    "Grass1":      None,
    "DaisyCenter": "flower",
    "Water":       "water",
}

# ─── Sensors / Effectors ──────────────────────────────────────────────────────
SENSOR_RADIUS        = 60.0    # px from the cow centre
SENSOR_ANGLES        = (0.0, 120.0, 240.0)
SENSOR_DISPERSION    = 250.0   # linear falloff distance
CENTRAL_SENSOR_LABEL = "centralFlowerSensor"
CENTRAL_DISPERSION   = 30.0    # step falloff distance (flower "found")
FOUND_THRESHOLD      = 0.5

MOVEMENT_SCALE = 1.0   # px moved per unit of straight-movement amount
TURN_SCALE     = 1.0   # degrees turned per unit of turning amount

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR          = "output"   # directory for saved images and charts
SNAPSHOT_ITERATIONS = 500      # replay length for the best sim snapshot
LOG_CSV           = True       # write per-generation CSV log
