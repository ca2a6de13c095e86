"""
Odor World for EvoBrain.

The world is a tile map: a stack of named layers, each a grid of tile
ids (0 = empty). Entities live at pixel coordinates on top of the map
and carry sensors (reading tiles around them) and effectors (moving and
turning them).

Coordinates: x grows east, y grows south (screen convention). Heading
is in degrees, 0 = east, counter-clockwise positive.
"""

import math

import numpy as np
from config import (MAP_WIDTH, MAP_HEIGHT, TILE_SIZE, TILE_TYPES,
                    MOVEMENT_SCALE, TURN_SCALE)


# ──────────────────────────────────────────────────────────────────────────────
# Tiles
# ──────────────────────────────────────────────────────────────────────────────

class TileSet:
    """Maps tile names to integer ids (1-based) and ids to tile types."""

    def __init__(self, tile_types: dict = None):
        tile_types = TILE_TYPES if tile_types is None else tile_types
        self.names = list(tile_types)
        self.types = dict(tile_types)
        self._ids  = {name: i + 1 for i, name in enumerate(self.names)}

    def id_of(self, name: str) -> int:
        try:
            return self._ids[name]
        except KeyError:
            raise ValueError(f"unknown tile {name!r}") from None

    def name_of(self, tile_id: int):
        if tile_id == 0:
            return None
        return self.names[tile_id - 1]

    def ids_of_type(self, tile_type: str) -> list:
        return [self._ids[n] for n, t in self.types.items() if t == tile_type]


class TileMapLayer:
    def __init__(self, name: str, width: int, height: int):
        self.name  = name
        self.tiles = np.zeros((height, width), dtype=np.int32)   # tiles[y, x]

    def resize(self, width: int, height: int):
        old = self.tiles
        self.tiles = np.zeros((height, width), dtype=np.int32)
        h, w = min(height, old.shape[0]), min(width, old.shape[1])
        self.tiles[:h, :w] = old[:h, :w]


class TileMap:
    """Layered tile grid. The first layer is the base (background) layer."""

    def __init__(self, width: int = MAP_WIDTH, height: int = MAP_HEIGHT,
                 tile_size: int = TILE_SIZE, tileset: TileSet = None):
        self.width     = width
        self.height    = height
        self.tile_size = tile_size
        self.tileset   = tileset or TileSet()
        self.layers    = [TileMapLayer("Base Layer", width, height)]

    # ──────────────────────────────────────────────────────────────────────────
    # Layers
    # ──────────────────────────────────────────────────────────────────────────

    def create_tile_map_layer(self, name: str) -> TileMapLayer:
        return TileMapLayer(name, self.width, self.height)

    def add_layer(self, layer: TileMapLayer) -> TileMapLayer:
        self.layers.append(layer)
        return layer

    def get_layer(self, name: str) -> TileMapLayer:
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise KeyError(f"no layer named {name!r}")

    def _layer(self, layer) -> TileMapLayer:
        if layer is None:
            return self.layers[0]
        if isinstance(layer, str):
            return self.get_layer(layer)
        return layer

    def update_map_size(self, width: int, height: int):
        self.width, self.height = width, height
        for layer in self.layers:
            layer.resize(width, height)

    # ──────────────────────────────────────────────────────────────────────────
    # Tiles
    # ──────────────────────────────────────────────────────────────────────────

    def _tile_id(self, tile) -> int:
        return tile if isinstance(tile, (int, np.integer)) else self.tileset.id_of(tile)

    def fill(self, tile, layer=None):
        self._layer(layer).tiles[:, :] = self._tile_id(tile)

    def clear(self, layer=None):
        self._layer(layer).tiles[:, :] = 0

    def set_tile(self, x: int, y: int, tile, layer=None):
        if not self.in_bounds(x, y):
            raise IndexError(f"tile ({x}, {y}) outside {self.width}x{self.height} map")
        self._layer(layer).tiles[y, x] = self._tile_id(tile)

    def get_tile(self, x: int, y: int, layer=None):
        """Name of the tile at (x, y) on a layer, or None if empty."""
        return self.tileset.name_of(int(self._layer(layer).tiles[y, x]))

    def tile_coordinates_of_type(self, tile_type: str) -> np.ndarray:
        """(k, 2) array of unique (x, y) grid cells holding a tile of that type."""
        ids = self.tileset.ids_of_type(tile_type)
        if not ids:
            return np.empty((0, 2), dtype=int)
        mask = np.zeros((self.height, self.width), dtype=bool)
        for layer in self.layers:
            mask |= np.isin(layer.tiles, ids)
        ys, xs = np.nonzero(mask)
        return np.column_stack([xs, ys])

    # ──────────────────────────────────────────────────────────────────────────
    # Coordinates
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def pixel_width(self) -> int:
        return self.width * self.tile_size

    @property
    def pixel_height(self) -> int:
        return self.height * self.tile_size

    def to_grid_coordinate(self, px: float, py: float) -> tuple:
        gx = int(px // self.tile_size)
        gy = int(py // self.tile_size)
        return (max(0, min(self.width - 1, gx)), max(0, min(self.height - 1, gy)))

    def tile_center(self, gx: int, gy: int) -> tuple:
        return ((gx + 0.5) * self.tile_size, (gy + 0.5) * self.tile_size)

    def random_grid_coordinate(self, rng) -> tuple:
        return (int(rng.integers(0, self.width)), int(rng.integers(0, self.height)))

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height


# ──────────────────────────────────────────────────────────────────────────────
# Decay functions
# ──────────────────────────────────────────────────────────────────────────────

class LinearDecayFunction:
    """1 at distance 0 falling linearly to 0 at `dispersion`."""

    def __init__(self, dispersion: float = 70.0):
        self.dispersion = dispersion

    def value(self, distance):
        if self.dispersion <= 0:
            return np.where(np.asarray(distance) <= 0, 1.0, 0.0)
        return np.clip(1.0 - np.asarray(distance) / self.dispersion, 0.0, 1.0)


class StepDecayFunction:
    """1 within `dispersion`, 0 beyond."""

    def __init__(self, dispersion: float = 70.0):
        self.dispersion = dispersion

    def value(self, distance):
        return np.where(np.asarray(distance) <= self.dispersion, 1.0, 0.0)


# ──────────────────────────────────────────────────────────────────────────────
# Sensors and effectors
# ──────────────────────────────────────────────────────────────────────────────

class TileSensor:
    """
    Senses tiles of one type. Sits `radius` px from its entity in the
    direction heading + angle; reads the decay function of the distance
    to the nearest matching tile centre.
    """

    def __init__(self, tile_type: str, radius: float = 0.0, angle: float = 0.0,
                 label: str = "", decay_function=None):
        self.tile_type      = tile_type
        self.radius         = radius
        self.angle          = angle
        self.label          = label or f"{tile_type} sensor {angle:.0f}"
        self.decay_function = decay_function or LinearDecayFunction()
        self.current_value  = 0.0
        self.nearest_tile   = None      # grid (x, y) of the nearest match
        self.entity         = None

    def location(self) -> tuple:
        ex, ey = self.entity.location
        rad = math.radians(self.entity.heading + self.angle)
        return (ex + self.radius * math.cos(rad), ey - self.radius * math.sin(rad))

    def update(self, tile_map: TileMap):
        coords = tile_map.tile_coordinates_of_type(self.tile_type)
        if len(coords) == 0:
            self.current_value = 0.0
            self.nearest_tile  = None
            return
        centers = (coords + 0.5) * tile_map.tile_size
        sx, sy = self.location()
        dists = np.hypot(centers[:, 0] - sx, centers[:, 1] - sy)
        nearest = int(np.argmin(dists))
        self.nearest_tile  = (int(coords[nearest, 0]), int(coords[nearest, 1]))
        self.current_value = float(self.decay_function.value(dists[nearest]))


class StraightMovement:
    """Moves its entity forward by amount * scaling_factor px per update."""

    label = "Straight"

    def __init__(self, scaling_factor: float = MOVEMENT_SCALE):
        self.scaling_factor = scaling_factor
        self.amount = 0.0
        self.entity = None

    def set_amount(self, value: float):
        self.amount = value

    def apply(self):
        self.entity.move_forward(self.amount * self.scaling_factor)
        self.amount = 0.0


class Turning:
    """Turns its entity left (direction=+1) or right (direction=-1)."""

    LEFT  = 1
    RIGHT = -1

    def __init__(self, direction: int, scaling_factor: float = TURN_SCALE):
        if direction not in (self.LEFT, self.RIGHT):
            raise ValueError("direction must be Turning.LEFT or Turning.RIGHT")
        self.direction      = direction
        self.scaling_factor = scaling_factor
        self.label  = "Left" if direction == self.LEFT else "Right"
        self.amount = 0.0
        self.entity = None

    def set_amount(self, value: float):
        self.amount = value

    def apply(self):
        self.entity.turn(self.direction * self.amount * self.scaling_factor)
        self.amount = 0.0


# ──────────────────────────────────────────────────────────────────────────────
# Entities
# ──────────────────────────────────────────────────────────────────────────────

class OdorWorldEntity:
    """An agent in the world, e.g. a cow."""

    def __init__(self, world, entity_type: str = "cow", name: str = ""):
        self.world       = world
        self.entity_type = entity_type
        self.name        = name
        self.location    = (0.0, 0.0)    # pixel centre
        self.heading     = 0.0           # degrees
        self.sensors     = []
        self.effectors   = []

    def add_sensor(self, sensor):
        sensor.entity = self
        self.sensors.append(sensor)
        return sensor

    def add_effector(self, effector):
        effector.entity = self
        self.effectors.append(effector)
        return effector

    def add_default_effectors(self):
        """Straight movement, left turning, right turning."""
        self.add_effector(StraightMovement())
        self.add_effector(Turning(Turning.LEFT))
        self.add_effector(Turning(Turning.RIGHT))

    def get_sensor(self, label: str):
        for s in self.sensors:
            if s.label == label:
                return s
        raise KeyError(f"{self.name} has no sensor labelled {label!r}")

    def move_forward(self, distance: float):
        rad = math.radians(self.heading)
        x, y = self.location
        self.location = self.world.clamp(x + distance * math.cos(rad),
                                         y - distance * math.sin(rad))

    def turn(self, degrees: float):
        self.heading = (self.heading + degrees) % 360.0

    def grid_coordinate(self) -> tuple:
        return self.world.tile_map.to_grid_coordinate(*self.location)


# ──────────────────────────────────────────────────────────────────────────────
# World
# ──────────────────────────────────────────────────────────────────────────────

class OdorWorld:
    """
    Tile map plus entities. update() applies every effector, then
    refreshes every sensor.
    """

    def __init__(self, width: int = MAP_WIDTH, height: int = MAP_HEIGHT,
                 tile_size: int = TILE_SIZE, tileset: TileSet = None):
        self.tile_map = TileMap(width, height, tile_size, tileset)
        self.entities = []

    def add_entity(self, entity: OdorWorldEntity) -> OdorWorldEntity:
        if not entity.name:
            entity.name = f"{entity.entity_type.capitalize()} {len(self.entities) + 1}"
        self.entities.append(entity)
        return entity

    def clamp(self, x: float, y: float) -> tuple:
        return (max(0.0, min(float(self.tile_map.pixel_width), x)),
                max(0.0, min(float(self.tile_map.pixel_height), y)))

    def update_sensors(self):
        for e in self.entities:
            for s in e.sensors:
                s.update(self.tile_map)

    def update(self):
        for e in self.entities:
            for eff in e.effectors:
                eff.apply()
        self.update_sensors()

    # ──────────────────────────────────────────────────────────────────────────
    # Snapshot for visualisation
    # ──────────────────────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        """JSON-friendly description of entities and typed tiles."""
        tiles = {}
        for t in set(v for v in self.tile_map.tileset.types.values() if v):
            tiles[t] = self.tile_map.tile_coordinates_of_type(t).tolist()
        return {
            "width":    self.tile_map.width,
            "height":   self.tile_map.height,
            "tileSize": self.tile_map.tile_size,
            "tiles":    tiles,
            "entities": [
                {"name": e.name, "x": round(e.location[0], 2),
                 "y": round(e.location[1], 2), "heading": round(e.heading, 2)}
                for e in self.entities
            ],
        }
