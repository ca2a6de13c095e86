"""Tests for the tile map, sensors and effectors."""
import math

import pytest

from config import FLOWER_TILE, FLOWER_TYPE
from world import (TileMap, OdorWorld, OdorWorldEntity, TileSensor,
                   LinearDecayFunction, StepDecayFunction, StraightMovement,
                   Turning)


def _world_with_flower(gx=5, gy=5):
    world = OdorWorld(10, 10, 32)
    tm = world.tile_map
    tm.fill("Grass1")
    layer = tm.add_layer(tm.create_tile_map_layer("Flowers"))
    tm.set_tile(gx, gy, FLOWER_TILE, layer)
    return world


class TestTileMap:

    def test_fill_set_get_clear(self):
        tm = TileMap(4, 3)
        tm.fill("Grass1")
        assert tm.get_tile(3, 2) == "Grass1"
        layer = tm.add_layer(tm.create_tile_map_layer("Top"))
        assert tm.get_tile(1, 1, layer) is None
        tm.set_tile(1, 1, FLOWER_TILE, "Top")
        assert tm.get_tile(1, 1, "Top") == FLOWER_TILE
        tm.clear(layer)
        assert tm.get_tile(1, 1, "Top") is None

    def test_errors(self):
        tm = TileMap(4, 4)
        with pytest.raises(ValueError):
            tm.fill("Lava")
        with pytest.raises(KeyError):
            tm.get_layer("missing")
        with pytest.raises(IndexError):
            tm.set_tile(4, 0, "Grass1")

    def test_tile_coordinates_of_type(self):
        tm = TileMap(6, 6)
        tm.fill("Grass1")
        top = tm.add_layer(tm.create_tile_map_layer("Top"))
        tm.set_tile(1, 2, FLOWER_TILE, top)
        tm.set_tile(4, 0, FLOWER_TILE)
        coords = {tuple(c) for c in tm.tile_coordinates_of_type(FLOWER_TYPE)}
        assert coords == {(1, 2), (4, 0)}
        assert len(tm.tile_coordinates_of_type("unknown")) == 0

    def test_resize_keeps_existing_tiles(self):
        tm = TileMap(3, 3)
        tm.set_tile(2, 2, FLOWER_TILE)
        tm.update_map_size(25, 25)
        assert tm.get_tile(2, 2) == FLOWER_TILE
        assert tm.pixel_width == 25 * tm.tile_size

    def test_grid_conversion(self):
        tm = TileMap(10, 10, 32)
        assert tm.to_grid_coordinate(100, 100) == (3, 3)
        assert tm.to_grid_coordinate(-5, 1000) == (0, 9)
        assert tm.tile_center(3, 3) == (112.0, 112.0)


class TestDecay:

    def test_linear(self):
        f = LinearDecayFunction(250)
        assert f.value(0) == 1.0
        assert f.value(125) == pytest.approx(0.5)
        assert f.value(300) == 0.0

    def test_step(self):
        f = StepDecayFunction(30)
        assert f.value(29.9) == 1.0
        assert f.value(30.1) == 0.0


class TestSensors:

    def test_central_sensor_on_flower(self):
        world = _world_with_flower()
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        cow.location = world.tile_map.tile_center(5, 5)
        s = cow.add_sensor(TileSensor(FLOWER_TYPE, label="center",
                                      decay_function=StepDecayFunction(30)))
        world.update_sensors()
        assert s.current_value == 1.0
        assert s.nearest_tile == (5, 5)
        cow.location = (cow.location[0] + 40, cow.location[1])
        world.update_sensors()
        assert s.current_value == 0.0

    def test_sensor_location_follows_heading(self):
        world = OdorWorld(10, 10)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        cow.location = (100.0, 100.0)
        cow.heading = 90.0
        s = cow.add_sensor(TileSensor(FLOWER_TYPE, radius=60, angle=0))
        x, y = s.location()
        assert x == pytest.approx(100.0)
        assert y == pytest.approx(40.0)

    def test_linear_sensor_value(self):
        world = _world_with_flower(0, 0)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        cx, cy = world.tile_map.tile_center(0, 0)
        cow.location = (cx + 125.0, cy)
        s = cow.add_sensor(TileSensor(FLOWER_TYPE,
                                      decay_function=LinearDecayFunction(250)))
        world.update_sensors()
        assert s.current_value == pytest.approx(0.5)

    def test_no_matching_tiles(self):
        world = OdorWorld(5, 5)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        s = cow.add_sensor(TileSensor(FLOWER_TYPE))
        world.update_sensors()
        assert s.current_value == 0.0
        assert s.nearest_tile is None


class TestEffectorsAndEntities:

    def test_default_effectors(self):
        world = OdorWorld(10, 10)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        cow.add_default_effectors()
        assert [e.label for e in cow.effectors] == ["Straight", "Left", "Right"]

    def test_straight_movement(self):
        world = OdorWorld(10, 10)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        cow.location = (100.0, 100.0)
        move = cow.add_effector(StraightMovement(scaling_factor=1.0))
        move.set_amount(10.0)
        world.update()
        assert cow.location == (pytest.approx(110.0), pytest.approx(100.0))
        world.update()      # amount is consumed
        assert cow.location[0] == pytest.approx(110.0)

    def test_movement_clamped_to_world(self):
        world = OdorWorld(10, 10, 32)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        cow.location = (310.0, 10.0)
        cow.move_forward(100.0)
        assert cow.location[0] == 320.0

    def test_turning(self):
        world = OdorWorld(10, 10)
        cow = world.add_entity(OdorWorldEntity(world, "cow"))
        left = cow.add_effector(Turning(Turning.LEFT))
        right = cow.add_effector(Turning(Turning.RIGHT))
        left.set_amount(90.0)
        world.update()
        assert cow.heading == pytest.approx(90.0)
        right.set_amount(180.0)
        world.update()
        assert cow.heading == pytest.approx(270.0)
        cow.move_forward(10.0)
        assert math.isclose(cow.location[1], 10.0, abs_tol=1e-9)

    def test_bad_turn_direction(self):
        with pytest.raises(ValueError):
            Turning(0)

    def test_entity_names_and_sensor_lookup(self):
        world = OdorWorld(10, 10)
        a = world.add_entity(OdorWorldEntity(world, "cow"))
        b = world.add_entity(OdorWorldEntity(world, "cow"))
        assert (a.name, b.name) == ("Cow 1", "Cow 2")
        a.add_sensor(TileSensor(FLOWER_TYPE, label="nose"))
        assert a.get_sensor("nose").label == "nose"
        with pytest.raises(KeyError):
            a.get_sensor("tail")

    def test_snapshot(self):
        world = _world_with_flower(2, 3)
        world.add_entity(OdorWorldEntity(world, "cow"))
        snap = world.snapshot()
        assert snap["tiles"][FLOWER_TYPE] == [[2, 3]]
        assert snap["entities"][0]["name"] == "Cow 1"
