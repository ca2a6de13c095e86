"""Tests for workspace couplings and the iteration order."""
import pytest

from network import Network, Neuron
from world import OdorWorld, OdorWorldEntity, TileSensor, StraightMovement
from workspace import (Workspace, NetworkComponent, OdorWorldComponent,
                       CouplingManager, Coupling)


class Reading:
    def __init__(self, value):
        self.current_value = value


class TestCouplings:

    def test_sensor_to_neuron(self):
        world = OdorWorld(5, 5)
        cow = world.add_entity(OdorWorldEntity(world))
        sensor = cow.add_sensor(TileSensor("flower"))
        sensor.current_value = 0.7
        neuron = Neuron(clamped=True)
        Coupling(sensor, neuron).update()
        assert neuron.activation == 0.7

    def test_neuron_to_effector(self):
        neuron = Neuron(activation=3.0)
        move = StraightMovement()
        Coupling(neuron, move).update()
        assert move.amount == 3.0

    def test_zip_leaves_extras_uncoupled(self):
        manager = CouplingManager()
        producers = [Reading(1.0), Reading(2.0), Reading(3.0)]
        consumers = [Neuron() for _ in range(4)]
        made = manager.couple(producers, consumers)
        assert len(made) == 3
        consumers[3].activation = 9.0
        manager.update_all()
        assert [n.activation for n in consumers] == [1.0, 2.0, 3.0, 9.0]

    def test_single_items(self):
        manager = CouplingManager()
        made = manager.couple(Reading(1.0), Neuron())
        assert len(made) == 1

    def test_unsupported_endpoints(self):
        with pytest.raises(TypeError):
            Coupling(object(), Neuron())
        with pytest.raises(TypeError):
            Coupling(Reading(1.0), object())


class TestWorkspace:

    def test_components(self):
        ws = Workspace()
        net = ws.add_workspace_component(NetworkComponent("Network 1"))
        world = ws.add_workspace_component(OdorWorldComponent("World"))
        assert net.workspace is ws
        assert ws.components_of(NetworkComponent) == [net]
        assert ws.components_of(OdorWorldComponent) == [world]

    def test_iteration_order(self):
        ws = Workspace()
        calls = []

        class Probe(NetworkComponent):
            def update(self):
                calls.append("component")

        class Source:
            @property
            def current_value(self):
                calls.append("coupling")
                return 0.0

        ws.add_workspace_component(Probe("probe", Network()))
        ws.coupling_manager.couple(Source(), Neuron())
        ws.add_update_action("first", lambda: calls.append("first"))
        ws.add_update_action("second", lambda: calls.append("second"))
        ws.iterate(2)
        assert calls == ["coupling", "component", "first", "second"] * 2
        assert ws.time == 2

    def test_remove_update_action(self):
        ws = Workspace()
        calls = []
        ws.add_update_action("a", lambda: calls.append("a"))
        ws.add_update_action("b", lambda: calls.append("b"))
        ws.remove_update_action("a")
        ws.iterate()
        assert calls == ["b"]

    def test_clear(self):
        ws = Workspace()
        ws.add_workspace_component(NetworkComponent("n"))
        ws.add_update_action("a", lambda: None)
        ws.iterate()
        ws.clear_workspace()
        assert ws.component_list == [] and ws.update_actions == []
        assert ws.time == 0

    def test_sensor_drives_network_drives_world(self):
        ws = Workspace()
        world = ws.add_workspace_component(OdorWorldComponent("w", OdorWorld(10, 10))).world
        network = ws.add_workspace_component(NetworkComponent("n")).network
        cow = world.add_entity(OdorWorldEntity(world))
        cow.location = (50.0, 50.0)
        reading = Reading(5.0)
        inp = network.add_network_model(Neuron(clamped=True))
        move = cow.add_effector(StraightMovement())
        ws.coupling_manager.couple(reading, inp)
        ws.coupling_manager.couple(inp, move)
        ws.iterate()
        assert cow.location[0] == pytest.approx(55.0)
        ws.iterate()
        assert cow.location[0] == pytest.approx(60.0)


class TestLazyProducer:

    def test_property_not_read_while_wiring(self):
        reads = []

        class Gauge:
            @property
            def current_value(self):
                reads.append(1)
                return 2.0

        manager = CouplingManager()
        target = Neuron()
        manager.couple(Gauge(), target)
        assert reads == []
        manager.update_all()
        assert reads == [1]
        assert target.activation == 2.0
