"""
Workspace for EvoBrain.

A workspace hosts components (networks, worlds), the couplings that
move values between them, and an ordered list of update actions.

One iteration:
  1. apply every coupling (producer value → consumer)
  2. update every component
  3. run each custom update action in the order it was added
"""

from network import Neuron, Network
from world import OdorWorld, TileSensor


# ──────────────────────────────────────────────────────────────────────────────
# Components
# ──────────────────────────────────────────────────────────────────────────────

class WorkspaceComponent:
    def __init__(self, name: str):
        self.name      = name
        self.workspace = None

    def update(self):
        raise NotImplementedError


class NetworkComponent(WorkspaceComponent):
    def __init__(self, name: str, network: Network = None):
        super().__init__(name)
        self.network = network if network is not None else Network()

    def update(self):
        self.network.update()


class OdorWorldComponent(WorkspaceComponent):
    def __init__(self, name: str, world: OdorWorld = None):
        super().__init__(name)
        self.world = world if world is not None else OdorWorld()

    def update(self):
        self.world.update()


# ──────────────────────────────────────────────────────────────────────────────
# Couplings
# ──────────────────────────────────────────────────────────────────────────────

def _producer_of(obj):
    if isinstance(obj, TileSensor):
        return lambda: obj.current_value
    if isinstance(obj, Neuron):
        return lambda: obj.activation
    # look on the class or instance dict so a property is not read while wiring
    if hasattr(type(obj), "current_value") or "current_value" in getattr(obj, "__dict__", {}):
        return lambda: obj.current_value
    raise TypeError(f"{type(obj).__name__} cannot produce coupling values")


def _consumer_of(obj):
    if isinstance(obj, Neuron):
        return obj.force_set_activation
    if hasattr(obj, "set_amount"):
        return obj.set_amount
    raise TypeError(f"{type(obj).__name__} cannot consume coupling values")


class Coupling:
    """Copies one producer's value into one consumer each iteration."""

    def __init__(self, producer, consumer):
        self.producer  = producer
        self.consumer  = consumer
        self._get      = _producer_of(producer)
        self._set      = _consumer_of(consumer)

    def update(self):
        self._set(self._get())


class CouplingManager:
    def __init__(self):
        self.couplings = []

    def couple(self, producers, consumers) -> list:
        """
        Couple producers to consumers position by position. Surplus items
        on the longer side are left uncoupled.
        """
        if not isinstance(producers, (list, tuple)):
            producers = [producers]
        if not isinstance(consumers, (list, tuple)):
            consumers = [consumers]
        made = [Coupling(p, c) for p, c in zip(producers, consumers)]
        self.couplings.extend(made)
        return made

    def update_all(self):
        for c in self.couplings:
            c.update()

    def clear(self):
        self.couplings = []


# ──────────────────────────────────────────────────────────────────────────────
# Workspace
# ──────────────────────────────────────────────────────────────────────────────

class Workspace:

    def __init__(self):
        self.component_list   = []
        self.update_actions   = []     # list of (name, callable)
        self.coupling_manager = CouplingManager()
        self.time             = 0

    def add_workspace_component(self, component: WorkspaceComponent) -> WorkspaceComponent:
        component.workspace = self
        self.component_list.append(component)
        return component

    def components_of(self, kind) -> list:
        return [c for c in self.component_list if isinstance(c, kind)]

    def add_update_action(self, name: str, action):
        self.update_actions.append((name, action))

    def remove_update_action(self, name: str):
        self.update_actions = [(n, a) for n, a in self.update_actions if n != name]

    def iterate(self, iterations: int = 1):
        for _ in range(iterations):
            self.coupling_manager.update_all()
            for component in self.component_list:
                component.update()
            for _, action in self.update_actions:
                action()
            self.time += 1

    def clear_workspace(self):
        self.component_list = []
        self.update_actions = []
        self.coupling_manager.clear()
        self.time = 0
