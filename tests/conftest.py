"""Shared test helpers for the livecon test suite."""

import pytest

from livecon.config.settings import ConsoleSettings
from livecon.evaluate import open_console
from livecon.evaluate._snapshot import SharedSnapshot


class Player:
    """Live object with data members, a property, methods and private bits."""

    MaxHealth = 100

    def __init__(self, name="Hero"):
        self.Name = name
        self.Name2 = name + "2"
        self.Health = 80
        self._internal = 1
        self.__hidden = True

    @property
    def Level(self):
        return self.Health // 10

    def heal(self, amount):
        self.Health = min(self.Health + amount, self.MaxHealth)
        return self.Health

    def quit(self):
        raise SystemExit("bye")


class Node:
    """Scene-tree node exposing children through ``get_child``."""

    def __init__(self, label, **children):
        self.label = label
        self._children = dict(children)

    def get_child(self, name):
        return self._children.get(name)


class Unprintable:
    def __str__(self):
        raise ValueError("cannot render")


def make_scene() -> Node:
    """Root -> {Player, World -> {Player}, Stats (dict), Broken}."""
    return Node(
        "root",
        Player=Player(),
        World=Node("World", Player=Player("Scout")),
        Stats={"kills": 3},
        Broken=Unprintable(),
    )


def make_session(scene=None, **settings):
    """Open a console session over *scene* (default ``make_scene()``)."""
    if scene is None:
        scene = make_scene()
    return open_console(scene, settings=ConsoleSettings(**settings))


@pytest.fixture
def scene():
    return make_scene()


@pytest.fixture
def session(scene):
    return open_console(scene, settings=ConsoleSettings())


@pytest.fixture
def snapshot():
    return SharedSnapshot.capture(["math"])
