"""
A tiny program under test for reflection, literal mining and end-to-end synthesis.
"""

from abc import ABC, abstractmethod


class Stack:
    """A stack of ints."""

    def __init__(self):
        self.items = []

    def push(self, item: int) -> None:
        self.items.append(item)

    def pop(self) -> int:
        return self.items.pop()

    def size(self) -> int:
        return len(self.items)


class Pair:
    def __init__(self, first: int, second: int):
        if first < -1 or second < -1:
            raise ValueError("negative")
        self.first = first
        self.second = second

    def swap(self) -> "Pair":
        return Pair(self.second, self.first)


class Engine:
    def __init__(self, horsepower: int):
        self.horsepower = horsepower

    @staticmethod
    def standard() -> "Engine":
        return Engine(150)

    def tuned(self, extra: int) -> "Engine":
        return Engine(self.horsepower + extra)


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine

    def describe(self) -> str:
        return f"car with {self.engine.horsepower}hp"


class Registry:
    @staticmethod
    def lookup() -> "Registry":
        return None


class Fragile:
    def __init__(self):
        raise RuntimeError("boom")


class Shape(ABC):
    @abstractmethod
    def area(self) -> float:
        pass


class Square(Shape):
    def __init__(self, side: int):
        self.side = side

    def area(self) -> float:
        return float(self.side * self.side)


class Untyped:
    def __init__(self, value):
        self.value = value

    def copy(self):
        return Untyped(self.value)


class Constants:
    LIMIT = 100
    RATE = 2.5

    def check(self, value: int) -> bool:
        return value < 100 and value != -7

    def label(self) -> str:
        return "ready"


class Vehicle:
    def __init__(self, wheels: int):
        self.wheels = wheels

    @classmethod
    def default(cls) -> "Vehicle":
        return cls(4)


class Truck(Vehicle):
    pass
