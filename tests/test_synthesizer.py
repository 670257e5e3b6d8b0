"""
Tests for the sequence synthesizer.
"""

import random

import pytest
from seqsynth.core.pool import SequencePool
from seqsynth.core.selection import UniformRandomSelection
from seqsynth.core.synthesizer import SequenceSynthesizer
from seqsynth.entities import Sequence
from seqsynth.types import StaticTypeUniverse


@pytest.fixture
def universe():
    universe = StaticTypeUniverse()
    universe.declare("int", primitive=True, boxed_name="Integer")
    universe.declare("Integer")
    universe.declare("Animal")
    universe.declare("Dog", supertypes=["Animal"])
    universe.declare("Cat")
    universe.declare("Point")
    universe.add_constructor("Dog", ["int"])
    universe.add_constructor("Cat")
    universe.add_constructor("Point", ["int", "int"])
    universe.add_method("Animal", "feed", "Animal", ["Animal"], static=True)
    universe.add_method("Dog", "befriend", "Dog", ["Dog"], static=True)
    universe.add_method("Integer", "box", "Integer", ["Integer"], static=True)
    return universe


def op(universe, owner, name="__init__"):
    operations = universe.constructors_of(universe.resolve(owner)) + universe.methods_of(universe.resolve(owner))
    return next(o for o in operations if o.name == name)


def int_literal(universe, value):
    return Sequence.for_literal(value, universe.resolve("int"))


class TestSequenceSynthesizer:
    """Test SequenceSynthesizer."""

    def test_no_argument_operation(self, universe):
        synthesizer = SequenceSynthesizer()
        seq = synthesizer.synthesize(op(universe, "Cat"), SequencePool(universe))

        assert len(seq) == 1
        assert seq.last_type == universe.resolve("Cat")

    def test_missing_input_type(self, universe):
        """Only sequences of an unrelated type available: no sequence, pool untouched."""
        cat = Sequence.create(op(universe, "Cat"), [], [])
        pool = SequencePool(universe, [cat])

        result = SequenceSynthesizer().synthesize(op(universe, "Dog", "befriend"), pool)

        assert result is None
        assert pool.all_sequences() == [cat]

    def test_subtypes_not_matched(self, universe):
        dog = Sequence.create(op(universe, "Dog"), [int_literal(universe, 1)], [0])
        pool = SequencePool(universe, [dog])

        assert SequenceSynthesizer().synthesize(op(universe, "Animal", "feed"), pool) is None

    def test_single_argument(self, universe):
        pool = SequencePool(universe, [int_literal(universe, 7)])
        seq = SequenceSynthesizer().synthesize(op(universe, "Dog"), pool)

        assert len(seq) == 2
        assert seq.statements[-1].inputs == (0,)
        assert seq.last_type == universe.resolve("Dog")

    def test_same_type_arguments_bind_distinct_values(self, universe):
        """Two int parameters never share one statement, even when the same literal is picked."""
        pool = SequencePool(universe, [int_literal(universe, 7)])
        seq = SequenceSynthesizer().synthesize(op(universe, "Point"), pool)

        assert len(seq) == 3
        assert seq.statements[-1].inputs == (0, 1)

    def test_indices_point_at_matching_types(self, universe):
        pool = SequencePool(universe, [int_literal(universe, i) for i in range(5)])
        synthesizer = SequenceSynthesizer(UniformRandomSelection(random.Random(11)))

        for _ in range(20):
            seq = synthesizer.synthesize(op(universe, "Point"), pool)
            first, second = seq.statements[-1].inputs
            assert first != second
            assert seq.type_of(first) == universe.resolve("int")
            assert seq.type_of(second) == universe.resolve("int")

    def test_boxing_equivalence(self, universe):
        """A primitive literal can feed a wrapper-typed parameter."""
        pool = SequencePool(universe, [int_literal(universe, 3)])
        seq = SequenceSynthesizer().synthesize(op(universe, "Integer", "box"), pool)

        assert seq is not None
        assert seq.statements[-1].inputs == (0,)

    def test_nested_input_sequence(self, universe):
        dog = Sequence.create(op(universe, "Dog"), [int_literal(universe, 1)], [0])
        pool = SequencePool(universe, [dog])

        seq = SequenceSynthesizer().synthesize(op(universe, "Dog", "befriend"), pool)

        assert len(seq) == 3
        assert seq.statements[-1].inputs == (1,)

    def test_deterministic_with_seed(self, universe):
        pool = SequencePool(universe, [int_literal(universe, i) for i in range(10)])

        def run(seed):
            synthesizer = SequenceSynthesizer(UniformRandomSelection(random.Random(seed)))
            return [synthesizer.synthesize(op(universe, "Point"), pool) for _ in range(5)]

        assert run(3) == run(3)

    def test_inputs_not_mutated(self, universe):
        literal = int_literal(universe, 7)
        pool = SequencePool(universe, [literal])

        SequenceSynthesizer().synthesize(op(universe, "Point"), pool)

        assert len(literal) == 1
        assert pool.all_sequences() == [literal]
