"""Unit tests for ConstructorHistory."""

from automocker.application.constructor_history import ConstructorHistory
from automocker.domain import ConstructorCandidate, ParameterSpec


class Engine:
    pass


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine


def _candidate(name: str = "__init__") -> ConstructorCandidate:
    return ConstructorCandidate(
        owner=Car,
        name=name,
        parameters=[ParameterSpec(name="engine", annotation=Engine, has_annotation=True)],
    )


class TestConstructorHistory:
    """Test cases for recording and reading constructor invocations."""

    def test_empty_history(self):
        """Test a history with no entries."""
        history = ConstructorHistory()

        assert len(history) == 0
        assert history.get(Car) == []
        assert history.get_constructor(Car) is None
        assert Car not in history

    def test_record_returns_entry(self):
        """Test that record stores the candidate and arguments."""
        history = ConstructorHistory()
        engine = Engine()

        entry = history.record(Car, _candidate(), [engine])

        assert entry.candidate.name == "__init__"
        assert entry.arguments == [engine]
        assert history.get(Car) == [entry]
        assert Car in history

    def test_entries_are_kept_in_order(self):
        """Test that several invocations of one type are all kept."""
        history = ConstructorHistory()

        first = history.record(Car, _candidate(), [Engine()])
        second = history.record(Car, _candidate("with_engine"), [Engine()])

        assert history.get(Car) == [first, second]
        assert history.get_constructor(Car).name == "with_engine"

    def test_factory_entries_are_skipped_by_get_constructor(self):
        """Test that entries without a candidate do not hide the last constructor."""
        history = ConstructorHistory()
        history.record(Car, _candidate(), [Engine()])
        history.record(Car, None)

        assert len(history.get(Car)) == 2
        assert history.get_constructor(Car).name == "__init__"

    def test_types_and_iteration(self):
        """Test listing the recorded types."""
        history = ConstructorHistory()
        history.record(Engine, ConstructorCandidate(owner=Engine))
        history.record(Car, _candidate(), [Engine()])

        assert history.types() == [Engine, Car]
        assert list(history) == [Engine, Car]
        assert len(history) == 2

    def test_get_returns_a_copy(self):
        """Test that the returned list can be changed safely."""
        history = ConstructorHistory()
        history.record(Car, _candidate(), [Engine()])

        history.get(Car).clear()

        assert len(history.get(Car)) == 1

    def test_clear(self):
        """Test that clear forgets every entry."""
        history = ConstructorHistory()
        history.record(Car, _candidate(), [Engine()])

        history.clear()

        assert len(history) == 0
        assert history.get_constructor(Car) is None
