import pytest
from ophistory.operations import (
    CompositeOperation,
    DelegateOperation,
    InsertOperation,
    NOTSET,
    Operation,
    PropertySetOperation,
    RemoveAtOperation,
    getDefaultMergeSpan,
    registerPropertyAccessor,
    setDefaultMergeSpan,
)


class _AttributeObject:

    def __init__(self, **kwargs):
        self.__dict__.update(kwargs)


class _Cell:

    # not attribute- or item-based: needs a registered accessor
    def __init__(self, value):
        self._value = value

    def read(self):
        return self._value

    def write(self, value):
        self._value = value


registerPropertyAccessor(
    _Cell,
    lambda cell, key: cell.read(),
    lambda cell, key, value: cell.write(value),
)


def _logging(log, name, fail=False):
    def apply():
        if fail:
            raise ValueError(name)
        log.append(("apply", name))

    def revert():
        log.append(("revert", name))

    return DelegateOperation(apply, revert, label=name)


class TestPropertySetOperation:

    def test_attribute(self):
        model = _AttributeObject(name="Venus")
        op = PropertySetOperation(model, "name", "Yamada")
        assert op.oldValue is NOTSET
        op.apply()
        assert model.name == "Yamada"
        assert op.oldValue == "Venus"
        op.revert()
        assert model.name == "Venus"
        op.apply()
        assert model.name == "Yamada"

    def test_mapping(self):
        model = {"a": 1}
        op = PropertySetOperation(model, "a", 2)
        op.apply()
        assert model == {"a": 2}
        op.revert()
        assert model == {"a": 1}

    def test_explicit_oldValue(self):
        model = {"a": 5}
        op = PropertySetOperation(model, "a", 6, oldValue=4)
        op.apply()
        op.revert()
        assert model == {"a": 4}

    def test_registered_accessor(self):
        cell = _Cell(3)
        op = PropertySetOperation(cell, "value", 4)
        op.apply()
        assert cell.read() == 4
        op.revert()
        assert cell.read() == 3

    def test_revert_unapplied(self):
        op = PropertySetOperation({"a": 1}, "a", 2)
        with pytest.raises(AssertionError):
            op.revert()


class TestMerge:

    def test_canMergeWith(self):
        model = {"a": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0, mergeSpan=0.5)
        op2 = PropertySetOperation(model, "a", 3, timestamp=10.5, mergeSpan=0.5)
        assert op1.canMergeWith(op2)

    def test_outside_span(self):
        model = {"a": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0, mergeSpan=0.5)
        op2 = PropertySetOperation(model, "a", 3, timestamp=10.6, mergeSpan=0.5)
        assert not op1.canMergeWith(op2)

    def test_earlier_timestamp(self):
        model = {"a": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0, mergeSpan=0.5)
        op2 = PropertySetOperation(model, "a", 3, timestamp=9.9, mergeSpan=0.5)
        assert not op1.canMergeWith(op2)

    def test_different_key(self):
        model = {"a": 1, "b": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0)
        op2 = PropertySetOperation(model, "b", 3, timestamp=10.0)
        assert not op1.canMergeWith(op2)

    def test_equal_but_distinct_targets(self):
        op1 = PropertySetOperation({"a": 1}, "a", 2, timestamp=10.0)
        op2 = PropertySetOperation({"a": 1}, "a", 3, timestamp=10.0)
        assert not op1.canMergeWith(op2)

    def test_not_mergeable(self):
        model = {"a": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0)
        op2 = PropertySetOperation(model, "a", 3, timestamp=10.0, mergeable=False)
        assert not op1.canMergeWith(op2)
        assert not op2.canMergeWith(op1)

    def test_different_kind(self):
        model = [1, 2, 3]
        op1 = InsertOperation(model, 1, "x", timestamp=10.0)
        op2 = RemoveAtOperation(model, 1, timestamp=10.0)
        assert not op1.canMergeWith(op2)

    def test_mergeWith(self):
        model = {"a": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0, label="set a")
        op2 = PropertySetOperation(model, "a", 3, timestamp=10.2)
        op1.apply()
        op2.apply()
        merged = op1.mergeWith(op2)
        assert type(merged) is PropertySetOperation
        assert merged.oldValue == 1
        assert merged.newValue == 3
        assert merged.timestamp == 10.2
        assert merged.label == "set a"
        # the originals are not modified
        assert op1.newValue == 2
        merged.revert()
        assert model == {"a": 1}
        merged.apply()
        assert model == {"a": 3}

    def test_merge_back_to_original_value(self):
        model = {"a": 1}
        op1 = PropertySetOperation(model, "a", 2, timestamp=10.0)
        op2 = PropertySetOperation(model, "a", 1, timestamp=10.1)
        op1.apply()
        op2.apply()
        merged = op1.mergeWith(op2)
        assert merged.oldValue == merged.newValue == 1

    def test_base_operation_never_merges(self):
        assert not Operation().canMergeWith(Operation())


class TestCollectionOperations:

    def test_insert(self):
        model = [0, 1, 2]
        op = InsertOperation(model, 1, "a")
        op.apply()
        assert model == [0, "a", 1, 2]
        op.revert()
        assert model == [0, 1, 2]

    def test_insert_past_end(self):
        model = [0, 1, 2]
        op = InsertOperation(model, 100, "a")
        assert op.index == 3
        op.apply()
        assert model == [0, 1, 2, "a"]
        op.revert()
        assert model == [0, 1, 2]

    def test_insert_negative_index(self):
        model = [0, 1, 2]
        op = InsertOperation(model, -1, "a")
        assert op.index == 2
        op = InsertOperation(model, -10, "a")
        assert op.index == 0
        op.apply()
        assert model == ["a", 0, 1, 2]
        op.revert()
        assert model == [0, 1, 2]

    def test_remove_at(self):
        model = ["a", "b", "c"]
        op = RemoveAtOperation(model, 1)
        op.apply()
        assert model == ["a", "c"]
        assert op.items == ("b",)
        op.revert()
        assert model == ["a", "b", "c"]

    def test_remove_at_negative_index(self):
        model = ["a", "b", "c"]
        op = RemoveAtOperation(model, -1)
        op.apply()
        assert model == ["a", "b"]
        op.revert()
        assert model == ["a", "b", "c"]

    def test_remove_at_out_of_range(self):
        model = ["a"]
        op = RemoveAtOperation(model, 3)
        with pytest.raises(IndexError):
            op.apply()
        assert model == ["a"]

    def test_merged_inserts(self):
        model = [0, 1]
        op1 = InsertOperation(model, 1, "x", timestamp=10.0)
        op2 = InsertOperation(model, 1, "y", timestamp=10.1)
        op1.apply()
        op2.apply()
        assert model == [0, "y", "x", 1]
        assert op1.canMergeWith(op2)
        merged = op1.mergeWith(op2)
        assert merged.items == ("y", "x")
        merged.revert()
        assert model == [0, 1]
        merged.apply()
        assert model == [0, "y", "x", 1]

    def test_merged_removes(self):
        model = [0, 1, 2, 3]
        op1 = RemoveAtOperation(model, 1, timestamp=10.0)
        op2 = RemoveAtOperation(model, 1, timestamp=10.1)
        op1.apply()
        op2.apply()
        assert model == [0, 3]
        merged = op1.mergeWith(op2)
        assert merged.items == (1, 2)
        merged.revert()
        assert model == [0, 1, 2, 3]
        merged.apply()
        assert model == [0, 3]


class TestCompositeOperation:

    def test_order(self):
        log = []
        composite = CompositeOperation([_logging(log, "a"), _logging(log, "b")], label="both")
        assert len(composite) == 2
        assert [op.label for op in composite] == ["a", "b"]
        composite.apply()
        composite.revert()
        assert log == [("apply", "a"), ("apply", "b"), ("revert", "b"), ("revert", "a")]

    def test_apply_rollback(self):
        log = []
        composite = CompositeOperation([
            _logging(log, "a"),
            _logging(log, "b"),
            _logging(log, "c", fail=True),
        ])
        with pytest.raises(ValueError):
            composite.apply()
        assert log == [("apply", "a"), ("apply", "b"), ("revert", "b"), ("revert", "a")]

    def test_revert_rollback(self):
        log = []

        def failingRevert():
            raise ValueError("b")

        composite = CompositeOperation([
            _logging(log, "a"),
            DelegateOperation(lambda: log.append(("apply", "b")), failingRevert),
            _logging(log, "c"),
        ])
        composite.apply()
        del log[:]
        with pytest.raises(ValueError):
            composite.revert()
        assert log == [("revert", "c"), ("apply", "c")]

    def test_never_merges(self):
        model = {"a": 1}
        composite1 = CompositeOperation([], timestamp=10.0)
        composite2 = CompositeOperation([], timestamp=10.0)
        plain = PropertySetOperation(model, "a", 2, timestamp=10.0)
        assert not composite1.canMergeWith(composite2)
        assert not composite1.canMergeWith(plain)
        assert not plain.canMergeWith(composite1)


class TestDefaultMergeSpan:

    def test_set(self):
        setDefaultMergeSpan(2.0)
        assert getDefaultMergeSpan() == 2.0
        assert Operation().mergeSpan == 2.0
        assert Operation(mergeSpan=0.1).mergeSpan == 0.1

    def test_only_affects_new_operations(self):
        setDefaultMergeSpan(1.0)
        op = Operation()
        setDefaultMergeSpan(3.0)
        assert op.mergeSpan == 1.0

    def test_negative(self):
        with pytest.raises(ValueError):
            setDefaultMergeSpan(-1)
