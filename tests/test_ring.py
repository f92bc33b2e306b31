"""
Sample Ring Tests
=================
"""

import pytest

from aiduino.models.sample import Sample
from aiduino.stream.ring import SampleRing

from conftest import make_samples


class TestSampleRing:
    """Capacity, eviction and snapshot behavior."""

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            SampleRing(capacity=0)

    def test_default_capacity(self):
        assert SampleRing().capacity == 60

    @pytest.mark.parametrize("count", [0, 1, 5, 9])
    def test_partial_fill(self, count):
        """Below capacity every pushed sample is kept and the ring is not full."""
        ring = SampleRing(capacity=10)
        items = make_samples(count)
        for sample in items:
            ring.push(sample)

        assert len(ring) == count
        assert ring.is_full is False
        assert list(ring.snapshot()) == items

    @pytest.mark.parametrize("count", [10, 11, 25, 100])
    def test_keeps_last_n_in_push_order(self, count):
        ring = SampleRing(capacity=10)
        items = make_samples(count)
        for sample in items:
            ring.push(sample)

        assert len(ring) == 10
        assert ring.is_full is True
        assert list(ring.snapshot()) == items[-10:]
        assert ring.evicted_count == count - 10
        assert ring.total_pushed == count

    def test_sixty_five_into_sixty(self):
        """Timestamps 1..65 into the default ring leave 6..65."""
        ring = SampleRing(capacity=60)
        for sample in make_samples(65):
            ring.push(sample)

        window = ring.snapshot()
        assert window[0].timestamp == 6
        assert window[59].timestamp == 65
        assert ring.latest().timestamp == 65

    def test_each_push_at_capacity_evicts_exactly_one(self):
        ring = SampleRing(capacity=3)
        for sample in make_samples(3):
            ring.push(sample)

        ring.push(Sample(timestamp=4, data={}))
        assert [s.timestamp for s in ring.snapshot()] == [2, 3, 4]
        ring.push(Sample(timestamp=5, data={}))
        assert [s.timestamp for s in ring.snapshot()] == [3, 4, 5]

    def test_snapshot_is_independent_copy(self):
        ring = SampleRing(capacity=3)
        for sample in make_samples(3):
            ring.push(sample)

        before = ring.snapshot()
        ring.push(Sample(timestamp=99, data={}))

        assert [s.timestamp for s in before] == [1, 2, 3]
        assert [s.timestamp for s in ring.snapshot()] == [2, 3, 99]

    def test_snapshot_is_idempotent(self):
        ring = SampleRing(capacity=5)
        for sample in make_samples(7):
            ring.push(sample)

        assert ring.snapshot() == ring.snapshot()

    def test_clear(self):
        ring = SampleRing(capacity=5)
        for sample in make_samples(4):
            ring.push(sample)

        assert ring.clear() == 4
        assert len(ring) == 0
        assert ring.snapshot() == ()
        assert ring.capacity == 5

    def test_metrics(self):
        ring = SampleRing(capacity=2)
        for sample in make_samples(3):
            ring.push(sample)

        assert ring.metrics() == {
            "size": 2,
            "capacity": 2,
            "evicted_count": 1,
            "total_pushed": 3,
        }


class TestSample:
    """Sample immutability and wire form."""

    def test_data_is_read_only(self):
        sample = Sample(timestamp=1, data={"a": 1})
        with pytest.raises(TypeError):
            sample.data["a"] = 2  # type: ignore[index]

    def test_source_dict_changes_do_not_leak(self):
        raw = {"a": 1}
        sample = Sample(timestamp=1, data=raw)
        raw["a"] = 2
        assert sample.data["a"] == 1

    def test_to_dict(self):
        sample = Sample(timestamp=5, data={"a": 1, "nested": {"b": [1, 2]}})
        wire = sample.to_dict()
        assert wire == {"timestamp": 5, "data": {"a": 1, "nested": {"b": [1, 2]}}}

        wire["data"]["nested"]["b"].append(3)
        assert sample.data["nested"]["b"] == (1, 2)

    def test_nested_values_are_read_only(self):
        raw = {"nested": {"b": [1, {"c": 2}]}}
        sample = Sample(timestamp=1, data=raw)

        with pytest.raises(TypeError):
            sample.data["nested"]["b"] = []  # type: ignore[index]
        with pytest.raises(AttributeError):
            sample.data["nested"]["b"].append(3)  # type: ignore[attr-defined]

        raw["nested"]["b"][1]["c"] = 99
        assert sample.data["nested"]["b"][1]["c"] == 2
        assert sample.to_dict()["data"] == {"nested": {"b": [1, {"c": 2}]}}
