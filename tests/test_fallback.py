"""
Local Summary Tests
===================
"""

from aiduino.models.sample import Sample
from aiduino.summary.fallback import NO_DATA_MESSAGE, local_summary, numeric_fields


class TestLocalSummary:
    """min/avg/max per numeric field of the first sample."""

    def test_avg_is_reported(self):
        text = local_summary([Sample(1, {"t": 10}), Sample(2, {"t": 20})])
        assert "avg 15.0" in text
        assert "min 10.0" in text
        assert "max 20.0" in text

    def test_every_numeric_field(self):
        samples = [
            Sample(1, {"temp": 20.0, "hum": 40}),
            Sample(2, {"temp": 22.0, "hum": 50}),
        ]
        text = local_summary(samples)
        assert "temp min 20.0, avg 21.0, max 22.0" in text
        assert "hum min 40.0, avg 45.0, max 50.0" in text

    def test_empty_snapshot(self):
        assert local_summary([]) == NO_DATA_MESSAGE

    def test_no_numeric_fields(self):
        text = local_summary([Sample(1, {"label": "a", "on": True})])
        assert "no numeric fields" in text

    def test_fields_come_from_first_sample(self):
        samples = [
            Sample(1, {"a": 1, "name": "x"}),
            Sample(2, {"a": 3, "b": 100}),
        ]
        assert list(numeric_fields(samples)) == ["a"]

    def test_non_numeric_values_in_later_samples_are_skipped(self):
        samples = [
            Sample(1, {"a": 2}),
            Sample(2, {"a": "oops"}),
            Sample(3, {}),
            Sample(4, {"a": 4}),
        ]
        assert numeric_fields(samples) == {"a": [2.0, 4.0]}
        assert "avg 3.0" in local_summary(samples)

    def test_booleans_are_not_numbers(self):
        assert numeric_fields([Sample(1, {"flag": True, "v": 1})]) == {"v": [1.0]}

    def test_integers_beyond_float_range_are_skipped(self):
        samples = [Sample(1, {"t": 10**400, "v": 1}), Sample(2, {"t": 1, "v": 3})]

        assert numeric_fields(samples) == {"v": [1.0, 3.0]}
        assert local_summary(samples) == "Local summary of 2 samples: v min 1.0, avg 2.0, max 3.0."
