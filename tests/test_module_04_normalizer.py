"""
Tests for Module 04: Sensor Matrix Normalizer.
Absent cells must be dropped from a sample, never reported as zero.
"""

import json

from airpoll.ingestion.normalizer import Sample, samples_json, sensors_to_samples


class TestSensorsToSamples:
    def test_null_cell_is_omitted(self):
        samples = sensors_to_samples(1664170800, ["sensor_index", "humidity", "voc"], [[15111, 43, None]])
        assert len(samples) == 1
        assert samples[0].data == {"sensor_index": 15111, "humidity": 43}
        assert "voc" not in samples[0].data

    def test_zero_is_kept(self):
        samples = sensors_to_samples(1, ["sensor_index", "voc"], [[1, 0]])
        assert samples[0].data["voc"] == 0

    def test_row_count_and_field_counts(self, sensors_payload):
        samples = sensors_to_samples(
            sensors_payload["data_time_stamp"], sensors_payload["fields"], sensors_payload["data"]
        )
        assert len(samples) == len(sensors_payload["data"])
        for sample, row in zip(samples, sensors_payload["data"]):
            assert len(sample.data) == sum(1 for cell in row if cell is not None)

    def test_shared_timestamp_and_row_order(self, sensors_payload):
        samples = sensors_to_samples(1664170800, sensors_payload["fields"], sensors_payload["data"])
        assert all(s.timestamp == 1664170800 for s in samples)
        assert [s.sensor_index for s in samples] == [15111, 20755, 90011, 127397]

    def test_values_are_preserved(self, sensors_payload):
        samples = sensors_to_samples(1, sensors_payload["fields"], sensors_payload["data"])
        assert samples[3].data["humidity"] == 51
        assert samples[3].data["pm2.5"] == 7.3
        assert len(samples[3].data) == 6

    def test_empty_matrix(self):
        assert sensors_to_samples(1, ["sensor_index"], []) == []

    def test_all_null_row(self):
        samples = sensors_to_samples(1, ["sensor_index", "humidity"], [[None, None]])
        assert samples[0].data == {}
        assert samples[0].sensor_index is None

    def test_field_names_are_not_validated(self):
        samples = sensors_to_samples(1, ["sensor_index", "made_up"], [[7, 1.5]])
        assert samples[0].data["made_up"] == 1.5


class TestSamplesJson:
    def test_shape(self, fewer_fields_payload):
        samples = sensors_to_samples(
            fewer_fields_payload["data_time_stamp"],
            fewer_fields_payload["fields"],
            fewer_fields_payload["data"],
        )
        decoded = json.loads(samples_json(samples))
        assert decoded == [
            {"time_stamp": 1664170800, "data": {"humidity": 43, "sensor_index": 15111, "temperature": 77}},
            {"time_stamp": 1664170800, "data": {"humidity": 55, "sensor_index": 20755, "temperature": 69}},
        ]

    def test_missing_fields_absent_in_json(self, sensors_payload):
        samples = sensors_to_samples(1, sensors_payload["fields"], sensors_payload["data"])
        decoded = json.loads(samples_json(samples))
        assert all("voc" not in item["data"] for item in decoded)

    def test_pretty_printed(self):
        out = samples_json([Sample(timestamp=1, data={"sensor_index": 1})], indent=4)
        assert "\n    {" in out
