"""Unit tests for persisted reference preferences."""

import json

import pytest

from altimeter.altimetry import PreferenceStore, ReferenceModel
from altimeter.config import config


class TestLoad:
    """Test loading with validation and fallbacks."""

    def test_missing_file_gives_defaults(self, preferences):
        model = preferences.load()

        assert model.qnh_hpa == config.altimetry.default_qnh_hpa
        assert model.zero_altitude_offset_m == 0.0
        assert model.start_point_pressure_hpa is None
        assert model.max_altitude_qne_m is None

    def test_corrupt_file_gives_defaults(self, preferences):
        preferences.path.parent.mkdir(parents=True)
        preferences.path.write_text('{not json', encoding='utf-8')

        model = preferences.load()

        assert model.qnh_hpa == config.altimetry.default_qnh_hpa

    def test_non_object_file_gives_defaults(self, preferences):
        preferences.path.parent.mkdir(parents=True)
        preferences.path.write_text('[1, 2, 3]', encoding='utf-8')

        assert preferences.load().qnh_hpa == config.altimetry.default_qnh_hpa

    def test_invalid_values_fall_back_individually(self, preferences):
        preferences.path.parent.mkdir(parents=True)
        preferences.path.write_text(json.dumps({
            'qnh_hpa': 5000,
            'zero_altitude_offset_m': 'abc',
            'start_point_pressure_hpa': 980.0,
            'max_altitude_qne_m': 1800.0,
        }), encoding='utf-8')

        model = preferences.load()

        assert model.qnh_hpa == config.altimetry.default_qnh_hpa
        assert model.zero_altitude_offset_m == 0.0
        assert model.start_point_pressure_hpa is None
        assert model.max_altitude_qne_m == 1800.0

    def test_non_positive_ceiling_is_dropped(self, preferences):
        preferences.path.parent.mkdir(parents=True)
        preferences.path.write_text(json.dumps({'max_altitude_qne_m': -10}), encoding='utf-8')

        assert preferences.load().max_altitude_qne_m is None

    def test_non_finite_ceiling_is_dropped(self, preferences):
        preferences.path.parent.mkdir(parents=True)
        preferences.path.write_text('{"max_altitude_qne_m": Infinity, "qnh_hpa": 1020.0}', encoding='utf-8')

        model = preferences.load()

        assert model.max_altitude_qne_m is None
        assert model.qnh_hpa == 1020.0


class TestSave:
    """Test writing and write-through."""

    def test_save_then_load(self, preferences):
        model = ReferenceModel(
            qnh_hpa=1021.0,
            zero_altitude_offset_m=312.5,
            start_point_pressure_hpa=975.2,
            max_altitude_qne_m=2400.0,
        )
        preferences.save(model)

        loaded = preferences.load()

        assert loaded.to_dict() == model.to_dict()

    def test_save_leaves_no_temp_files(self, preferences):
        preferences.save(ReferenceModel())

        assert [p.name for p in preferences.path.parent.iterdir()] == [preferences.path.name]

    def test_attach_writes_on_change(self, preferences):
        model = preferences.load()
        preferences.attach(model)

        model.set_qnh(1008.0)

        saved = json.loads(preferences.path.read_text(encoding='utf-8'))
        assert saved['qnh_hpa'] == 1008.0

    def test_attach_survives_write_failure(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('', encoding='utf-8')
        store = PreferenceStore(blocker / 'prefs.json')
        model = ReferenceModel()
        store.attach(model)

        model.set_qnh(1010.0)

        assert model.qnh_hpa == 1010.0

    def test_save_raises_on_write_failure(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('', encoding='utf-8')

        with pytest.raises(OSError):
            PreferenceStore(blocker / 'prefs.json').save(ReferenceModel())
