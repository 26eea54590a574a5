"""Tests for parameter records and the parameter manager."""
import json

import pytest

from nmr_hxnd_lib.core.parameters import (
    BaselineParameters,
    FilterParameters,
    ParameterManager,
    ReconstructionParameters,
    WindowParameters,
    WindowType,
)


class TestReconstructionParameters:

    def test_defaults_are_valid(self):
        params = ReconstructionParameters()
        assert params.method == "ist"
        assert params.niter == 100
        assert params.thresh == pytest.approx(0.98)
        assert params.validate() == []

    def test_round_trip(self):
        params = ReconstructionParameters(method="ffm", niter=20, entropy="skilling", workers=4)
        assert ReconstructionParameters.from_dict(params.to_dict()) == params

    def test_unknown_keys_ignored(self):
        params = ReconstructionParameters.from_dict({"niter": 7, "colour": "red"})
        assert params.niter == 7

    def test_validation_errors(self):
        params = ReconstructionParameters(method="cs", niter=0, thresh=1.0, entropy="burg", workers=0)
        assert len(params.validate()) == 5

    def test_norm_orders(self):
        assert ReconstructionParameters(method="irls", pa=1.0, pb=0.5).validate() == []
        assert ReconstructionParameters(method="irls", pa=1.2).validate() == ["Norm orders must be in [0, 1]"]
        assert ReconstructionParameters(method="irls", pa=0.5, pb=1.0).validate() == [
            "Norm orders must decrease during iteration"
        ]

    def test_copy_is_independent(self):
        params = ReconstructionParameters()
        other = params.copy()
        other.niter = 3
        assert params.niter == 100


class TestWindowParameters:

    def test_enum_serialized_by_value(self):
        data = WindowParameters(window_type=WindowType.GAUSS, lb=2.0).to_dict()
        assert data["window_type"] == "gauss"
        json.dumps(data)

    def test_round_trip(self):
        params = WindowParameters(window_type=WindowType.TRI, center=0.3, start=0.1, end=0.2)
        assert WindowParameters.from_dict(params.to_dict()) == params

    @pytest.mark.parametrize("params", [
        WindowParameters(window_type=WindowType.UNDEFINED),
        WindowParameters(window_type=WindowType.SINE, order=0.5),
        WindowParameters(window_type=WindowType.EXP, width=0.0),
        WindowParameters(window_type=WindowType.GAUSS, center=2.0),
        WindowParameters(window_type=WindowType.TRAP, start=0.9, end=0.1),
    ])
    def test_invalid(self, params):
        assert params.validate()

    def test_blackman_needs_nothing(self):
        assert WindowParameters(window_type=WindowType.BLACKMAN, width=-1.0).validate() == []


class TestFilterAndBaselineParameters:

    def test_filter_validation(self):
        assert FilterParameters().validate() == []
        assert FilterParameters(order=7, band_stop=True).validate()
        assert FilterParameters(cutoff=0.7).validate()

    def test_baseline_validation(self):
        assert BaselineParameters().validate() == []
        assert BaselineParameters(smoothness=-1.0).validate()

    def test_round_trips(self):
        fp = FilterParameters(order=16, cutoff=0.1, band_stop=True)
        bp = BaselineParameters(smoothness=5.0, use_weights=False)
        assert FilterParameters.from_dict(fp.to_dict()) == fp
        assert BaselineParameters.from_dict(bp.to_dict()) == bp


class TestParameterManager:

    def test_save_and_load_all(self, tmp_path):
        manager = ParameterManager(str(tmp_path))
        manager.reconstruction = ReconstructionParameters(method="ffm", entropy="hoch")
        manager.window = WindowParameters(window_type=WindowType.EXP, lb=3.0, width=1000.0)
        manager.filter = FilterParameters(order=10)
        manager.baseline = BaselineParameters(smoothness=20.0)
        manager.save_all("all.json")

        assert (tmp_path / "all.json").exists()

        other = ParameterManager(str(tmp_path))
        other.load_all("all.json")
        assert other.reconstruction == manager.reconstruction
        assert other.window == manager.window
        assert other.filter == manager.filter
        assert other.baseline == manager.baseline

    def test_partial_file(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"filter": {"order": 12}}))

        manager = ParameterManager(str(tmp_path))
        manager.load_all(str(path))
        assert manager.filter.order == 12
        assert manager.reconstruction == ReconstructionParameters()

    def test_reconstruction_file(self, tmp_path):
        manager = ParameterManager(str(tmp_path))
        manager.save_reconstruction_params("ist.json", ReconstructionParameters(niter=42))

        loaded = manager.load_reconstruction_params("ist.json")
        assert loaded.niter == 42
        assert manager.reconstruction is loaded

    def test_presets(self, tmp_path):
        manager = ParameterManager(str(tmp_path))
        assert set(manager.get_preset_names()) == {"fast_ist", "accurate_ist", "ffm_shannon"}

        params = manager.load_preset("ffm_shannon")
        assert params.method == "ffm" and params.entropy == "shannon"

        params.niter = 1
        assert ParameterManager.DEFAULT_PRESETS["ffm_shannon"].niter == 100

    def test_unknown_preset(self, tmp_path):
        with pytest.raises(ValueError):
            ParameterManager(str(tmp_path)).load_preset("slow_ist")

    def test_validate_current(self, tmp_path):
        manager = ParameterManager(str(tmp_path))
        assert manager.validate_current() == []

        manager.baseline.smoothness = 0.0
        assert len(manager.validate_current()) == 1
