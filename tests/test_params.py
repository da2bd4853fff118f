from pathlib import Path

import pytest

from chaos_pendulum.params import (
    ControlSurface, SimulationParameters, SimulationState,
    controls_from_config, load_config,
)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "pendulum.yaml"


def test_shipped_config_matches_defaults():
    cfg = load_config(CONFIG_PATH)
    controls = controls_from_config(cfg)
    assert controls.parameters() == SimulationParameters()
    assert cfg["interaction"]["mode"] == "free"
    assert cfg["tensorboard"]["log_interval"] > 0


def test_load_config_from_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("pendulum:\n  gravity: 9.81\n  rod2_mass: 2\n")
    controls = controls_from_config(load_config(path))
    params = controls.parameters()
    assert params.gravity == 9.81
    assert params.rod2_mass == 2.0
    assert params.rod1_mass == SimulationParameters().rod1_mass


def test_missing_pendulum_section_uses_defaults():
    assert controls_from_config({}).parameters() == SimulationParameters()


def test_unknown_parameter_is_rejected():
    controls = ControlSurface()
    with pytest.raises(KeyError):
        controls["rod3_length"] = 1.0


def test_from_mapping_ignores_extra_keys():
    params = SimulationParameters.from_mapping({"gravity": 2, "reset": True})
    assert params.gravity == 2.0


def test_reset_request_is_consumed_once():
    controls = ControlSurface()
    assert not controls.consume_reset()
    controls.request_reset()
    assert controls.consume_reset()
    assert not controls.consume_reset()


def test_base_pivot_from_frame_geometry():
    params = SimulationParameters(base_height=0.5, support_height=2.0)
    assert params.base_pivot == (0.0, 2.25)


def test_state_array_round_trip():
    state = SimulationState(1.0, -2.0, 3.0, -4.0)
    assert SimulationState.from_array(state.as_array()) == state
    assert state.is_finite()
    assert not SimulationState(float("nan"), 0.0, 0.0, 0.0).is_finite()
