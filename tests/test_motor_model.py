"""Tests for the per-tick rotor update and its host binding."""

import logging

import numpy as np
import pytest

from rotor_sim.errors import AliasingRisk, ConfigurationMissing
from rotor_sim.motor_model import (
    ResponseFilter,
    RotorModel,
    bind_rotor,
    check_aliasing,
    perpendicular_velocity,
    step_rotor,
)
from rotor_sim.params import RotorParams, default_params
from rotor_sim.types import RotorState, TickInputs

Z = np.array([0.0, 0.0, 1.0])


def _inputs(joint_velocity=0.0, sim_time=0.001, body_velocity=None,
            axis=None, commanded_speed=None):
    return TickInputs(
        sim_time=sim_time,
        joint_velocity=joint_velocity,
        joint_axis=Z if axis is None else np.asarray(axis, dtype=float),
        body_velocity=np.zeros(3) if body_velocity is None else np.asarray(body_velocity, dtype=float),
        commanded_speed=commanded_speed,
    )


class RecordingJoint:
    def __init__(self, velocity=0.0, axis=Z):
        self._velocity = velocity
        self._axis = axis
        self.commands = []

    def velocity(self):
        return self._velocity

    def global_axis(self):
        return self._axis

    def set_velocity(self, value):
        self.commands.append(value)
        self._velocity = value


class RecordingLink:
    def __init__(self, linear_velocity=None):
        self.linear_velocity = np.zeros(3) if linear_velocity is None else linear_velocity
        self.calls = []

    def world_linear_velocity(self):
        return self.linear_velocity

    def add_relative_force(self, force):
        self.calls.append(("relative_force", force))

    def add_force(self, force):
        self.calls.append(("force", force))

    def add_relative_torque(self, torque):
        self.calls.append(("relative_torque", torque))


# ---- Thrust -----------------------------------------------------------------

def test_thrust_example_rotor():
    params = RotorParams(joint_name="j", link_name="l", turning_direction="ccw",
                         motor_constant=8.54e-6)
    # 83.8 rad/s on the joint, slowed down 10x -> 838 rad/s real
    _, out = step_rotor(RotorState(), params, _inputs(joint_velocity=83.8))
    assert out.real_speed == pytest.approx(838.0)
    assert out.thrust_N == pytest.approx(6.0, abs=0.01)
    assert out.force[0] == 0.0 and out.force[1] == 0.0


def test_thrust_is_even_in_rotor_speed():
    params = default_params()
    _, pos = step_rotor(RotorState(), params, _inputs(joint_velocity=50.0))
    _, neg = step_rotor(RotorState(), params, _inputs(joint_velocity=-50.0))
    assert pos.thrust_N > 0.0
    assert pos.thrust_N == neg.thrust_N


def test_thrust_scales_quadratically():
    params = default_params()
    _, single = step_rotor(RotorState(), params, _inputs(joint_velocity=30.0))
    _, double = step_rotor(RotorState(), params, _inputs(joint_velocity=60.0))
    assert double.thrust_N == pytest.approx(4.0 * single.thrust_N)


# ---- Reaction torque --------------------------------------------------------

def test_reaction_torque_flips_with_turning_direction():
    ccw = default_params(turning_direction="ccw")
    cw = default_params(turning_direction="cw")
    _, out_ccw = step_rotor(RotorState(), ccw, _inputs(joint_velocity=40.0))
    _, out_cw = step_rotor(RotorState(), cw, _inputs(joint_velocity=40.0))

    expected = out_ccw.thrust_N * ccw.moment_constant
    assert out_ccw.torque[2] == pytest.approx(-expected)
    assert out_cw.torque[2] == pytest.approx(expected)
    assert out_ccw.force[2] == out_cw.force[2]


def test_custom_sign_mapping_is_respected():
    params = default_params(turning_direction="ccw")
    _, default_out = step_rotor(RotorState(), params, _inputs(joint_velocity=40.0))
    _, flipped_out = step_rotor(RotorState(), params, _inputs(joint_velocity=40.0),
                                signs={"cw": 1, "ccw": -1})
    assert flipped_out.torque[2] == pytest.approx(-default_out.torque[2])


# ---- Drag and rolling moment ------------------------------------------------

def test_axial_velocity_gives_no_drag_or_rolling_moment():
    params = default_params()
    _, out = step_rotor(RotorState(), params,
                        _inputs(joint_velocity=60.0, body_velocity=[0.0, 0.0, 3.0]))
    assert np.array_equal(out.drag, np.zeros(3))
    assert np.array_equal(out.rolling_moment, np.zeros(3))


def test_lateral_velocity_gives_opposing_drag_and_rolling_moment():
    params = default_params()
    _, out = step_rotor(RotorState(), params,
                        _inputs(joint_velocity=50.0, body_velocity=[2.0, 0.0, 1.0]))
    # real speed 500 rad/s, v_perp = [2, 0, 0]
    np.testing.assert_allclose(out.drag, [-500.0 * 1.0e-4 * 2.0, 0.0, 0.0])
    np.testing.assert_allclose(out.rolling_moment, [-500.0 * 1.0e-6 * 2.0, 0.0, 0.0])


def test_drag_magnitude_ignores_spin_sign():
    params = default_params()
    v = [1.0, -1.0, 0.0]
    _, pos = step_rotor(RotorState(), params, _inputs(joint_velocity=50.0, body_velocity=v))
    _, neg = step_rotor(RotorState(), params, _inputs(joint_velocity=-50.0, body_velocity=v))
    np.testing.assert_allclose(pos.drag, neg.drag)


def test_perpendicular_velocity_on_tilted_axis():
    axis = np.array([1.0, 0.0, 1.0]) / np.sqrt(2.0)
    v_perp = perpendicular_velocity(np.array([1.0, 0.0, 0.0]), axis)
    assert np.dot(v_perp, axis) == pytest.approx(0.0, abs=1e-12)
    np.testing.assert_allclose(v_perp, [0.5, 0.0, -0.5])


# ---- Timing and aliasing ----------------------------------------------------

def test_elapsed_time_uses_previous_tick():
    params = default_params()
    state = RotorState(reference_speed=0.0, prev_sim_time=0.5)
    new_state, out = step_rotor(state, params, _inputs(sim_time=0.502))
    assert out.dt == pytest.approx(0.002)
    assert new_state.prev_sim_time == 0.502
    # input state is not mutated
    assert state.prev_sim_time == 0.5


def test_aliasing_flagged_above_nyquist(caplog):
    params = RotorParams(joint_name="j", link_name="l", turning_direction="ccw",
                         motor_number=3, rotor_velocity_slowdown_sim=1.0)
    w = 2.0 * np.pi * 600.0  # 600 Hz sampled at 1 kHz
    with caplog.at_level(logging.WARNING, logger="rotor_sim.motor_model"):
        _, out = step_rotor(RotorState(), params, _inputs(joint_velocity=w, sim_time=0.001))

    assert isinstance(out.aliasing, AliasingRisk)
    assert out.aliasing.motor_number == 3
    assert out.aliasing.rotor_frequency_hz == pytest.approx(600.0)
    assert out.aliasing.nyquist_hz == pytest.approx(500.0)
    assert "Aliasing on motor [3]" in caplog.text
    # Non-fatal: the tick still produced loads.
    assert out.thrust_N > 0.0


def test_aliasing_not_flagged_below_nyquist(caplog):
    params = RotorParams(joint_name="j", link_name="l", turning_direction="ccw",
                         rotor_velocity_slowdown_sim=1.0)
    w = 2.0 * np.pi * 499.0
    with caplog.at_level(logging.WARNING, logger="rotor_sim.motor_model"):
        _, out = step_rotor(RotorState(), params, _inputs(joint_velocity=w, sim_time=0.001))
    assert out.aliasing is None
    assert "Aliasing" not in caplog.text


def test_aliasing_not_flagged_at_nyquist():
    # Power-of-two tick so the boundary is exact in floating point:
    # dt = 1/1024 s -> 512 Hz Nyquist, rotor at exactly 512 Hz.
    params = RotorParams(joint_name="j", link_name="l", turning_direction="ccw",
                         rotor_velocity_slowdown_sim=1.0)
    dt = 1.0 / 1024.0
    w = 2.0 * np.pi * 512.0
    assert check_aliasing(w, dt, 0, dt) is None
    _, out = step_rotor(RotorState(), params, _inputs(joint_velocity=w, sim_time=dt))
    assert out.aliasing is None
    # One step above the boundary is flagged.
    assert check_aliasing(np.nextafter(w, np.inf), dt, 0, dt) is not None


def test_aliasing_check_uses_spin_magnitude():
    assert check_aliasing(-2.0 * np.pi * 600.0, 0.001, 0, 0.0) is not None


def test_zero_elapsed_time_tick_is_quiet_and_holds_speed():
    params = default_params()
    state = RotorState(reference_speed=300.0, prev_sim_time=1.0)
    new_state, out = step_rotor(
        state, params, _inputs(joint_velocity=1e6, sim_time=1.0, commanded_speed=800.0)
    )
    assert out.aliasing is None
    assert new_state.reference_speed == 300.0


# ---- Filter advance and joint command ---------------------------------------

def test_reference_speed_advances_one_filter_step():
    params = default_params()
    new_state, _ = step_rotor(RotorState(), params,
                              _inputs(sim_time=0.001, commanded_speed=500.0))
    expected = 500.0 * (1.0 - np.exp(-0.001 / params.time_constant_up))
    assert new_state.reference_speed == pytest.approx(expected)


def test_joint_command_is_signed_and_slowed_down():
    for direction in ("cw", "ccw"):
        params = default_params(turning_direction=direction)
        new_state, out = step_rotor(RotorState(), params,
                                    _inputs(sim_time=0.001, commanded_speed=500.0))
        sign = params.direction_sign()
        assert out.joint_velocity_cmd == pytest.approx(
            sign * new_state.reference_speed / params.rotor_velocity_slowdown_sim
        )


def test_no_command_holds_reference_speed():
    params = default_params()
    state = RotorState(reference_speed=420.0, prev_sim_time=0.0)
    new_state, _ = step_rotor(state, params, _inputs(sim_time=0.01))
    assert new_state.reference_speed == pytest.approx(420.0)


def test_command_clamped_to_max_rotor_velocity():
    params = default_params()
    state = RotorState()
    for k in range(1, 2001):
        state, _ = step_rotor(state, params, _inputs(sim_time=k * 0.001, commanded_speed=5000.0))
    assert state.reference_speed == pytest.approx(params.max_rot_velocity)


def test_constant_target_converges():
    params = default_params()
    state = RotorState()
    for k in range(1, 2001):
        state, _ = step_rotor(state, params, _inputs(sim_time=k * 0.001, commanded_speed=500.0))
    assert state.reference_speed == pytest.approx(500.0, rel=1e-9)


# ---- Host binding -----------------------------------------------------------

def test_on_update_applies_each_output_once():
    params = default_params()
    joint = RecordingJoint(velocity=50.0)
    link = RecordingLink(linear_velocity=np.array([1.0, 0.0, 0.0]))
    rotor = RotorModel(params, joint, link)
    rotor.set_command(600.0)

    out = rotor.on_update(0.001)

    kinds = [kind for kind, _ in link.calls]
    assert kinds.count("relative_force") == 1
    assert kinds.count("force") == 1
    assert kinds.count("relative_torque") == 2
    assert joint.commands == [out.joint_velocity_cmd]
    np.testing.assert_allclose(link.calls[0][1], out.force)
    assert rotor.motor_speed == rotor.state.reference_speed > 0.0


def test_rotor_model_follows_its_own_command():
    params = default_params()
    joint = RecordingJoint()
    rotor = RotorModel(params, joint, RecordingLink())
    rotor.set_command(400.0)
    for k in range(1, 501):
        rotor.on_update(k * 0.001)
    assert rotor.motor_speed == pytest.approx(400.0, rel=1e-6)
    assert joint.velocity() == pytest.approx(40.0, rel=1e-6)


def test_set_command_clamps():
    rotor = RotorModel(default_params(), RecordingJoint(), RecordingLink())
    rotor.set_command(10_000.0)
    rotor.on_update(0.001)
    assert rotor.motor_speed <= rotor.params.max_rot_velocity


def test_missing_joint_or_link_is_fatal():
    params = default_params()
    with pytest.raises(ConfigurationMissing, match="joint"):
        RotorModel(params, None, RecordingLink())
    with pytest.raises(ConfigurationMissing, match="link"):
        RotorModel(params, RecordingJoint(), None)


def test_bind_rotor_resolves_by_name():
    params = default_params(motor_number=2)
    joints = {"rotor_2_joint": RecordingJoint()}
    links = {"rotor_2": RecordingLink()}
    rotor = bind_rotor(params, joints, links)
    assert rotor.joint is joints["rotor_2_joint"]

    with pytest.raises(ConfigurationMissing):
        bind_rotor(params, {}, links)


def test_unbound_params_are_fatal():
    with pytest.raises(ConfigurationMissing):
        RotorModel(RotorParams(), RecordingJoint(), RecordingLink())


def test_missing_turning_direction_is_fatal():
    with pytest.raises(ConfigurationMissing, match="turning direction"):
        RotorModel(RotorParams(joint_name="j", link_name="l"),
                   RecordingJoint(), RecordingLink())


# ---- Filter state follows the rotor state ------------------------------------

def test_passed_filter_is_reseeded_from_state():
    params = default_params()
    stale = ResponseFilter.from_params(params, output=0.0)
    state = RotorState(reference_speed=500.0, prev_sim_time=0.0)

    new_state, _ = step_rotor(state, params,
                              _inputs(sim_time=0.001, commanded_speed=500.0), stale)

    assert new_state.reference_speed == pytest.approx(500.0)
    assert stale.output == new_state.reference_speed


def test_restored_state_drives_next_tick():
    params = default_params()
    rotor = RotorModel(params, RecordingJoint(), RecordingLink())
    rotor.set_command(800.0)
    for k in range(1, 51):
        rotor.on_update(k * 0.001)

    rotor.state = RotorState(reference_speed=500.0, prev_sim_time=0.0)
    rotor.set_command(500.0)
    rotor.on_update(0.001)
    assert rotor.motor_speed == pytest.approx(500.0)

    # One rise step from the restored speed, not from the discarded one.
    rotor.state = RotorState(reference_speed=100.0, prev_sim_time=0.0)
    rotor.set_command(600.0)
    rotor.on_update(0.001)
    expected = 100.0 + 500.0 * (1.0 - np.exp(-0.001 / params.time_constant_up))
    assert rotor.motor_speed == pytest.approx(expected)
