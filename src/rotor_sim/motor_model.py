"""
Rotor actuator dynamics: asymmetric first-order speed lag plus rotor
forces and moments.

Models the lag between commanded and actual rotor speed due to motor
inertia and ESC response, and the aerodynamic loads a spinning rotor puts
on its link.

Physical motivation:
- Motors spin up and spin down at different rates (driven vs. coasting),
  so the speed lag uses two time constants.
- Thrust and reaction torque scale with the square of rotor speed.
- A rotor moving sideways through the air sees induced drag and a rolling
  moment proportional to speed times lateral velocity (Martin & Salaün,
  "The True Role of Accelerometer Feedback in Quadrotor Control", ICRA 2010).

Discrete-time lag (exact ZOH), tau chosen by the sign of (target - w):
    w[k+1] = alpha * w[k] + (1 - alpha) * target
    where alpha = exp(-dt / tau),  tau = tau_up if target > w[k] else tau_down

Per-tick loads, with w = slowdown * joint velocity and v_perp the body
velocity with its component along the joint axis removed:
    F_thrust = k_f * w^2                       (+z, link frame)
    F_drag   = -|w| * lambda_1 * v_perp        (world frame)
    tau_z    = -dir * F_thrust * k_m           (link frame)
    M_roll   = -|w| * mu_1 * v_perp
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol

import numpy as np
from numpy.typing import NDArray

from rotor_sim.errors import AliasingRisk, ConfigurationMissing
from rotor_sim.params import RotorParams
from rotor_sim.types import RotorState, TickInputs, TickOutputs

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response filter
# ---------------------------------------------------------------------------

def first_order_step(
    output: float,
    target: float,
    dt: float,
    tau_up: float,
    tau_down: float,
) -> float:
    """
    Advance an asymmetric first-order lag by one step.

    Args:
        output: Current filter output.
        target: Value the output is lagging toward.
        dt: Elapsed time [s].  Non-positive values leave the output unchanged.
        tau_up: Time constant used while target > output [s].
        tau_down: Time constant used otherwise [s].

    Returns:
        New filter output.
    """
    if dt <= 0.0:
        return output
    tau = tau_up if target > output else tau_down
    alpha = np.exp(-dt / tau)
    return float(alpha * output + (1.0 - alpha) * target)


class ResponseFilter:
    """
    First-order lag with separate rise and fall time constants.

    The output approaches the target exponentially and never overshoots it.
    """

    def __init__(self, tau_up: float, tau_down: float, output: float = 0.0):
        self.tau_up = tau_up
        self.tau_down = tau_down
        self.output = output

    def advance(self, target: float, dt: float) -> float:
        self.output = first_order_step(
            self.output, target, dt, self.tau_up, self.tau_down
        )
        return self.output

    def reset(self, output: float = 0.0) -> None:
        self.output = output

    @staticmethod
    def from_params(params: RotorParams, output: float = 0.0) -> "ResponseFilter":
        return ResponseFilter(
            params.time_constant_up, params.time_constant_down, output
        )


# ---------------------------------------------------------------------------
# Per-tick update
# ---------------------------------------------------------------------------

def check_aliasing(
    joint_velocity: float,
    dt: float,
    motor_number: int,
    sim_time: float,
) -> Optional[AliasingRisk]:
    """
    Compare the sampled rotor frequency with the Nyquist limit of ``dt``.

    Returns an ``AliasingRisk`` when ``|w| / 2pi > 1 / (2 dt)``, else None.
    The comparison uses the spin magnitude, not the signed joint velocity,
    so a rotor whose joint turns negative (cw) is checked as well.
    No check is possible on a tick with ``dt <= 0``.
    """
    if dt <= 0.0:
        return None
    rotor_frequency = abs(joint_velocity) / (2.0 * np.pi)
    nyquist = 1.0 / (2.0 * dt)
    if rotor_frequency > nyquist:
        return AliasingRisk(
            motor_number=motor_number,
            rotor_frequency_hz=float(rotor_frequency),
            nyquist_hz=float(nyquist),
            sim_time=sim_time,
        )
    return None


def perpendicular_velocity(
    body_velocity: NDArray[np.float64],
    axis: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Component of ``body_velocity`` orthogonal to the unit ``axis``."""
    return body_velocity - np.dot(body_velocity, axis) * axis


def step_rotor(
    state: RotorState,
    params: RotorParams,
    inputs: TickInputs,
    motor_filter: Optional[ResponseFilter] = None,
    signs: Optional[Mapping[str, int]] = None,
) -> tuple[RotorState, TickOutputs]:
    """
    Advance the rotor model by one simulation tick.

    Pipeline:
        1. Elapsed time since the previous tick.
        2. Aliasing check against that elapsed time (advisory).
        3. De-scale joint speed to real rotor speed.
        4-7. Thrust, induced drag, reaction torque, rolling moment.
        8. Advance the speed lag and derive the new joint command.

    Nothing is applied to the host here; see ``RotorModel.on_update``.

    Args:
        state: Rotor state from the previous tick.
        params: Rotor parameters.
        inputs: Host readings for this tick.
        motor_filter: Filter to advance in place.  It is re-seeded from
            ``state.reference_speed`` first, so the state passed in is the
            only source of the running output.  If None, a filter is
            created for this call only.
        signs: Turning-direction sign mapping (default
            ``TURNING_DIRECTION_SIGNS``).

    Returns:
        (new_state, outputs)
    """
    direction = params.direction_sign(signs)

    # --- Timing and sampling check ----------------------------------------
    dt = inputs.sim_time - state.prev_sim_time
    aliasing = check_aliasing(
        inputs.joint_velocity, dt, params.motor_number, inputs.sim_time
    )
    if aliasing is not None:
        logger.warning(aliasing.describe())

    # --- Loads ------------------------------------------------------------
    real_speed = inputs.joint_velocity * params.rotor_velocity_slowdown_sim
    thrust = real_speed * real_speed * params.motor_constant
    force = np.array([0.0, 0.0, thrust])

    axis = np.asarray(inputs.joint_axis, dtype=np.float64)
    body_velocity = np.asarray(inputs.body_velocity, dtype=np.float64)
    v_perp = perpendicular_velocity(body_velocity, axis)

    drag = -abs(real_speed) * params.rotor_drag_coefficient * v_perp
    torque = np.array([0.0, 0.0, -direction * thrust * params.moment_constant])
    rolling_moment = -abs(real_speed) * params.rolling_moment_coefficient * v_perp

    # --- Speed lag and joint command --------------------------------------
    if motor_filter is None:
        motor_filter = ResponseFilter.from_params(params, state.reference_speed)
    else:
        motor_filter.reset(state.reference_speed)
    if inputs.commanded_speed is None:
        target = state.reference_speed
    else:
        target = min(inputs.commanded_speed, params.max_rot_velocity)
    reference_speed = motor_filter.advance(target, dt)
    joint_velocity_cmd = (
        direction * reference_speed / params.rotor_velocity_slowdown_sim
    )

    new_state = RotorState(
        reference_speed=reference_speed,
        prev_sim_time=inputs.sim_time,
    )
    outputs = TickOutputs(
        force=force,
        drag=drag,
        torque=torque,
        rolling_moment=rolling_moment,
        joint_velocity_cmd=joint_velocity_cmd,
        dt=dt,
        real_speed=real_speed,
        aliasing=aliasing,
    )
    return new_state, outputs


# ---------------------------------------------------------------------------
# Host binding
# ---------------------------------------------------------------------------

class JointHandle(Protocol):
    """Host joint capabilities the rotor needs."""

    def velocity(self) -> float: ...

    def global_axis(self) -> NDArray[np.float64]: ...

    def set_velocity(self, value: float) -> None: ...


class LinkHandle(Protocol):
    """Host link capabilities the rotor needs."""

    def world_linear_velocity(self) -> NDArray[np.float64]: ...

    def add_relative_force(self, force: NDArray[np.float64]) -> None: ...

    def add_force(self, force: NDArray[np.float64]) -> None: ...

    def add_relative_torque(self, torque: NDArray[np.float64]) -> None: ...


class RotorModel:
    """
    One rotor bound to a host joint and link.

    Owns its ``RotorState`` and ``ResponseFilter``; call ``on_update`` once
    per simulation tick.
    """

    def __init__(
        self,
        params: RotorParams,
        joint: Optional[JointHandle],
        link: Optional[LinkHandle],
        signs: Optional[Mapping[str, int]] = None,
    ):
        params.validate(signs)
        if joint is None:
            raise ConfigurationMissing(
                f"Couldn't find specified joint \"{params.joint_name}\"."
            )
        if link is None:
            raise ConfigurationMissing(
                f"Couldn't find specified link \"{params.link_name}\"."
            )

        self.params = params
        self.joint = joint
        self.link = link
        self.signs = signs
        self.state = RotorState()
        self.filter = ResponseFilter.from_params(params, self.state.reference_speed)
        self._command: Optional[float] = None

        logger.debug(
            "Rotor %d bound to joint '%s' / link '%s' (%s, tau_up=%.4fs, tau_down=%.4fs)",
            params.motor_number, params.joint_name, params.link_name,
            params.turning_direction, params.time_constant_up,
            params.time_constant_down,
        )

    @property
    def motor_speed(self) -> float:
        """Current lag-filtered reference speed [rad/s]."""
        return self.state.reference_speed

    def set_command(self, speed: float) -> None:
        """Set the commanded rotor speed, clamped to ``max_rot_velocity``."""
        self._command = min(speed, self.params.max_rot_velocity)

    def on_update(self, sim_time: float) -> TickOutputs:
        """Run one tick against the host and apply its outputs."""
        inputs = TickInputs(
            sim_time=sim_time,
            joint_velocity=self.joint.velocity(),
            joint_axis=self.joint.global_axis(),
            body_velocity=self.link.world_linear_velocity(),
            commanded_speed=self._command,
        )
        self.state, outputs = step_rotor(
            self.state, self.params, inputs, self.filter, self.signs
        )

        self.link.add_relative_force(outputs.force)
        self.link.add_force(outputs.drag)
        self.link.add_relative_torque(outputs.torque)
        self.link.add_relative_torque(outputs.rolling_moment)
        self.joint.set_velocity(outputs.joint_velocity_cmd)

        return outputs


def bind_rotor(
    params: RotorParams,
    joints: Mapping[str, JointHandle],
    links: Mapping[str, LinkHandle],
    signs: Optional[Mapping[str, int]] = None,
) -> RotorModel:
    """
    Resolve the rotor's joint and link by name and bind a ``RotorModel``.

    Raises:
        ConfigurationMissing: if a name is empty or cannot be resolved.
    """
    return RotorModel(
        params,
        joints.get(params.joint_name),
        links.get(params.link_name),
        signs,
    )
