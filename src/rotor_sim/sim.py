"""
Bench simulation loop.

Drives a single rotor on the bench host at a fixed tick cadence.

The pipeline per tick is:
    1. Command schedule  →  commanded rotor speed (or None to hold)
    2. Body velocity schedule  →  link world linear velocity
    3. RotorModel.on_update  →  loads applied to the link, joint command
    4. Log the tick
"""

from typing import Callable, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from rotor_sim.bench import BenchJoint, BenchLink
from rotor_sim.log import RotorLog
from rotor_sim.motor_model import RotorModel
from rotor_sim.params import RotorParams

CommandFn = Callable[[float], Optional[float]]
VelocityFn = Callable[[float], NDArray[np.float64]]


def run_bench(
    params: RotorParams,
    command_fn: CommandFn,
    t_final: float,
    dt: float = 0.001,
    body_velocity_fn: Optional[VelocityFn] = None,
    axis: Optional[ArrayLike] = None,
    initial_speed: float = 0.0,
    verbose: bool = False,
) -> RotorLog:
    """
    Run a rotor on the bench host.

    Args:
        params: Rotor parameters (joint/link names are used as-is).
        command_fn: Commanded speed [rad/s] as a function of time, or None
            to hold the current reference.
        t_final: End time [s].
        dt: Tick period [s] (default: 0.001 = 1 kHz).
        body_velocity_fn: Link world linear velocity as a function of time
            (default: at rest).
        axis: Joint rotation axis in world frame (default: +z).
        initial_speed: Initial real rotor speed [rad/s].
        verbose: Print progress.

    Returns:
        Trimmed RotorLog, one entry per tick (the first tick is at t = dt).
    """
    n_steps = int(np.ceil(t_final / dt))

    joint = BenchJoint(
        axis,
        velocity=(params.direction_sign() * initial_speed
                  / params.rotor_velocity_slowdown_sim),
    )
    link = BenchLink()
    rotor = RotorModel(params, joint, link)
    rotor.state.reference_speed = initial_speed

    log = RotorLog.allocate(n_steps)

    if verbose:
        print(f"Starting bench: t_final={t_final}s, dt={dt*1000:.2f}ms, ticks={n_steps}")

    for k in range(1, n_steps + 1):
        t = k * dt
        if body_velocity_fn is not None:
            link.linear_velocity = np.asarray(body_velocity_fn(t), dtype=np.float64)

        command = command_fn(t)
        if command is not None:
            rotor.set_command(command)

        link.clear()
        outputs = rotor.on_update(t)
        log.record(t, command, rotor.state, outputs)

    return log.trim()


# ---------------------------------------------------------------------------
# Command schedules
# ---------------------------------------------------------------------------

def constant(speed: float) -> CommandFn:
    return lambda t: speed


def step(speed_before: float, speed_after: float, t_step: float) -> CommandFn:
    return lambda t: speed_before if t < t_step else speed_after


def pulse(speed: float, t_on: float, t_off: float, idle: float = 0.0) -> CommandFn:
    """Command ``speed`` on [t_on, t_off), ``idle`` otherwise."""
    return lambda t: speed if t_on <= t < t_off else idle
