"""
Named bench scenarios.

Each scenario is a command schedule, an optional body velocity schedule,
a duration and a tick period.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from rotor_sim.sim import CommandFn, VelocityFn, constant, pulse, step


@dataclass(frozen=True)
class ScenarioSpec:
    """Specification for a bench scenario."""

    name: str
    t_final: float
    command_fn: Callable[[], CommandFn]  # factory, call to get schedule
    dt: float = 0.001
    body_velocity_fn: Optional[Callable[[], VelocityFn]] = None
    initial_speed: float = 0.0
    params_overrides: Optional[dict] = None  # applied with dataclasses.replace
    description: str = ""


_SCENARIOS: dict[str, ScenarioSpec] = {}


def _register(spec: ScenarioSpec) -> None:
    _SCENARIOS[spec.name] = spec


_register(ScenarioSpec(
    name="spin_up",
    t_final=0.25,
    command_fn=lambda: constant(600.0),
    description="Idle rotor commanded to 600 rad/s",
))

_register(ScenarioSpec(
    name="spin_down",
    t_final=0.25,
    command_fn=lambda: constant(0.0),
    initial_speed=600.0,
    description="Rotor at 600 rad/s commanded to stop",
))

_register(ScenarioSpec(
    name="step_cycle",
    t_final=0.5,
    command_fn=lambda: pulse(700.0, t_on=0.05, t_off=0.25, idle=300.0),
    initial_speed=300.0,
    description="300 -> 700 -> 300 rad/s; shows rise/fall asymmetry",
))

_register(ScenarioSpec(
    name="forward_flight",
    t_final=0.3,
    command_fn=lambda: constant(550.0),
    body_velocity_fn=lambda: (lambda t: np.array([5.0, 0.0, 0.5])),
    initial_speed=550.0,
    description="Hover speed with 5 m/s forward flight; drag and rolling moment",
))

_register(ScenarioSpec(
    name="coarse_step",
    t_final=0.2,
    command_fn=lambda: step(300.0, 838.0, t_step=0.05),
    dt=0.01,
    initial_speed=300.0,
    params_overrides={"rotor_velocity_slowdown_sim": 1.0},
    description="100 Hz ticks with a small slowdown; triggers aliasing warnings",
))


def get_scenario(name: str) -> ScenarioSpec:
    """Return a scenario by name. Raises ``KeyError`` if unknown."""
    return _SCENARIOS[name]


def list_scenarios() -> list[str]:
    """Return sorted list of registered scenario names."""
    return sorted(_SCENARIOS)
