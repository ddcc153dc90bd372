"""
Error and diagnostic types for the rotor actuator model.

Only two anomalies exist at the actuator boundary:

- ``ConfigurationMissing`` is raised during setup when the rotor cannot be
  bound to its host joint/link or has no usable turning direction.  No tick
  may run after it.
- ``AliasingRisk`` is *not* an exception.  It is a record attached to the
  tick outputs (and logged as a warning) when the rotor spins faster than the
  tick rate can sample.  The simulation continues with the aliased sample.
"""

from __future__ import annotations

from dataclasses import dataclass


class ConfigurationMissing(ValueError):
    """Required setup parameter is absent or could not be resolved."""


@dataclass(frozen=True)
class AliasingRisk:
    """
    Advisory record of a possible sampling-rate aliasing condition.

    Attributes:
        motor_number: Identifying number of the offending rotor.
        rotor_frequency_hz: Sampled joint rotation frequency [Hz].
        nyquist_hz: Nyquist limit of the tick that sampled it [Hz].
        sim_time: Simulation time of the tick [s].
    """

    motor_number: int
    rotor_frequency_hz: float
    nyquist_hz: float
    sim_time: float

    def describe(self) -> str:
        return (
            f"Aliasing on motor [{self.motor_number}] might occur "
            f"({self.rotor_frequency_hz:.1f} Hz > {self.nyquist_hz:.1f} Hz Nyquist). "
            "Consider making smaller simulation time steps or raising the "
            "rotor_velocity_slowdown_sim param."
        )
