"""
Minimal stand-in host for running a rotor outside a physics engine.

The joint is velocity-controlled: a commanded velocity becomes the reading
on the next tick.  The link does not move on its own; its world linear
velocity is set by the caller, and the loads applied each tick are summed
so they can be inspected and logged.
"""

from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray


class BenchJoint:
    """Revolute joint with a fixed world axis."""

    def __init__(self, axis: Optional[ArrayLike] = None, velocity: float = 0.0):
        axis = np.array([0.0, 0.0, 1.0]) if axis is None else np.asarray(axis, dtype=np.float64)
        norm = np.linalg.norm(axis)
        if norm == 0.0:
            raise ValueError("Joint axis must be non-zero")
        self._axis = axis / norm
        self._velocity = float(velocity)

    def velocity(self) -> float:
        return self._velocity

    def global_axis(self) -> NDArray[np.float64]:
        return self._axis.copy()

    def set_velocity(self, value: float) -> None:
        self._velocity = float(value)


class BenchLink:
    """Link that accumulates applied forces and torques."""

    def __init__(self, linear_velocity: Optional[ArrayLike] = None):
        self.linear_velocity = (
            np.zeros(3) if linear_velocity is None
            else np.asarray(linear_velocity, dtype=np.float64)
        )
        self.relative_force = np.zeros(3)
        self.world_force = np.zeros(3)
        self.relative_torque = np.zeros(3)
        self.n_applied = 0

    def world_linear_velocity(self) -> NDArray[np.float64]:
        return self.linear_velocity.copy()

    def add_relative_force(self, force: NDArray[np.float64]) -> None:
        self.relative_force = self.relative_force + force
        self.n_applied += 1

    def add_force(self, force: NDArray[np.float64]) -> None:
        self.world_force = self.world_force + force
        self.n_applied += 1

    def add_relative_torque(self, torque: NDArray[np.float64]) -> None:
        self.relative_torque = self.relative_torque + torque
        self.n_applied += 1

    def clear(self) -> None:
        """Drop the loads accumulated during the last tick."""
        self.relative_force = np.zeros(3)
        self.world_force = np.zeros(3)
        self.relative_torque = np.zeros(3)
        self.n_applied = 0
