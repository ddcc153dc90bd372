"""
Core data types for the rotor actuator model.

All vectors are numpy arrays of shape (3,).  Frames:
  - "link"  : the rotor link's local frame, spin axis along +z.
  - "world" : the host simulation's inertial frame.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from rotor_sim.errors import AliasingRisk


@dataclass
class RotorState:
    """
    Persistent per-rotor state, owned by exactly one actuator instance.

    Attributes:
        reference_speed: Lag-filtered target rotor speed [rad/s].
        prev_sim_time: Simulation time of the previous tick [s].
    """

    reference_speed: float = 0.0
    prev_sim_time: float = 0.0


@dataclass
class TickInputs:
    """
    Host readings supplied fresh every tick.

    Attributes:
        sim_time: Current simulation time [s]
        joint_velocity: Raw (slowed-down) joint angular velocity [rad/s]
        joint_axis: Joint rotation axis in world frame, shape (3,)
        body_velocity: Link linear velocity in world frame [m/s], shape (3,)
        commanded_speed: Commanded rotor speed [rad/s], or None to hold
            the current reference
    """

    sim_time: float
    joint_velocity: float
    joint_axis: NDArray[np.float64]  # (3,)
    body_velocity: NDArray[np.float64]  # (3,)
    commanded_speed: Optional[float] = None


@dataclass
class TickOutputs:
    """
    Forces, torques and joint command produced by one tick.

    The four vector contributions are independent and additive; the host
    applies each one exactly once.

    Attributes:
        force: Thrust along the rotor spin axis, link frame [N], shape (3,)
        drag: Induced rotor drag, world frame [N], shape (3,)
        torque: Reaction torque about the spin axis, link frame [N·m], shape (3,)
        rolling_moment: Rolling moment, link frame [N·m], shape (3,)
        joint_velocity_cmd: New commanded joint angular velocity [rad/s]
        dt: Elapsed time used for this tick [s]
        real_speed: De-scaled rotor speed [rad/s]
        aliasing: Set when the sampled rotor frequency exceeded Nyquist
    """

    force: NDArray[np.float64]  # (3,)
    drag: NDArray[np.float64]  # (3,)
    torque: NDArray[np.float64]  # (3,)
    rolling_moment: NDArray[np.float64]  # (3,)
    joint_velocity_cmd: float
    dt: float = 0.0
    real_speed: float = 0.0
    aliasing: Optional[AliasingRisk] = None

    @property
    def thrust_N(self) -> float:
        """Thrust magnitude [N]."""
        return float(self.force[2])
