"""
Rotor parameters and their JSON configuration.

Default values are for the rotor of a ~1.5 kg research hexacopter
(838 rad/s max, 8.5e-6 N·s² motor constant).

Parameters are supplied once at setup and are not re-validated per tick.
A single ``RotorParams`` instance may be shared read-only by several rotors.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from rotor_sim.errors import ConfigurationMissing


# Sign applied to reaction torque and joint command for each turning direction.
# The physical handedness is a convention of the host model; override per call
# to ``RotorParams.direction_sign`` / ``rotor_params_from_dict`` if it differs.
TURNING_DIRECTION_SIGNS: Dict[str, int] = {"cw": -1, "ccw": 1}

# Host (camelCase) configuration keys -> RotorParams field names.
_HOST_KEYS: Dict[str, str] = {
    "jointName": "joint_name",
    "linkName": "link_name",
    "motorNumber": "motor_number",
    "turningDirection": "turning_direction",
    "motorConstant": "motor_constant",
    "momentConstant": "moment_constant",
    "rotorDragCoefficient": "rotor_drag_coefficient",
    "rollingMomentCoefficient": "rolling_moment_coefficient",
    "maxRotVelocity": "max_rot_velocity",
    "timeConstantUp": "time_constant_up",
    "timeConstantDown": "time_constant_down",
    "rotorVelocitySlowdownSim": "rotor_velocity_slowdown_sim",
    "commandSubTopic": "command_sub_topic",
}


@dataclass(frozen=True)
class RotorParams:
    """
    Complete parameter set for one rotor actuator.

    Binding:
        joint_name: Host joint the rotor spins about
        link_name: Host link the forces are applied to
        motor_number: Identifying number (diagnostics, command index)
        turning_direction: "cw" or "ccw"
        command_sub_topic: Identity of the commanded-speed input channel

    Aerodynamics:
        motor_constant: Thrust per squared rotor speed [N·s²]
        moment_constant: Reaction torque per unit thrust [m]
        rotor_drag_coefficient: Induced drag coefficient [N·s²/m]
        rolling_moment_coefficient: Rolling moment coefficient [N·s²]

    Motor dynamics:
        max_rot_velocity: Commanded speed clamp [rad/s]
        time_constant_up: Spin-up time constant [s]
        time_constant_down: Spin-down time constant [s]
        rotor_velocity_slowdown_sim: Factor by which the simulated joint
            spins slower than the real rotor
    """

    joint_name: str = ""
    link_name: str = ""
    motor_number: int = 0
    turning_direction: str = ""
    command_sub_topic: str = "command/motor_speed"

    motor_constant: float = 8.54858e-06
    moment_constant: float = 0.016
    rotor_drag_coefficient: float = 1.0e-4
    rolling_moment_coefficient: float = 1.0e-6

    max_rot_velocity: float = 838.0
    time_constant_up: float = 1.0 / 80.0
    time_constant_down: float = 1.0 / 40.0
    rotor_velocity_slowdown_sim: float = 10.0

    def direction_sign(self, signs: Optional[Mapping[str, int]] = None) -> int:
        """Signed turning direction under the given (or default) mapping."""
        signs = TURNING_DIRECTION_SIGNS if signs is None else signs
        try:
            return signs[self.turning_direction]
        except KeyError:
            raise ConfigurationMissing(
                f"Please only use {sorted(signs)} as turningDirection, "
                f"got {self.turning_direction!r}"
            ) from None

    def validate(self, signs: Optional[Mapping[str, int]] = None) -> None:
        """Raise if the rotor cannot be set up with these parameters."""
        if not self.joint_name:
            raise ConfigurationMissing(
                "Please specify a jointName, where the rotor is attached."
            )
        if not self.link_name:
            raise ConfigurationMissing("Please specify a linkName of the rotor.")
        if not self.turning_direction:
            raise ConfigurationMissing(
                "Please specify a turning direction ('cw' or 'ccw')."
            )
        self.direction_sign(signs)

        for name in ("time_constant_up", "time_constant_down",
                     "rotor_velocity_slowdown_sim"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


def rotor_params_from_dict(
    config: Mapping[str, Any],
    signs: Optional[Mapping[str, int]] = None,
) -> RotorParams:
    """
    Build ``RotorParams`` from a flat mapping.

    Accepts both the host's camelCase keys (``motorConstant``) and the
    field names (``motor_constant``).  Missing keys keep their defaults.

    Raises:
        ValueError: on unknown keys.
        ConfigurationMissing: if the binding or turning direction is missing.
    """
    valid = {f.name for f in fields(RotorParams)}
    kwargs: Dict[str, Any] = {}
    for key, value in config.items():
        name = _HOST_KEYS.get(key, key)
        if name not in valid:
            raise ValueError(f"Unknown rotor parameter '{key}'")
        kwargs[name] = value

    if "turning_direction" not in kwargs:
        raise ConfigurationMissing(
            "Please specify a turning direction ('cw' or 'ccw')."
        )
    kwargs["turning_direction"] = str(kwargs["turning_direction"]).lower()

    params = RotorParams(**kwargs)
    params.validate(signs)
    return params


def load_rotor_params(
    path: str | Path,
    signs: Optional[Mapping[str, int]] = None,
) -> RotorParams:
    with open(path) as f:
        return rotor_params_from_dict(json.load(f), signs)


def save_rotor_params(params: RotorParams, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(asdict(params), f, indent=2)


def default_params(motor_number: int = 0, turning_direction: str = "ccw") -> RotorParams:
    """
    Create default rotor parameters bound to a conventionally named joint/link.
    """
    return RotorParams(
        joint_name=f"rotor_{motor_number}_joint",
        link_name=f"rotor_{motor_number}",
        motor_number=motor_number,
        turning_direction=turning_direction,
    )
