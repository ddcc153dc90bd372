"""
Rotor actuator dynamics for rigid-body simulation.

Asymmetric first-order motor speed lag plus thrust, induced drag,
reaction torque and rolling moment for a single rotor.
"""

from rotor_sim.errors import AliasingRisk, ConfigurationMissing
from rotor_sim.motor_model import ResponseFilter, RotorModel, bind_rotor, step_rotor
from rotor_sim.params import RotorParams, default_params, rotor_params_from_dict
from rotor_sim.types import RotorState, TickInputs, TickOutputs

__version__ = "0.1.0"

__all__ = [
    "AliasingRisk",
    "ConfigurationMissing",
    "ResponseFilter",
    "RotorModel",
    "RotorParams",
    "RotorState",
    "TickInputs",
    "TickOutputs",
    "bind_rotor",
    "default_params",
    "rotor_params_from_dict",
    "step_rotor",
]
