"""
Bench logging utilities.

Provides pre-allocated logging for efficient data collection
during a bench run, plus summary statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from rotor_sim.types import RotorState, TickOutputs


@dataclass
class RotorLog:
    """
    Time histories of one rotor.

    All arrays have shape (N,) or (N, 3) where N is number of ticks.
    """

    t: NDArray[np.float64]  # (N,)
    command: NDArray[np.float64]  # (N,) commanded speed, NaN if none
    reference_speed: NDArray[np.float64]  # (N,)
    real_speed: NDArray[np.float64]  # (N,)
    thrust: NDArray[np.float64]  # (N,)
    drag: NDArray[np.float64]  # (N, 3)
    torque: NDArray[np.float64]  # (N, 3)
    rolling_moment: NDArray[np.float64]  # (N, 3)
    aliasing: NDArray[np.bool_]  # (N,)

    _idx: int = field(default=0, repr=False)

    @staticmethod
    def allocate(n_steps: int) -> "RotorLog":
        """Pre-allocate arrays for n_steps ticks."""
        return RotorLog(
            t=np.zeros(n_steps),
            command=np.full(n_steps, np.nan),
            reference_speed=np.zeros(n_steps),
            real_speed=np.zeros(n_steps),
            thrust=np.zeros(n_steps),
            drag=np.zeros((n_steps, 3)),
            torque=np.zeros((n_steps, 3)),
            rolling_moment=np.zeros((n_steps, 3)),
            aliasing=np.zeros(n_steps, dtype=bool),
        )

    def record(
        self,
        t: float,
        command: float | None,
        state: RotorState,
        outputs: TickOutputs,
    ) -> None:
        """Record one tick."""
        i = self._idx
        self.t[i] = t
        if command is not None:
            self.command[i] = command
        self.reference_speed[i] = state.reference_speed
        self.real_speed[i] = outputs.real_speed
        self.thrust[i] = outputs.thrust_N
        self.drag[i] = outputs.drag
        self.torque[i] = outputs.torque
        self.rolling_moment[i] = outputs.rolling_moment
        self.aliasing[i] = outputs.aliasing is not None
        self._idx += 1

    def trim(self) -> "RotorLog":
        """Trim arrays to actual recorded length."""
        n = self._idx
        return RotorLog(
            t=self.t[:n],
            command=self.command[:n],
            reference_speed=self.reference_speed[:n],
            real_speed=self.real_speed[:n],
            thrust=self.thrust[:n],
            drag=self.drag[:n],
            torque=self.torque[:n],
            rolling_moment=self.rolling_moment[:n],
            aliasing=self.aliasing[:n],
            _idx=n,
        )


def rise_time(log: RotorLog, lo: float = 0.1, hi: float = 0.9) -> float:
    """
    10-90 % rise time of the reference speed toward its final value [s].

    Returns NaN if the response never crosses both thresholds.
    """
    w = log.reference_speed
    if len(w) == 0:
        return float("nan")
    w0, w_final = w[0], w[-1]
    span = w_final - w0
    if span == 0.0:
        return float("nan")
    frac = (w - w0) / span
    above_lo = np.nonzero(frac >= lo)[0]
    above_hi = np.nonzero(frac >= hi)[0]
    if len(above_lo) == 0 or len(above_hi) == 0:
        return float("nan")
    return float(log.t[above_hi[0]] - log.t[above_lo[0]])


def compute_statistics(log: RotorLog) -> dict:
    """
    Compute summary statistics from a bench log.

    Returns:
        Dictionary with:
        - duration: Logged time span [s]
        - final_speed: Final reference speed [rad/s]
        - rise_time: 10-90 % rise time of the reference speed [s]
        - max_thrust / mean_thrust: Thrust extremes [N]
        - max_drag: Peak induced drag magnitude [N]
        - max_yaw_torque: Peak |reaction torque| [N·m]
        - aliasing_ticks: Number of ticks flagged for aliasing
    """
    return {
        "duration": float(log.t[-1] - log.t[0]) if len(log.t) else 0.0,
        "final_speed": float(log.reference_speed[-1]) if len(log.t) else 0.0,
        "rise_time": rise_time(log),
        "max_thrust": float(np.max(log.thrust)) if len(log.t) else 0.0,
        "mean_thrust": float(np.mean(log.thrust)) if len(log.t) else 0.0,
        "max_drag": float(np.max(np.linalg.norm(log.drag, axis=1))) if len(log.t) else 0.0,
        "max_yaw_torque": float(np.max(np.abs(log.torque[:, 2]))) if len(log.t) else 0.0,
        "aliasing_ticks": int(np.count_nonzero(log.aliasing)),
    }


def print_statistics(log: RotorLog, name: str = "Bench") -> None:
    """Print summary statistics to console."""
    stats = compute_statistics(log)

    print(f"\n{name} Statistics:")
    print(f"  Duration:        {stats['duration']:.3f} s")
    print(f"  Final speed:     {stats['final_speed']:.1f} rad/s")
    print(f"  Rise time:       {stats['rise_time']*1000:.1f} ms")
    print(f"  Mean thrust:     {stats['mean_thrust']:.3f} N")
    print(f"  Max thrust:      {stats['max_thrust']:.3f} N")
    print(f"  Max drag:        {stats['max_drag']:.4f} N")
    print(f"  Max yaw torque:  {stats['max_yaw_torque']:.4f} N·m")
    print(f"  Aliasing ticks:  {stats['aliasing_ticks']}")
