"""
Main entry point for rotor bench runs.

Run with: python -m rotor_sim.main

Examples:
    python -m rotor_sim.main                       # Run all scenarios
    python -m rotor_sim.main --scenario spin_up
    python -m rotor_sim.main --params rotor.json   # Load rotor parameters
    python -m rotor_sim.main --log-level DEBUG
"""

import argparse
import dataclasses
import logging
from typing import List, Optional

from rotor_sim.log import RotorLog, print_statistics
from rotor_sim.params import RotorParams, default_params, load_rotor_params
from rotor_sim.scenarios import get_scenario, list_scenarios
from rotor_sim.sim import run_bench


def run_scenario(name: str, params: RotorParams) -> RotorLog:
    """Run one named scenario and print its statistics."""
    spec = get_scenario(name)
    if spec.params_overrides:
        params = dataclasses.replace(params, **spec.params_overrides)

    print("\n" + "=" * 60)
    print(name.upper().replace("_", " "))
    print("=" * 60)
    if spec.description:
        print(spec.description)

    log = run_bench(
        params,
        spec.command_fn(),
        t_final=spec.t_final,
        dt=spec.dt,
        body_velocity_fn=spec.body_velocity_fn() if spec.body_velocity_fn else None,
        initial_speed=spec.initial_speed,
    )
    print_statistics(log, name)
    return log


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Rotor actuator dynamics bench",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scenario", "-s",
        type=str,
        choices=list_scenarios() + ["all"],
        default="all",
        help="Which scenario to run (default: all)",
    )
    parser.add_argument(
        "--params", "-p",
        type=str,
        default=None,
        help="JSON file with rotor parameters (default: built-in rotor)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    params = load_rotor_params(args.params) if args.params else default_params()
    print(f"Rotor {params.motor_number} ({params.turning_direction}):")
    print(f"  Motor constant:  {params.motor_constant:.3e} N·s²")
    print(f"  Max speed:       {params.max_rot_velocity:.0f} rad/s")
    print(f"  Tau up / down:   {params.time_constant_up*1000:.1f} / "
          f"{params.time_constant_down*1000:.1f} ms")

    names = list_scenarios() if args.scenario == "all" else [args.scenario]
    for name in names:
        run_scenario(name, params)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
