"""Command line entry point for the gas and Duffing simulations.

    python app.py gas [--particles N] [--interactive] [--no-viewer] ...
    python app.py duffing [--tf 70] [--name datos]
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Callable, Optional, Sequence

import config
from config import GasParameters, InvalidParameterError
from duffing import DuffingOscillator
from integrator import RK4Integrator
from logger import setup_logging
from results import PressureWriter, SnapshotWriter, ensure_results_dir, write_duffing_data
from simulation import Simulation

log = logging.getLogger("gasbox.app")


def _ask(prompt: str, cast: Callable, input_fn: Callable[[str], str]):
    while True:
        raw = input_fn(prompt)
        try:
            return cast(raw)
        except ValueError:
            print(f"Invalid value {raw!r}, try again.")


def prompt_gas_parameters(
    defaults: GasParameters, input_fn: Callable[[str], str] = input
) -> GasParameters:
    """Ask for box side, particle count, v_max and radius on the console.

    The radius is asked again until it lies strictly between zero and half
    a grid cell.  Invalid values that are not asked for (``dt``, ``steps``,
    ``mass`` from the config) raise :class:`InvalidParameterError` before
    the radius prompt.
    """
    print("=== Hard-disk gas simulator ===")
    side = 0.0
    while not side > 0.0:
        side = _ask("Box side length (positive): ", float, input_fn)
    particles = 0
    while particles < 1:
        particles = _ask("Number of particles: ", int, input_fn)
    v_max = -1.0
    while v_max < 0.0:
        v_max = _ask("Maximum speed: ", float, input_fn)
    params = replace(defaults, side=side, particles=particles, v_max=v_max, radius=None)
    params.validate_run()
    while True:
        radius = _ask(f"Radius (suggested: {params.suggested_radius():.6g}): ", float, input_fn)
        candidate = replace(params, radius=radius)
        try:
            candidate.validate_radius()
        except InvalidParameterError as exc:
            print(f"Rejected: {exc}. Try again.")
            continue
        return candidate


class App:
    """Wire parameters, sinks and the simulations together."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.results_cfg = config.load_results_config()

    def run(self) -> int:
        if self.args.command == "gas":
            return self.run_gas()
        return self.run_duffing()

    def gas_parameters(self) -> GasParameters:
        params = config.load_gas_parameters()
        overrides = {
            name: getattr(self.args, name)
            for name in ("side", "particles", "v_max", "radius", "dt", "steps", "seed")
            if getattr(self.args, name, None) is not None
        }
        params = replace(params, **overrides)
        if self.args.interactive:
            params = prompt_gas_parameters(params)
        return params

    def run_gas(self) -> int:
        try:
            params = self.gas_parameters()
            params.validate()
        except InvalidParameterError as exc:
            log.warning("Rejected gas parameters: %s", exc)
            return 2

        writers = []
        snapshot_sinks = []
        viewer = None
        simulation = Simulation.from_parameters(params)

        def emit(snapshot):
            for sink in snapshot_sinks:
                sink(snapshot)

        try:
            if not self.args.no_files:
                out_dir = ensure_results_dir(self.results_cfg.directory)
                snapshot_writer = SnapshotWriter(out_dir / self.results_cfg.positions_file)
                pressure_writer = PressureWriter(out_dir / self.results_cfg.pressure_file)
                writers = [snapshot_writer, pressure_writer]
                snapshot_sinks.append(snapshot_writer)
                simulation.pressure_sink = pressure_writer

            if not self.args.no_viewer:
                from viewer import GasViewer

                viewer_cfg = config.load_viewer_config()
                frames_dir = None
                if viewer_cfg.save_frames:
                    frames_dir = ensure_results_dir(self.results_cfg.directory) / "frames"
                viewer = GasViewer(
                    simulation.box,
                    params.effective_radius(),
                    size=(int(viewer_cfg.size[0]), int(viewer_cfg.size[1])),
                    fps=viewer_cfg.fps,
                    bins=viewer_cfg.histogram_bins,
                    frames_dir=frames_dir,
                )
                snapshot_sinks.append(viewer)

            simulation.snapshot_sink = emit
            for _ in simulation:
                if viewer is not None and viewer.closed:
                    break
        except OSError as exc:
            log.error("Could not write results: %s", exc)
            return 1
        finally:
            for writer in writers:
                writer.close()
            if viewer is not None:
                viewer.close()
        print(f"Final pressure: {simulation.pressure:.6g}  kinetic energy: {simulation.kinetic_energy():.6g}")
        return 0

    def run_duffing(self) -> int:
        params = config.load_duffing_parameters()
        overrides = {
            name: getattr(self.args, name)
            for name in ("tf", "dt")
            if getattr(self.args, name, None) is not None
        }
        params = replace(params, **overrides)
        try:
            osc = DuffingOscillator.from_parameters(params)
        except ValueError as exc:
            log.warning("Rejected Duffing parameters: %s", exc)
            return 2
        RK4Integrator.integrate(osc)
        try:
            path = write_duffing_data(osc, self.args.name, self.results_cfg.directory)
        except OSError as exc:
            log.error("Could not write results: %s", exc)
            return 1
        print(f"Simulation finished. Data in {path}")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hard-disk gas and coupled Duffing oscillators")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--log-file", default=None, help="also log to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    gas = sub.add_parser("gas", help="hard-disk gas in a box")
    gas.add_argument("--side", type=float)
    gas.add_argument("--particles", type=int)
    gas.add_argument("--vmax", dest="v_max", type=float)
    gas.add_argument("--radius", type=float)
    gas.add_argument("--dt", type=float)
    gas.add_argument("--steps", type=int)
    gas.add_argument("--seed", type=int)
    gas.add_argument("--interactive", action="store_true", help="ask for the parameters on the console")
    gas.add_argument("--no-viewer", action="store_true", help="do not open the pygame window")
    gas.add_argument("--no-files", action="store_true", help="do not write result files")

    duffing = sub.add_parser("duffing", help="coupled Duffing oscillators (RK4)")
    duffing.add_argument("--tf", type=float)
    duffing.add_argument("--dt", type=float)
    duffing.add_argument("--name", default="datos", help="output file name without extension")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level, log_file = config.load_logging_config()
    setup_logging(args.log_level or level, args.log_file or log_file)
    return App(args).run()


if __name__ == '__main__':
    sys.exit(main())
