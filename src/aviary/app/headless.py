from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

LOG_FORMATS = ("basic", "detailed")

_BASIC_HEADER = [
    "tick",
    "sim_time",
    "herbivores",
    "carnivores",
    "food",
    "births",
    "deaths",
    "avg_energy",
    "neighbor_checks",
    "tick_ms",
]

_DETAILED_HEADER = _BASIC_HEADER + [
    "starvations",
    "kills",
    "meals",
    "births_per_agent",
    "deaths_per_agent",
    "neighbor_checks_per_agent",
    "tick_ms_per_agent",
    "avg_speed",
    "min_energy",
    "max_energy",
    "max_generation",
]


def basic_row(metrics: TickMetrics, tick_ms: float) -> Dict[str, object]:
    return {
        "tick": metrics.tick,
        "sim_time": f"{metrics.sim_time:.4f}",
        "herbivores": metrics.herbivores,
        "carnivores": metrics.carnivores,
        "food": metrics.food,
        "births": metrics.births,
        "deaths": metrics.deaths,
        "avg_energy": f"{metrics.average_energy:.4f}",
        "neighbor_checks": metrics.neighbor_checks,
        "tick_ms": f"{tick_ms:.3f}",
    }


def detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> Dict[str, object]:
    row = basic_row(metrics, tick_ms)
    row.update(starvations=metrics.starvations, kills=metrics.kills, meals=metrics.meals)

    agents = world.agents
    count = len(agents)

    def per_agent(value: float) -> str:
        return f"{value / count:.4f}" if count else "0.0000"

    energies = [agent.energy.value for agent in agents] or [0.0]
    row.update(
        births_per_agent=per_agent(metrics.births),
        deaths_per_agent=per_agent(metrics.deaths),
        neighbor_checks_per_agent=per_agent(metrics.neighbor_checks),
        tick_ms_per_agent=per_agent(tick_ms),
        avg_speed=per_agent(sum(agent.speed for agent in agents)),
        min_energy=f"{min(energies):.4f}",
        max_energy=f"{max(energies):.4f}",
        max_generation=max((agent.generation for agent in agents), default=0),
    )
    return row


def _quantile(ordered: List[float], q: float) -> float:
    """Linear interpolation between the two closest ranks."""
    if not ordered:
        return 0.0
    rank = (len(ordered) - 1) * q
    below = math.floor(rank)
    above = min(below + 1, len(ordered) - 1)
    return float(ordered[below] + (ordered[above] - ordered[below]) * (rank - below))


def describe(values: List[float]) -> Dict[str, float]:
    ordered = sorted(values)
    if not ordered:
        return dict.fromkeys(("min", "max", "avg", "p50", "p90", "p99"), 0.0)
    return {
        "min": float(ordered[0]),
        "max": float(ordered[-1]),
        "avg": float(sum(ordered) / len(ordered)),
        "p50": _quantile(ordered, 0.50),
        "p90": _quantile(ordered, 0.90),
        "p99": _quantile(ordered, 0.99),
    }


class RunRecorder:
    """Accumulates per-tick series and totals for the JSON run summary."""

    def __init__(self) -> None:
        self.tick_ms: List[float] = []
        self.herbivores: List[float] = []
        self.carnivores: List[float] = []
        self.totals = {"births": 0, "starvations": 0, "kills": 0, "meals": 0}
        self.extinct_tick: Optional[int] = None

    def record(self, metrics: TickMetrics, tick_ms: float) -> None:
        self.tick_ms.append(tick_ms)
        self.herbivores.append(float(metrics.herbivores))
        self.carnivores.append(float(metrics.carnivores))
        self.totals["births"] += metrics.births
        self.totals["starvations"] += metrics.starvations
        self.totals["kills"] += metrics.kills
        self.totals["meals"] += metrics.meals
        if metrics.population == 0 and self.extinct_tick is None:
            self.extinct_tick = metrics.tick
            logger.info("Population extinct at tick %d", metrics.tick)

    def summary(self, world: World, steps: int, log_format: str, deterministic_log: bool) -> Dict[str, object]:
        return {
            "steps": steps,
            "seed": world.config.seed,
            "log_format": log_format,
            "deterministic_log": deterministic_log,
            "sim_time": world.clock.elapsed,
            "extinct_tick": self.extinct_tick,
            "totals": dict(self.totals),
            "tick_ms": describe(self.tick_ms),
            "herbivores": describe(self.herbivores),
            "carnivores": describe(self.carnivores),
        }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    dt: Optional[float] = None,
) -> World:
    log_mode = log_format.lower().strip()
    if log_mode not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")

    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    world = World(config)
    recorder = RunRecorder()
    header = _DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER

    csv_file = Path(log_path).open("w", newline="") if log_path else None
    try:
        writer = csv.DictWriter(csv_file, fieldnames=header) if csv_file else None
        if writer:
            writer.writeheader()
        for _ in range(steps):
            metrics = world.step(dt)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            recorder.record(metrics, tick_ms)
            if writer:
                if log_mode == "detailed":
                    writer.writerow(detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = recorder.summary(world, steps, log_mode, deterministic_log)
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    logger.info("Headless run finished after %d ticks (%.2f s simulated)", steps, world.clock.elapsed)
    return world


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the aviary simulation without a viewer")
    parser.add_argument("--steps", type=int, default=3000, help="Number of ticks to simulate")
    parser.add_argument("--seed", type=int, default=None, help="Override the configured seed")
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--dt", type=float, default=None, help="Tick delta in seconds (defaults to time_step)")
    parser.add_argument("--log", type=Path, default=None, help="CSV file for per-tick metrics")
    parser.add_argument("--log-format", choices=LOG_FORMATS, default="detailed")
    parser.add_argument("--summary", type=Path, default=None, help="JSON file for run totals and percentiles")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Zero the tick_ms column so runs with the same seed produce identical CSV files",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        config_path=args.config,
        dt=args.dt,
    )


if __name__ == "__main__":
    main()
