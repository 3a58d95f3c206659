from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from ...errors import ConfigurationError

logger = logging.getLogger(__name__)

PLACEMENTS = ("random", "grid")
OFFSPRING_ENERGY_POLICIES = ("fixed", "inherit_halved")


@dataclass
class SpeciesConfig:
    base_speed: float = 100.0
    rotation_speed: float = 1.0
    vision_range: float = 100.0
    # Stop feeding/hunting at or above this fraction of max energy.
    satiation_fraction: float = 0.95
    flocking: bool = True


@dataclass
class HerbivoreConfig(SpeciesConfig):
    flee_speed: float = 150.0


@dataclass
class CarnivoreConfig(SpeciesConfig):
    hunt_speed: float = 175.0
    prediction_distance: float = 10.0


@dataclass
class FlockingConfig:
    separation_distance: float = 20.0
    separation_weight: float = 5.0
    cohesion_weight: float = 0.1
    alignment_weight: float = 1.0
    forage_weight: float = 2.0
    flight_weight: float = 10.0
    pursuit_weight: float = 1.0
    containment_weight: float = 10.0
    capture_distance: float = 20.0
    home_when_alone: bool = False


@dataclass
class EnergyConfig:
    max_energy: float = 100.0
    initial_energy_fraction: float = 0.5
    reproduction_threshold: float = 0.8
    offspring_energy_policy: str = "fixed"
    offspring_energy_fraction: float = 0.5
    offspring_offset: float = 10.0
    kill_energy: float = 10.0
    drain_speed_divisor: float = 100.0


@dataclass
class FoodConfig:
    initial_food: int = 50
    spawn_period: float = 1.0
    value: float = 20.0
    max_food: int = 0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    half_width: float = 900.0
    half_height: float = 450.0
    herbivore_count: int = 200
    carnivore_count: int = 1
    placement: str = "random"
    perception_cell_size: float = 100.0
    max_population: int = 0
    seed: int = 42
    config_version: str = "v1"
    herbivore: HerbivoreConfig = field(default_factory=HerbivoreConfig)
    carnivore: CarnivoreConfig = field(default_factory=CarnivoreConfig)
    flocking: FlockingConfig = field(default_factory=FlockingConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    food: FoodConfig = field(default_factory=FoodConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text())
        config = load_config(data or {})
        logger.info("Loaded simulation config from %s", path)
        return config

    def validate(self) -> "SimulationConfig":
        if self.time_step < 0.0:
            raise ConfigurationError(f"time_step must be >= 0, got {self.time_step}")
        if self.half_width <= 0.0 or self.half_height <= 0.0:
            raise ConfigurationError(
                f"world half-extents must be positive, got ({self.half_width}, {self.half_height})"
            )
        if self.herbivore_count < 0 or self.carnivore_count < 0:
            raise ConfigurationError("initial population counts must be >= 0")
        if self.max_population < 0:
            raise ConfigurationError("max_population must be >= 0 (0 disables the cap)")
        if self.placement not in PLACEMENTS:
            raise ConfigurationError(f"placement must be one of {PLACEMENTS}, got {self.placement!r}")
        if self.perception_cell_size < 0.0:
            raise ConfigurationError("perception_cell_size must be >= 0 (0 disables the spatial index)")
        for name, species in (("herbivore", self.herbivore), ("carnivore", self.carnivore)):
            _validate_species(name, species)
        if self.herbivore.flee_speed < 0.0:
            raise ConfigurationError("herbivore.flee_speed must be >= 0")
        if self.carnivore.hunt_speed < 0.0:
            raise ConfigurationError("carnivore.hunt_speed must be >= 0")
        if self.carnivore.prediction_distance < 0.0:
            raise ConfigurationError("carnivore.prediction_distance must be >= 0")
        _validate_flocking(self.flocking)
        _validate_energy(self.energy)
        _validate_food(self.food)
        return self


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2
    max_queued_snapshots: int = 256


def _validate_species(name: str, species: SpeciesConfig) -> None:
    if species.vision_range < 0.0:
        raise ConfigurationError(f"{name}.vision_range must be >= 0, got {species.vision_range}")
    if species.base_speed < 0.0:
        raise ConfigurationError(f"{name}.base_speed must be >= 0, got {species.base_speed}")
    if species.rotation_speed < 0.0:
        raise ConfigurationError(f"{name}.rotation_speed must be >= 0, got {species.rotation_speed}")
    if not 0.0 < species.satiation_fraction <= 1.0:
        raise ConfigurationError(f"{name}.satiation_fraction must be in (0, 1], got {species.satiation_fraction}")


def _validate_flocking(flocking: FlockingConfig) -> None:
    if flocking.separation_distance < 0.0:
        raise ConfigurationError("flocking.separation_distance must be >= 0")
    if flocking.capture_distance < 0.0:
        raise ConfigurationError("flocking.capture_distance must be >= 0")


def _validate_energy(energy: EnergyConfig) -> None:
    if energy.max_energy <= 0.0:
        raise ConfigurationError(f"energy.max_energy must be > 0, got {energy.max_energy}")
    if not 0.0 < energy.initial_energy_fraction <= 1.0:
        raise ConfigurationError("energy.initial_energy_fraction must be in (0, 1]")
    if not 0.0 < energy.reproduction_threshold <= 1.0:
        raise ConfigurationError("energy.reproduction_threshold must be in (0, 1]")
    if energy.offspring_energy_policy not in OFFSPRING_ENERGY_POLICIES:
        raise ConfigurationError(
            f"energy.offspring_energy_policy must be one of {OFFSPRING_ENERGY_POLICIES}, "
            f"got {energy.offspring_energy_policy!r}"
        )
    if not 0.0 < energy.offspring_energy_fraction <= 1.0:
        raise ConfigurationError("energy.offspring_energy_fraction must be in (0, 1]")
    if energy.kill_energy < 0.0:
        raise ConfigurationError("energy.kill_energy must be >= 0")
    if energy.drain_speed_divisor <= 0.0:
        raise ConfigurationError("energy.drain_speed_divisor must be > 0")


def _validate_food(food: FoodConfig) -> None:
    if food.initial_food < 0:
        raise ConfigurationError("food.initial_food must be >= 0")
    if food.spawn_period <= 0.0:
        raise ConfigurationError(f"food.spawn_period must be > 0, got {food.spawn_period}")
    if food.value < 0.0:
        raise ConfigurationError("food.value must be >= 0")
    if food.max_food < 0:
        raise ConfigurationError("food.max_food must be >= 0 (0 disables the cap)")


def _build(cls: type, raw: Dict[str, Any] | None, section: str) -> Any:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"section {section!r} must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown keys in {section!r}: {', '.join(unknown)}")
    return cls(**raw)


_SECTIONS = {
    "herbivore": HerbivoreConfig,
    "carnivore": CarnivoreConfig,
    "flocking": FlockingConfig,
    "energy": EnergyConfig,
    "food": FoodConfig,
}


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"configuration must be a mapping, got {type(raw).__name__}")
    sections = {name: _build(cls, raw.get(name), name) for name, cls in _SECTIONS.items()}
    sim_values = {k: v for k, v in raw.items() if k not in _SECTIONS}
    config = _build(SimulationConfig, sim_values, "simulation")
    for name, value in sections.items():
        setattr(config, name, value)
    return config.validate()
