"""Stochastic perturbation of animal position and vital signs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

from models.records import AnimalReading, VitalsRange


class RandomSource(Protocol):
    """Subset of :class:`random.Random` the model draws from."""

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class VitalsModelConfig:
    escape_probability: float = 0.03
    escape_band: Tuple[float, float] = (0.004, 0.007)
    drift: float = 0.0003
    temperature_step: float = 0.05
    fever_probability: float = 0.02
    fever_band: Tuple[float, float] = (0.5, 1.5)
    heart_rate_step: int = 3


@dataclass(frozen=True, slots=True)
class VitalsProposal:
    """Raw candidate values before quantization and classification."""

    lat: float
    lng: float
    temperature: float
    heart_rate: int
    escaped: bool = False
    fever: bool = False


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def clamp_temperature(value: float, vitals: VitalsRange) -> float:
    return clamp(value, vitals.temp_min - 0.5, vitals.temp_max + 2.0)


def clamp_heart_rate(value: float, vitals: VitalsRange) -> int:
    # Bounds are integral, so rounding after the clamp stays in range.
    return int(round(clamp(value, vitals.hr_min - 5, vitals.hr_max + 20)))


class VitalsModel:
    """Proposes the next position, temperature and heart rate of an animal."""

    def __init__(self, rng: RandomSource, config: VitalsModelConfig | None = None) -> None:
        self.rng = rng
        self.config = config or VitalsModelConfig()

    def propose(self, reading: AnimalReading, vitals: VitalsRange) -> VitalsProposal:
        escaped = self.rng.random() < self.config.escape_probability
        if escaped:
            lat = reading.lat + self._escape_offset()
            lng = reading.lng + self._escape_offset()
        else:
            lat = reading.lat + self.rng.uniform(-self.config.drift, self.config.drift)
            lng = reading.lng + self.rng.uniform(-self.config.drift, self.config.drift)

        fever = self.rng.random() < self.config.fever_probability
        step = self.config.temperature_step
        temperature = reading.temperature + self.rng.uniform(-step, step)
        if fever:
            temperature += self.rng.uniform(*self.config.fever_band)

        hr_step = self.config.heart_rate_step
        heart_rate = reading.heart_rate + self.rng.randint(-hr_step, hr_step)

        return VitalsProposal(
            lat=lat,
            lng=lng,
            temperature=clamp_temperature(temperature, vitals),
            heart_rate=clamp_heart_rate(heart_rate, vitals),
            escaped=escaped,
            fever=fever,
        )

    def _escape_offset(self) -> float:
        magnitude = self.rng.uniform(*self.config.escape_band)
        return magnitude if self.rng.random() > 0.5 else -magnitude
