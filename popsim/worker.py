"""
Message-level driver for running a simulation in a background worker.

A request carries the species list and the horizon; the worker answers with
INITIALIZED once, then PENDING batches of checkpoints, then COMPLETE. The
flush cadence is a policy of this driver, not of the engine.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping

import numpy as np

from .checkpoint import Checkpoint
from .config import SimulationConfig
from .population import Population
from .species import MalformedInputError, Species

logger = logging.getLogger(__name__)


class WorkerStatus(Enum):
    INITIALIZED = "INITIALIZED"
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"


@dataclass(frozen=True)
class SimulationRequest:
    species_list: tuple[Species, ...]
    max_t: float

    @classmethod
    def from_dict(cls, data: Mapping) -> "SimulationRequest":
        try:
            entries = data["species_list"]
            max_t = float(data["max_t"])
        except KeyError as e:
            raise MalformedInputError(f"request is missing {e.args[0]!r}") from e
        return cls(tuple(Species.from_dict(entry) for entry in entries), max_t)

    def to_dict(self) -> dict:
        return {"species_list": [sp.to_dict() for sp in self.species_list], "max_t": self.max_t}

    @classmethod
    def from_json(cls, text: str | bytes) -> "SimulationRequest":
        return cls.from_dict(json.loads(text))

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class WorkerResponse:
    status: WorkerStatus
    checkpoints: tuple[Checkpoint, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "checkpoints": [cp.to_dict() for cp in self.checkpoints],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "WorkerResponse":
        return cls(
            WorkerStatus(data["status"]),
            tuple(Checkpoint.from_dict(cp) for cp in data.get("checkpoints", ())),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str | bytes) -> "WorkerResponse":
        return cls.from_dict(json.loads(text))


class SimulationWorker:
    """Runs requests and batches checkpoints between flushes.

    The generator returned by ``run`` may be abandoned at any time; the
    population holds no external resources.
    """

    def __init__(self, config: SimulationConfig | None = None, rng: np.random.Generator | None = None):
        self.config = config if config is not None else SimulationConfig()
        self.rng = rng
        self.population: Population | None = None
        logger.info("worker: starting")

    def initialized(self) -> WorkerResponse:
        return WorkerResponse(WorkerStatus.INITIALIZED)

    def run(self, request: SimulationRequest) -> Iterator[WorkerResponse]:
        # History is streamed to the caller, so the engine need not keep it
        config = SimulationConfig(
            seed=self.config.seed,
            move_handling=self.config.move_handling,
            flush_interval=self.config.flush_interval,
            keep_history=False,
            progress=False,
        )
        population = Population(request.species_list, request.max_t, config=config, rng=self.rng)
        self.population = population
        logger.info("worker: simulating")

        buffer: list[Checkpoint] = []
        previous_time = 0.0
        while True:
            result = population.step()
            if result is None:
                break
            buffer.append(result.checkpoint)
            if population.t > previous_time + self.config.flush_interval:
                logger.debug("worker: flushing %d checkpoints at t=%.3f", len(buffer), population.t)
                yield WorkerResponse(WorkerStatus.PENDING, tuple(buffer))
                buffer = []
                previous_time = math.floor(population.t)

        if buffer:
            yield WorkerResponse(WorkerStatus.PENDING, tuple(buffer))
        logger.info(
            "worker: simulation complete (%s) at t=%.6f with size %d",
            population.state.value,
            population.t,
            population.size,
        )
        yield WorkerResponse(WorkerStatus.COMPLETE)

    def handle_message(self, message: str | bytes) -> Iterator[str]:
        """Decode a JSON request and yield JSON-encoded responses, starting
        with INITIALIZED.

        Decoding and encoding errors propagate unchanged.
        """
        logger.info("worker: received message")
        yield self.initialized().to_json()
        request = SimulationRequest.from_json(message)
        for response in self.run(request):
            yield response.to_json()
