from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import numpy as np

from batching import BatchGenerator, BatchHandle, get_default_batch_generator
from customrng import DEFAULT_SEED, CustomRNG, advance_state, iterate_seed, normalize_seed, truncated_normal_sample
from models import FloatRange, clamp


class Sampler(ABC):
    def __init__(self, batch_generator: Optional[BatchGenerator] = None):
        self.batch_generator = batch_generator

    @property
    @abstractmethod
    def range(self) -> FloatRange:
        pass

    @abstractmethod
    def sample(self) -> float:
        pass

    @abstractmethod
    def sample_batch(self, count: int) -> Tuple[np.ndarray, BatchHandle]:
        # буфер можно читать только после handle.wait()
        pass

    def get_batch_generator(self) -> BatchGenerator:
        if self.batch_generator is None:
            return get_default_batch_generator()
        return self.batch_generator

    @staticmethod
    def allocate(count: int) -> np.ndarray:
        if count < 0:
            raise ValueError(f"sample count must not be negative: {count}")
        return np.empty(count, dtype=np.float64)


class ConstantSampler(Sampler):
    value: float

    def __init__(self, value: float = 0.0, batch_generator: Optional[BatchGenerator] = None):
        super().__init__(batch_generator)
        self.value = float(value)

    @property
    def range(self) -> FloatRange:
        return FloatRange(self.value, self.value)

    def sample(self) -> float:
        return self.value

    def sample_batch(self, count: int) -> Tuple[np.ndarray, BatchHandle]:
        samples = self.allocate(count)
        value = self.value

        def fill(buffer: np.ndarray):
            buffer.fill(value)

        return samples, self.get_batch_generator().schedule(fill, samples)


class UniformSampler(Sampler):
    base_seed: int
    _range: FloatRange
    _rng: CustomRNG

    def __init__(
            self,
            minimum: float,
            maximum: float,
            base_seed: int = DEFAULT_SEED,
            batch_generator: Optional[BatchGenerator] = None):
        super().__init__(batch_generator)
        self._range = FloatRange(minimum, maximum)
        self.base_seed = base_seed
        self._rng = CustomRNG(base_seed)

    @property
    def range(self) -> FloatRange:
        return self._range

    @property
    def state(self) -> int:
        return self._rng.state

    @state.setter
    def state(self, value: int):
        self._rng = CustomRNG(value)

    def reset_state(self):
        self.state = self.base_seed

    def iterate_state(self, offset: int):
        # используется для декорреляции потока между итерациями сценария
        self.state = iterate_seed(offset, self.state)

    @staticmethod
    def lerp(minimum: float, maximum: float, u: float) -> float:
        return clamp(minimum + u * (maximum - minimum), minimum, maximum)

    def sample(self) -> float:
        return self.lerp(self._range.minimum, self._range.maximum, self._rng.uniform())

    def sample_batch(self, count: int) -> Tuple[np.ndarray, BatchHandle]:
        samples = self.allocate(count)
        start_state = self.state
        minimum, maximum = self._range.minimum, self._range.maximum

        def fill(buffer: np.ndarray):
            rng = CustomRNG(start_state)
            for i in range(len(buffer)):
                buffer[i] = UniformSampler.lerp(minimum, maximum, rng.uniform())

        handle = self.get_batch_generator().schedule(fill, samples)
        # состояние сдвигается сразу, не дожидаясь окончания задачи
        self.state = advance_state(start_state, count)
        return samples, handle


class NormalSampler(Sampler):
    # усеченное нормальное; своего состояния нет, каждый вызов берет
    # новое из random_state_source (любой объект с next_random_state())
    mean: float
    standard_deviation: float

    def __init__(
            self,
            minimum: float,
            maximum: float,
            mean: float,
            standard_deviation: float,
            random_state_source,
            batch_generator: Optional[BatchGenerator] = None):
        super().__init__(batch_generator)
        if standard_deviation < 0:
            raise ValueError(f"standard deviation must not be negative: {standard_deviation}")
        if random_state_source is None:
            raise ValueError("normal sampler needs a random state source")
        self._range = FloatRange(minimum, maximum)
        self.mean = mean
        self.standard_deviation = standard_deviation
        self.random_state_source = random_state_source

    @property
    def range(self) -> FloatRange:
        return self._range

    def sample(self) -> float:
        rng = CustomRNG(self.random_state_source.next_random_state())
        return truncated_normal_sample(
            rng.uniform(), self._range.minimum, self._range.maximum, self.mean, self.standard_deviation)

    def sample_batch(self, count: int) -> Tuple[np.ndarray, BatchHandle]:
        samples = self.allocate(count)
        if count == 0:
            return samples, BatchHandle([])

        seed = normalize_seed(self.random_state_source.next_random_state())
        minimum, maximum = self._range.minimum, self._range.maximum
        mean, standard_deviation = self.mean, self.standard_deviation

        def fill_chunk(buffer: np.ndarray, chunk_seed: int):
            uniforms = CustomRNG(chunk_seed).uniforms(len(buffer))
            buffer[:] = truncated_normal_sample(uniforms, minimum, maximum, mean, standard_deviation)

        return samples, self.get_batch_generator().schedule_batch(fill_chunk, samples, seed)


SAMPLER_TYPES = ("constant", "uniform", "normal")


def sampler_from_config(
        config: Dict,
        random_state_source=None,
        batch_generator: Optional[BatchGenerator] = None) -> Sampler:
    sampler_type = config.get("type")
    if sampler_type not in SAMPLER_TYPES:
        raise ValueError(f"unrecognized sampler type: {sampler_type}")
    if sampler_type == "constant":
        return ConstantSampler(config.get("value", 0.0), batch_generator=batch_generator)
    if sampler_type == "uniform":
        return UniformSampler(
            config["min"],
            config["max"],
            base_seed=config.get("seed", DEFAULT_SEED),
            batch_generator=batch_generator)
    return NormalSampler(
        config["min"],
        config["max"],
        mean=config["mean"],
        standard_deviation=config["std"],
        random_state_source=random_state_source,
        batch_generator=batch_generator)
