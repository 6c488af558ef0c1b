from typing import Dict, List

import simpy

from customrng import DEFAULT_SEED, RandomStateSource, iterate_seed
from samplers import Sampler, UniformSampler, sampler_from_config
from statsprocessing import extract_sample_metrics


class ScenarioConfig:
    ITERATION_COUNT: int
    FRAMES_PER_ITERATION: int
    RANDOM_SEED: int

    DEFAULT_SAMPLER_CONFIG = {
        "rotation": {
            "type": "uniform",
            "min": 0.0,
            "max": 360.0,
        },
        "scale": {
            "type": "normal",
            "min": 0.5,
            "max": 1.5,
            "mean": 1.0,
            "std": 0.2,
        },
        "light_intensity": {
            "type": "constant",
            "value": 1.0,
        },
    }
    SAMPLER_CONFIG: Dict

    def __init__(
            self,
            ITERATION_COUNT = 10,
            FRAMES_PER_ITERATION = 1,
            RANDOM_SEED = DEFAULT_SEED,
            SAMPLER_CONFIG = DEFAULT_SAMPLER_CONFIG,
        ):
        if ITERATION_COUNT < 0:
            raise ValueError(f"iteration count must not be negative: {ITERATION_COUNT}")
        if FRAMES_PER_ITERATION < 1:
            raise ValueError(f"an iteration needs at least one frame: {FRAMES_PER_ITERATION}")
        self.ITERATION_COUNT = ITERATION_COUNT
        self.FRAMES_PER_ITERATION = FRAMES_PER_ITERATION
        self.RANDOM_SEED = RANDOM_SEED
        self.SAMPLER_CONFIG = SAMPLER_CONFIG


class Randomizer:
    # наследники переопределяют on_* и кладут свои сэмплеры в parameters
    enabled: bool
    parameters: List[Sampler]

    def __init__(self):
        self.enabled = True
        self.parameters = []
        self.scenario = None
        self._previously_enabled = False

    def on_create(self):
        pass

    def on_iteration_start(self):
        pass

    def on_iteration_end(self):
        pass

    def on_scenario_complete(self):
        pass

    def on_start_running(self):
        pass

    def on_stop_running(self):
        pass

    def on_update(self):
        pass

    def create(self, scenario):
        self.scenario = scenario
        self.on_create()

    def iteration_start(self):
        self.on_iteration_start()

    def iteration_end(self):
        self.on_iteration_end()

    def scenario_complete(self):
        self.on_scenario_complete()

    def update(self):
        if self.enabled:
            if not self._previously_enabled:
                self._previously_enabled = True
                self.on_start_running()
            self.on_update()
        elif self._previously_enabled:
            self._previously_enabled = False
            self.on_stop_running()


class ParameterRandomizer(Randomizer):
    def __init__(self, sampler_config: Dict, samples_per_iteration: int = 1, batch_generator=None):
        super().__init__()
        self.sampler_config = sampler_config
        self.samples_per_iteration = samples_per_iteration
        self.batch_generator = batch_generator
        self.samplers: Dict[str, Sampler] = {}
        self.values: Dict[str, List] = {}

    def on_create(self):
        self.samplers = {
            name: sampler_from_config(config, self.scenario, self.batch_generator)
            for name, config in self.sampler_config.items()
        }
        self.parameters = list(self.samplers.values())
        self.values = {name: [] for name in self.samplers}

    def on_iteration_start(self):
        batches = {name: sampler.sample_batch(self.samples_per_iteration) for name, sampler in self.samplers.items()}
        for name, (samples, handle) in batches.items():
            handle.wait()
            self.values[name].append(samples)

    def get_stats(self):
        return {name: extract_sample_metrics(batches) for name, batches in self.values.items()}


# =============== #
#    СЦЕНАРИЙ     #
# =============== #

class Scenario:
    def __init__(self, env: simpy.Environment, config: ScenarioConfig, randomizers: List[Randomizer], logging_on=False):
        self.env = env
        self.config = config
        self.randomizers = randomizers
        self.logging_on = logging_on

        self.random_state = RandomStateSource(config.RANDOM_SEED)
        self.current_iteration = 0
        self.stats = []

    def run(self, *args, **kwargs):
        self.env.process(self.orchestrate())
        self.env.run(*args, **kwargs)

    def log(self, message):
        if self.logging_on:
            print(f"{self.env.now}|{message}")

    def get_stats(self):
        return self.stats

    def next_random_state(self) -> int:
        return self.random_state.next_random_state()

    def orchestrate(self):
        self.log(f"Создание {len(self.randomizers)} рандомайзеров")
        for randomizer in self.randomizers:
            randomizer.create(self)

        for iteration in range(self.config.ITERATION_COUNT):
            yield from self.run_iteration(iteration)

        for randomizer in self.randomizers:
            randomizer.scenario_complete()
        self.log(f"Сценарий завершен, итераций: {self.config.ITERATION_COUNT}")

    def run_iteration(self, iteration: int):
        start_time = self.env.now
        self.current_iteration = iteration

        # каждая итерация воспроизводима независимо от предыдущих
        self.random_state.reset(iterate_seed(iteration, self.config.RANDOM_SEED))
        iteration_state = self.random_state.state
        for randomizer in self.randomizers:
            for parameter in randomizer.parameters:
                if isinstance(parameter, UniformSampler):
                    parameter.reset_state()
                    parameter.iterate_state(iteration)

        self.log(f"Начинается итерация {iteration}")
        for randomizer in self.randomizers:
            randomizer.iteration_start()

        for _ in range(self.config.FRAMES_PER_ITERATION):
            for randomizer in self.randomizers:
                randomizer.update()
            yield self.env.timeout(1)

        for randomizer in self.randomizers:
            randomizer.iteration_end()
        self.log(f"Завершена итерация {iteration}")

        self.stats.append({
            "iteration": iteration,
            "random_state": iteration_state,
            "frames": self.config.FRAMES_PER_ITERATION,
            "execution_time": self.env.now - start_time,
        })
