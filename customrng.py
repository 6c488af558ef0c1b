import threading
from typing import List, Optional

import numpy as np
from scipy.special import ndtr, ndtri

MASK32 = 0xFFFFFFFF
DEFAULT_SEED = 0x202A96CF  # используется вместо нулевого или пустого сида
SEED_MULTIPLIER = 0x9E3779B9  # нечетный, умножение на него биективно по модулю 2**32

# вероятность не должна доходить до 0 и 1, иначе ndtri вернет бесконечность
PROBABILITY_MIN = np.finfo(np.float64).tiny
PROBABILITY_MAX = np.nextafter(1.0, 0.0)


def shuffle_seed(seed: int) -> int:
    # один раунд xorshift32
    seed &= MASK32
    seed ^= (seed << 13) & MASK32
    seed ^= seed >> 17
    seed ^= (seed << 5) & MASK32
    return seed


def iterate_seed(offset: int, seed: int) -> int:
    # сид подпотока offset; при любом seed разные offset (mod 2**32) дают разные значения
    mixed = shuffle_seed(offset + 1) * SEED_MULTIPLIER + shuffle_seed(seed)
    return shuffle_seed(mixed & MASK32)


def normalize_seed(seed: Optional[int]) -> int:
    if seed is None:
        return DEFAULT_SEED
    seed &= MASK32
    return seed if seed != 0 else DEFAULT_SEED


# xorshift линеен над GF(2): шаг генератора задается матрицей 32x32,
# храним ее по столбцам (образ каждого единичного бита)
_STEP_MATRIX = [shuffle_seed(1 << bit) for bit in range(32)]
_STEP_POWERS: List[List[int]] = [_STEP_MATRIX]
_powers_lock = threading.Lock()


def _apply_matrix(matrix: List[int], value: int) -> int:
    result = 0
    bit = 0
    while value:
        if value & 1:
            result ^= matrix[bit]
        value >>= 1
        bit += 1
    return result


def _step_power(exponent: int) -> List[int]:
    # матрица шага в степени 2**exponent
    with _powers_lock:
        while len(_STEP_POWERS) <= exponent:
            last = _STEP_POWERS[-1]
            _STEP_POWERS.append([_apply_matrix(last, column) for column in last])
        return _STEP_POWERS[exponent]


def advance_state(state: int, steps: int) -> int:
    # прыжок вперед, эквивалентный steps вызовам next_state()
    if steps < 0:
        raise ValueError(f"cannot advance state by a negative number of steps: {steps}")
    state &= MASK32
    exponent = 0
    while steps:
        if steps & 1:
            state = _apply_matrix(_step_power(exponent), state)
        steps >>= 1
        exponent += 1
    return state


class CustomRNG:
    # Реализован как xorshift32 генератор
    state: int  # текущее состояние, никогда не 0

    def __init__(self, seed=None):
        self.state = normalize_seed(seed)

    def next_state(self) -> int:
        current = self.state
        self.state = shuffle_seed(current)
        return current

    def uniform(self) -> float:
        # 23 бита мантиссы -> [0, 1)
        return (self.next_state() >> 9) / 8388608.0

    def uniforms(self, count: int) -> np.ndarray:
        values = np.empty(count, dtype=np.float64)
        for i in range(count):
            values[i] = self.uniform()
        return values

    def advance(self, steps: int):
        self.state = advance_state(self.state, steps)


class RandomStateSource:
    # общий для процесса источник состояний, доступ только под локом:
    # два одновременных вызова никогда не получат одно значение

    def __init__(self, seed=None):
        self._lock = threading.Lock()
        self._state = normalize_seed(seed)

    @property
    def state(self) -> int:
        with self._lock:
            return self._state

    def reset(self, seed):
        with self._lock:
            self._state = normalize_seed(seed)

    def next_random_state(self) -> int:
        with self._lock:
            self._state = shuffle_seed(self._state)
            return self._state


def truncated_normal_sample(u, lo: float, hi: float, mean: float, std: float):
    # u - скаляр или массив равномерных значений из [0, 1), результат всегда в [lo, hi]
    scalar = np.ndim(u) == 0
    u = np.asarray(u, dtype=np.float64)

    if lo == hi:
        result = np.full(u.shape, lo, dtype=np.float64)
    elif std == 0:
        result = np.full(u.shape, min(max(mean, lo), hi), dtype=np.float64)
    else:
        a = (lo - mean) / std
        b = (hi - mean) / std
        if a > 0:
            # верхний хвост считаем зеркально через нижний, там ndtr не округляется до 1
            alpha, beta = ndtr(-b), ndtr(-a)
            p = np.clip(beta - u * (beta - alpha), PROBABILITY_MIN, PROBABILITY_MAX)
            z = -ndtri(p)
        else:
            alpha, beta = ndtr(a), ndtr(b)
            p = np.clip(alpha + u * (beta - alpha), PROBABILITY_MIN, PROBABILITY_MAX)
            z = ndtri(p)

        result = np.clip(mean + std * z, lo, hi)

    return float(result) if scalar else result
