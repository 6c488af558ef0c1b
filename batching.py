import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional

import numpy as np

from customrng import iterate_seed
from models import ChunkDescriptor

# размер куска при параллельной генерации
SAMPLING_BATCH_SIZE = 64


def partition_batch(count: int, seed: int, chunk_size: int = SAMPLING_BATCH_SIZE) -> List[ChunkDescriptor]:
    # сид куска зависит только от его индекса и seed, но не от того, какой воркер его взял
    if chunk_size <= 0:
        raise ValueError(f"chunk size must be positive: {chunk_size}")
    return [
        ChunkDescriptor(start=start, length=min(chunk_size, count - start), seed=iterate_seed(index, seed))
        for index, start in enumerate(range(0, count, chunk_size))
    ]


class BatchHandle:
    # читать буфер можно только после wait()

    def __init__(self, futures: List[Future]):
        self.futures = futures

    def done(self) -> bool:
        return all(future.done() for future in self.futures)

    def wait(self, timeout: Optional[float] = None):
        wait(self.futures, timeout=timeout)
        for future in self.futures:
            # пробрасываем исключения воркеров
            future.result(timeout=0)


class BatchGenerator:
    def __init__(self, max_workers: Optional[int] = None, chunk_size: int = SAMPLING_BATCH_SIZE):
        if chunk_size <= 0:
            raise ValueError(f"chunk size must be positive: {chunk_size}")
        self.chunk_size = chunk_size
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sampler")

    def schedule(self, job: Callable[[np.ndarray], None], samples: np.ndarray) -> BatchHandle:
        # одна задача на весь буфер
        if len(samples) == 0:
            return BatchHandle([])
        return BatchHandle([self.executor.submit(job, samples)])

    def schedule_batch(self, job: Callable[[np.ndarray, int], None], samples: np.ndarray, seed: int) -> BatchHandle:
        chunks = partition_batch(len(samples), seed, self.chunk_size)
        futures = [
            self.executor.submit(job, samples[chunk.start:chunk.end], chunk.seed)
            for chunk in chunks
        ]
        return BatchHandle(futures)

    def shutdown(self, wait=True):
        self.executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()


_default_generator: Optional[BatchGenerator] = None
_default_lock = threading.Lock()


def get_default_batch_generator() -> BatchGenerator:
    global _default_generator
    with _default_lock:
        if _default_generator is None:
            _default_generator = BatchGenerator()
        return _default_generator
