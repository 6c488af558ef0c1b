import numpy as np


def extract_sample_metrics(samples):
    # принимает массив или список батчей
    if len(samples) > 0 and np.ndim(samples[0]) > 0:
        values = np.concatenate([np.ravel(batch) for batch in samples])
    else:
        values = np.asarray(samples, dtype=np.float64)
    if values.size == 0:
        return {'count': 0, 'mean': None, 'std': None, 'min': None, 'max': None}
    return {
        'count': int(values.size),
        'mean': float(values.mean()),
        'std': float(values.std()),
        'min': float(values.min()),
        'max': float(values.max())
    }

def extract_avg_execution_time(stats):
    return sum(stat["execution_time"] for stat in stats) / len(stats)
def extract_total_frames(stats):
    return sum(stat["frames"] for stat in stats)
def extract_distinct_states_ratio(stats):
    return len({stat["random_state"] for stat in stats}) / len(stats)

def extract_scenario_metrics(stats):
    if not stats:
        return {'iterations': 0, 'total_frames': 0, 'avg_execution_time': None, 'distinct_states_ratio': None}
    return {
        'iterations': len(stats),
        'total_frames': extract_total_frames(stats),
        'avg_execution_time': extract_avg_execution_time(stats),
        'distinct_states_ratio': extract_distinct_states_ratio(stats)
    }
