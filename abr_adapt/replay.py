"""Replay script for abr_adapt.

Drives a registered algorithm through the streaming simulator over every
trace of a folder, writes one tab-separated log per trace and prints
reward statistics.
"""

import argparse
import dataclasses
import logging
import os
from typing import Dict, List, Optional, Tuple

import numpy as np

from .algorithm import Decision
from .args import add_replay_arguments, parse_replay_args
from .core.telemetry import ChunkRecord
from .defaults import create_env_with_default
from .session import AdaptationSession
from .sim.env import StreamingEnv
from .sim.trace import load_trace


# Columns of a replay log line: every ChunkRecord field, then the reward
RECORD_FIELDS = [field.name for field in dataclasses.fields(ChunkRecord)]
LOG_FIELDS = RECORD_FIELDS + ['reward']


def run_trace(env: StreamingEnv, session: Optional[AdaptationSession] = None) -> Tuple[List[Decision], List[float]]:
    """Play one video over the environment's trace.

    The session's algorithm picks every chunk; the first pick happens with
    no telemetry and so falls back to the lowest bitrate.

    Returns:
        Tuple of (decisions, rewards), one entry per chunk.
    """
    if session is None:
        session = env.session
    decisions: List[Decision] = []
    rewards: List[float] = []

    observation, _ = env.reset()
    while True:
        decision = session.select(observation.buffer_ms)
        observation, reward, terminated, truncated, _ = env.step(decision.index)
        decisions.append(decision)
        rewards.append(reward)
        if terminated or truncated:
            break
    return decisions, rewards


def write_records(log_path: str, records: List[ChunkRecord], rewards: Optional[List[float]] = None) -> None:
    """Write chunk records as tab-separated lines, one per chunk.

    Columns follow LOG_FIELDS; the reward column is omitted without rewards.
    """
    if rewards is not None and len(rewards) != len(records):
        raise ValueError(f"rewards length ({len(rewards)}) must match records length ({len(records)})")
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    with open(log_path, 'w') as log_file:
        for i, record in enumerate(records):
            values = [str(getattr(record, name)) for name in RECORD_FIELDS]
            if rewards is not None:
                values.append(str(rewards[i]))
            log_file.write('\t'.join(values) + '\n')


def replay(
    trace_folder: str,
    algorithm: str,
    log_file_prefix: str,
    algorithm_options: Optional[Dict] = None,
    max_traces: Optional[int] = None,
    **kwargs,
) -> Dict[str, List[Decision]]:
    """Replay an algorithm over every trace in a folder.

    Args:
        trace_folder: Folder of trace files.
        algorithm: Registered algorithm name.
        log_file_prefix: Log path prefix; the trace file name is appended.
        algorithm_options: Algorithm config options.
        max_traces: Replay at most this many traces, in name order.
        **kwargs: Passed to create_env_with_default.

    Returns:
        Decisions per trace file name.
    """
    trace_data = load_trace(trace_folder, max_traces=max_traces)
    all_decisions: Dict[str, List[Decision]] = {}
    for cooked_time, cooked_bw, file_name in trace_data:
        env = create_env_with_default(
            cooked_time,
            cooked_bw,
            algorithm=algorithm,
            algorithm_options=algorithm_options,
            **kwargs,
        )
        decisions, rewards = run_trace(env)
        write_records(log_file_prefix + '_' + file_name, env.session.records(), rewards)
        all_decisions[file_name] = decisions
        logging.info(f"Replayed {algorithm} over {file_name}: mean reward {np.mean(rewards):.4f}")
    return all_decisions


def calculate_statistics(log_file_prefix: str) -> Dict[str, float]:
    """Calculate reward statistics from the replay logs next to `log_file_prefix`.

    The first chunk of every log is skipped, as its decision had no
    telemetry.

    Returns:
        Dictionary with statistics: min, 5th percentile, mean, median,
        95th percentile, max rewards, and mean rebuffer per trace in ms.
    """
    log_folder = os.path.dirname(log_file_prefix) or '.'
    prefix = os.path.basename(log_file_prefix)
    stall_column = LOG_FIELDS.index('stall_duration_ms')
    rewards, stalls = [], []
    for log_file_name in sorted(os.listdir(log_folder)):
        if not log_file_name.startswith(prefix):
            continue
        reward, stall = [], 0.0
        with open(os.path.join(log_folder, log_file_name), 'r') as f:
            for line in f:
                parse = line.split()
                if len(parse) < len(LOG_FIELDS):
                    break
                reward.append(float(parse[-1]))
                stall = float(parse[stall_column])
        if len(reward) > 1:
            rewards.append(np.mean(reward[1:]))
            stalls.append(stall)

    if not rewards:
        raise ValueError(f"No replay logs found with prefix {log_file_prefix}")
    rewards = np.array(rewards)

    return {
        'rewards_min': np.min(rewards),
        'rewards_5per': np.percentile(rewards, 5),
        'rewards_mean': np.mean(rewards),
        'rewards_median': np.percentile(rewards, 50),
        'rewards_95per': np.percentile(rewards, 95),
        'rewards_max': np.max(rewards),
        'avg_stall_ms': np.mean(stalls),
    }


def main(args):
    # Append algorithm name to log file prefix
    log_file_prefix = args.log_file_prefix + args.algorithm

    replay(
        trace_folder=args.trace_folder,
        algorithm=args.algorithm,
        log_file_prefix=log_file_prefix,
        algorithm_options=args.algorithm_options,
        max_traces=args.max_traces,
        levels_kbps=args.levels_kbps,
        size_file_prefix=args.size_file_prefix,
        max_chunks=args.max_chunks,
        chunk_duration_ms=args.chunk_duration_ms,
        max_buffer_ms=args.max_buffer_ms,
        env_options=args.env_options,
    )

    return log_file_prefix


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Replay a rate-adaptation algorithm over network traces')
    add_replay_arguments(parser)
    args = parser.parse_args()

    # Post-process arguments (parse options)
    parse_replay_args(args)
    logging.basicConfig(level=args.log_level, format='%(asctime)s %(levelname)s %(message)s')

    log_file_prefix = main(args)

    # Calculate and print replay statistics
    stats = calculate_statistics(log_file_prefix)
    print("\n" + "=" * 50)
    print(f"Replay Statistics ({args.algorithm})")
    print("=" * 50)
    print(f"Reward Min:     {stats['rewards_min']:.4f}")
    print(f"Reward 5%:      {stats['rewards_5per']:.4f}")
    print(f"Reward Mean:    {stats['rewards_mean']:.4f}")
    print(f"Reward Median:  {stats['rewards_median']:.4f}")
    print(f"Reward 95%:     {stats['rewards_95per']:.4f}")
    print(f"Reward Max:     {stats['rewards_max']:.4f}")
    print(f"Avg Stall (ms): {stats['avg_stall_ms']:.1f}")
    print("=" * 50)
