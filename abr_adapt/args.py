"""Argument parsing utilities for abr_adapt."""

import argparse
import ast
from typing import Any, Dict

from .algorithm import get_available_algorithms
from .defaults import (
    DEFAULT_ALGORITHM,
    LOG_FILE_PREFIX,
    MAX_BUFFER_MS,
    TEST_TRACES,
    TOTAL_VIDEO_CHUNKS,
    VIDEO_BIT_RATE,
)
from .sim.simulator import CHUNK_DURATION_MS


def add_replay_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments for replay and create_env_with_default.

    These arguments correspond to the parameters of create_env_with_default
    in abr_adapt/defaults.py. See that function for parameter descriptions.
    """
    parser.add_argument('--trace-folder', type=str, default=TEST_TRACES,
                        help=f"Folder containing network bandwidth trace files (default: '{TEST_TRACES}')")
    parser.add_argument('--max-traces', type=int, default=None,
                        help="Replay at most this many trace files, in name order (default: all)")
    parser.add_argument('--algorithm', type=str, default=DEFAULT_ALGORITHM,
                        choices=get_available_algorithms(),
                        help=f"Rate-adaptation algorithm to replay (default: '{DEFAULT_ALGORITHM}')")
    parser.add_argument('--levels-kbps', type=float, nargs='+', default=VIDEO_BIT_RATE,
                        metavar='BITRATE',
                        help=f"Bitrate ladder in Kbps, any order (default: {VIDEO_BIT_RATE})")
    parser.add_argument('--size-file-prefix', type=str, default=None,
                        help="Prefix of chunk size files, lowest bitrate first "
                             "(default: None, constant-bitrate chunks)")
    parser.add_argument('--max-chunks', type=int, default=TOTAL_VIDEO_CHUNKS,
                        help=f"Maximum number of chunks per video (default: {TOTAL_VIDEO_CHUNKS})")
    parser.add_argument('--chunk-duration-ms', type=float, default=CHUNK_DURATION_MS,
                        help=f"Media duration of every chunk in ms (default: {CHUNK_DURATION_MS})")
    parser.add_argument('--max-buffer-ms', type=float, default=MAX_BUFFER_MS,
                        help=f"Maximum buffer in ms (default: {MAX_BUFFER_MS})")
    parser.add_argument('--log-file-prefix', type=str, default=LOG_FILE_PREFIX,
                        help=f"Prefix for replay log files (default: {LOG_FILE_PREFIX}). "
                             f"Actual log path: <prefix><algorithm>_<trace_name>")
    parser.add_argument('--log-level', type=str, default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help="Logging level (default: 'WARNING')")
    parser.add_argument('-o', '--algorithm-options', type=str, nargs='*', default=[],
                        metavar='KEY=VALUE',
                        help="Algorithm config options, e.g. bandwidth_fraction=0.8 ewma_weight=0.3")
    parser.add_argument('-e', '--env-options', type=str, nargs='*', default=[],
                        metavar='KEY=VALUE',
                        help="Network trace options, e.g. link_rtt=100 packet_payload_portion=0.9")


def parse_options(options: list) -> Dict[str, Any]:
    """Parse KEY=VALUE options; values are Python literals."""
    result: Dict[str, Any] = {}
    for opt in options:
        if '=' not in opt:
            raise ValueError(f"Invalid option format: {opt}. Expected KEY=VALUE")
        key, value = opt.split('=', 1)
        try:
            result[key] = ast.literal_eval(value)
        except (ValueError, SyntaxError) as e:
            raise ValueError(f"Invalid value for option {key}: {value}") from e
    return result


def parse_replay_args(args: argparse.Namespace) -> argparse.Namespace:
    """Post-process parsed arguments in place."""
    args.algorithm_options = parse_options(args.algorithm_options)
    args.env_options = parse_options(args.env_options)
    return args
