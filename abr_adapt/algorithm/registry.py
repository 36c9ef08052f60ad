"""Algorithm factory for creating rate-adaptation algorithms by name.

This module provides factory functions to create algorithms by name,
allowing for easy switching between different implementations.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from ..core.catalog import RepresentationCatalog
from ..core.telemetry import PlaybackTelemetry
from .abc import AbstractAlgorithm


@dataclass
class RegistryEntry:
    """Registry entry containing the algorithm and its configuration class."""

    algorithm_cls: Type[AbstractAlgorithm]
    config_cls: Optional[Type[Any]]


# Registry of algorithms with their configuration classes
REGISTRY: Dict[str, RegistryEntry] = {}


def register(
    name: str,
    algorithm_cls: Type[AbstractAlgorithm],
    config_cls: Optional[Type[Any]] = None,
) -> None:
    """Register an algorithm with its configuration class.

    Args:
        name: Name to register the algorithm under (case-sensitive).
        algorithm_cls: The algorithm class to register.
        config_cls: Dataclass holding the algorithm's tunable parameters,
            or None if the algorithm has none.

    Raises:
        ValueError: If the algorithm class is not a subclass of
            AbstractAlgorithm, or if the config class is not a dataclass.
    """
    if not issubclass(algorithm_cls, AbstractAlgorithm):
        raise ValueError(
            f"Algorithm class must be a subclass of AbstractAlgorithm, got {algorithm_cls}"
        )
    if config_cls is not None and not dataclasses.is_dataclass(config_cls):
        raise ValueError(
            f"Config class must be a dataclass, got {config_cls}"
        )
    REGISTRY[name] = RegistryEntry(algorithm_cls=algorithm_cls, config_cls=config_cls)


def get_available_algorithms() -> list[str]:
    """Get a list of available algorithm names.

    Returns:
        List of registered algorithm names.
    """
    return list(REGISTRY.keys())


def create_config(name: str, **options) -> Optional[Any]:
    """Create the configuration of an algorithm from keyword options.

    Options that are not fields of the algorithm's config class are ignored
    with a warning.

    Raises:
        ValueError: If the algorithm name is not recognized.
    """
    if name not in REGISTRY:
        available = ", ".join(get_available_algorithms())
        raise ValueError(
            f"Unknown algorithm: '{name}'. Available algorithms: {available}"
        )
    config_cls = REGISTRY[name].config_cls
    if config_cls is None:
        if options:
            logging.warning(f"options are ignored for algorithm '{name}': {options}")
        return None

    field_names = {field.name for field in dataclasses.fields(config_cls)}
    ignored = {k: v for k, v in options.items() if k not in field_names}
    if ignored:
        logging.warning(f"options are ignored for algorithm '{name}': {ignored}")
    return config_cls(**{k: v for k, v in options.items() if k in field_names})


def create_algorithm(
    name: str,
    catalog: RepresentationCatalog,
    telemetry: PlaybackTelemetry,
    **options,
) -> AbstractAlgorithm:
    """Create an algorithm by name.

    Args:
        name: Name of the algorithm to create (case-sensitive).
            Available algorithms: "basic", "dash", "elastic", "bba2", "oscar-h".
        catalog: Representation ladder, highest bitrate first.
        telemetry: Telemetry model fed by the host.
        **options: Fields of the algorithm's config dataclass.

    Returns:
        An instance of the requested algorithm.

    Raises:
        ValueError: If the algorithm name is not recognized, or if an
            option value is rejected by the config class.

    Example:
        >>> algorithm = create_algorithm(
        ...     "dash",
        ...     catalog=RepresentationCatalog.from_kbps([3000, 1500, 750, 300]),
        ...     telemetry=PlaybackTelemetry(),
        ...     bandwidth_fraction=0.8,
        ... )
    """
    config = create_config(name, **options)
    return REGISTRY[name].algorithm_cls(catalog, telemetry, config)
