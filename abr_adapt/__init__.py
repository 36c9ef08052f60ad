"""abr_adapt - rate-adaptation core of an adaptive-bitrate video client.

Given a ladder of representations and a stream of delivery telemetry,
the core decides which representation to fetch next and why.
"""

from .algorithm import (
    AbstractAlgorithm,
    Decision,
    Reason,
    create_algorithm,
    get_available_algorithms,
    register,
)
from .core import (
    ChunkDescriptor,
    ChunkRecord,
    LookaheadTable,
    PlaybackTelemetry,
    Representation,
    RepresentationCatalog,
    SampleMode,
    SampleStore,
    ThroughputSample,
)
from .session import AdaptationSession

__all__ = [
    'AbstractAlgorithm',
    'Decision',
    'Reason',
    'create_algorithm',
    'get_available_algorithms',
    'register',
    'ChunkDescriptor',
    'ChunkRecord',
    'LookaheadTable',
    'PlaybackTelemetry',
    'Representation',
    'RepresentationCatalog',
    'SampleMode',
    'SampleStore',
    'ThroughputSample',
    'AdaptationSession',
]
