"""Rate-adaptation core: samples, statistics, catalog and telemetry."""

from . import fit
from . import lookahead
from . import sample
from . import stats
from .catalog import Representation, RepresentationCatalog
from .fit import KumaraswamyFit, kumaraswamy_fit
from .lookahead import LookaheadTable, load_lookahead
from .sample import SampleMode, SampleStore, SwitchableSampler, ThroughputSample
from .telemetry import ChunkDescriptor, ChunkRecord, PlaybackTelemetry

__all__ = [
    # Submodules
    'fit',
    'lookahead',
    'sample',
    'stats',
    # Classes
    'Representation',
    'RepresentationCatalog',
    'KumaraswamyFit',
    'LookaheadTable',
    'SampleMode',
    'SampleStore',
    'SwitchableSampler',
    'ThroughputSample',
    'ChunkDescriptor',
    'ChunkRecord',
    'PlaybackTelemetry',
    # Functions
    'kumaraswamy_fit',
    'load_lookahead',
]
