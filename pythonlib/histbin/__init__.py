from .axis import (
    UNDERFLOW,
    OVERFLOW,
    Axis,
    AxisKind,
    EquidistantAxis,
    GrowAxis,
)
from .bin_index import BinIndexer, InvalidBinIndexError, iter_bin_combinations
from .hist import BinInfo, Hist
from .config import (
    axis_from_dict,
    axis_to_dict,
    axes_from_config,
    hist_from_config,
    load_config,
)

__all__ = [name for name in dir() if not name.startswith("_")]
