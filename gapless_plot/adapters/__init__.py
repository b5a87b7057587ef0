from gapless_plot.adapters.normalize import coerce_timestamps, coerce_values
from gapless_plot.adapters.index_mapped import IndexMappedDataset, index_mapped

__all__ = [
    "IndexMappedDataset",
    "coerce_timestamps",
    "coerce_values",
    "index_mapped",
]
