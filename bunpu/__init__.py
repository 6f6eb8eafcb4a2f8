"""bunpu: mixed-shape distributions, alias sampling and ruin simulation"""

from ._version import __version__

# Use lazy imports to avoid import issues during test discovery
# Direct imports are defined but modules are imported only when accessed

__all__ = [
    "__version__",
    "AliasSampler",
    "Atom",
    "Bin",
    "Config",
    "DegenerateScaleError",
    "Distribution",
    "NumpyRandomSource",
    "RuinSimulationConfig",
    "RuinSimulationResults",
    "RuinSimulator",
    "Tail",
    "convolve",
    "decode",
    "encode",
    "exact_ruin_probability",
    "max_of",
    "mix",
    "reciprocal",
    "reduce",
    "scale",
]


def __getattr__(name):
    """Lazy import modules to avoid circular dependencies during test discovery."""
    if name in ["Atom", "Bin", "Distribution", "Tail"]:
        from .components import Atom, Bin, Distribution, Tail

        return locals()[name]
    elif name in ["decode", "encode"]:
        from .codec import decode, encode

        return locals()[name]
    elif name == "AliasSampler":
        from .alias_sampler import AliasSampler

        return AliasSampler
    elif name in [
        "DegenerateScaleError",
        "convolve",
        "max_of",
        "mix",
        "reciprocal",
        "scale",
    ]:
        from .algebra import DegenerateScaleError, convolve, max_of, mix, reciprocal, scale

        return locals()[name]
    elif name == "reduce":
        from .reducer import reduce

        return reduce
    elif name == "NumpyRandomSource":
        from .random_source import NumpyRandomSource

        return NumpyRandomSource
    elif name in ["Config", "RuinSimulationConfig"]:
        from .config import Config, RuinSimulationConfig

        return locals()[name]
    elif name in ["RuinSimulationResults", "RuinSimulator", "exact_ruin_probability"]:
        from .ruin_probability import (
            RuinSimulationResults,
            RuinSimulator,
            exact_ruin_probability,
        )

        return locals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
