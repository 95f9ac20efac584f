"""Source module: primary vertex sampling."""

from muon_tomo.source.sampler import FixedPointSource, UniformAreaSource, make_source

__all__ = ["FixedPointSource", "UniformAreaSource", "make_source"]
