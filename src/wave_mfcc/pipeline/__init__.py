"""Frame-by-frame MFCC extraction over sources, files and chunk streams."""

from wave_mfcc.pipeline.extraction import MfccPipeline

__all__ = ["MfccPipeline"]
