from .detail_extraction import (
    DetailExtractionUseCase,
    ExtractionSettings,
    compute_batch_stats,
)

__all__ = ["DetailExtractionUseCase", "ExtractionSettings", "compute_batch_stats"]
