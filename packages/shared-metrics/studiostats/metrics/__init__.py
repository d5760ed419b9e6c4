"""
Studio Stats Metrics - teacher and studio performance from booking exports.

Provides:
- Normalizers for the new-visitor, bookings and payments exports
- Linking of first visits to the teacher who taught them
- Acquisition-source classification, retention and conversion metrics
- Studio-level aggregation per location and a grand total
- Per-trainer booking stats and a weighted teacher performance ranking

Usage:
    from studiostats.metrics import MetricsPipeline

    pipeline = MetricsPipeline()
    result = pipeline.run(new_rows, booking_rows, sale_rows)

    for metrics in result.teacher_data:
        print(metrics.teacher_name, metrics.retention_rate)
"""

from studiostats.metrics.aggregator import (
    StudioAggregator,
    aggregate_studios,
    aggregate_totals,
)
from studiostats.metrics.cohort import Cohort, CohortClassifier
from studiostats.metrics.config import (
    ClassificationRules,
    FieldMap,
    SourceRule,
)
from studiostats.metrics.conversion import ConversionEvaluator, ConversionResult
from studiostats.metrics.exceptions import (
    GroupComputationError,
    MissingInputError,
    StudioStatsError,
)
from studiostats.metrics.files import (
    CategorizedFiles,
    categorize_files,
    load_rows,
    process_files,
)
from studiostats.metrics.filters import filter_results, split_results
from studiostats.metrics.linker import VisitLinker
from studiostats.metrics.normalizer import RecordNormalizer
from studiostats.metrics.patterns import first_present, matches
from studiostats.metrics.pipeline import MetricsPipeline, process_data
from studiostats.metrics.retention import RetentionEvaluator, RetentionResult
from studiostats.metrics.schema import (
    AuditRecord,
    Booking,
    ClientDetail,
    ClientSource,
    EnrichedNewClient,
    GroupMetrics,
    NewVisitor,
    PerformanceBand,
    PerformanceScore,
    ProcessingResult,
    ProgressUpdate,
    Sale,
    TrainerStats,
)
from studiostats.metrics.trainers import performance_scores, trainer_stats

__all__ = [
    # Schema
    "AuditRecord",
    "Booking",
    "ClientDetail",
    "ClientSource",
    "EnrichedNewClient",
    "GroupMetrics",
    "NewVisitor",
    "PerformanceBand",
    "PerformanceScore",
    "ProcessingResult",
    "ProgressUpdate",
    "Sale",
    "TrainerStats",
    # Configuration
    "ClassificationRules",
    "FieldMap",
    "SourceRule",
    # Engine
    "RecordNormalizer",
    "VisitLinker",
    "Cohort",
    "CohortClassifier",
    "RetentionEvaluator",
    "RetentionResult",
    "ConversionEvaluator",
    "ConversionResult",
    "StudioAggregator",
    "aggregate_studios",
    "aggregate_totals",
    "trainer_stats",
    "performance_scores",
    "MetricsPipeline",
    "process_data",
    # Helpers
    "matches",
    "first_present",
    "filter_results",
    "split_results",
    # Files
    "CategorizedFiles",
    "categorize_files",
    "load_rows",
    "process_files",
    # Exceptions
    "StudioStatsError",
    "MissingInputError",
    "GroupComputationError",
]
