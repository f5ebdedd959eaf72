# Namespace for pipeline steps
from .analyze_batch import BeginAnalysis, FinalizeBatch, Pacing, Publisher, ResolveRecords  # noqa: F401
