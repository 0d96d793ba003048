"""Application services."""
from .job_status_translator import JobStatusTranslator
from .parameter_merger import merge_parameters

__all__ = ["JobStatusTranslator", "merge_parameters"]
