"""Expansion of macro-like tags inside documentation comments."""

from .config import ProcessingSettings
from .documents import Document, ImportPath, Language
from .engine import ExpansionEngine
from .errors import (
    CircularReferenceError,
    DocProcessorError,
    DocweaverError,
    NoProgressError,
    ProcessLimitError,
    ReferenceNotFoundError,
    SelfReferenceError,
    TagProcessorError,
)
from .graph import IncludeGraph, build_include_graph, presort
from .index import DocumentIndex, accept_all, all_of
from .pipeline import DocPipeline, PipelineResult, process_documents
from .processor import DocProcessor, RunContext, TagProcessor
from .registry import DEFAULT_PROCESSOR_REGISTRY, ProcessorCapability, ProcessorNotFoundError, ProcessorRegistry

__all__ = [
    "Document",
    "ImportPath",
    "Language",
    "DocumentIndex",
    "accept_all",
    "all_of",
    "DocProcessor",
    "TagProcessor",
    "RunContext",
    "ExpansionEngine",
    "IncludeGraph",
    "build_include_graph",
    "presort",
    "ProcessorCapability",
    "ProcessorRegistry",
    "ProcessorNotFoundError",
    "DEFAULT_PROCESSOR_REGISTRY",
    "ProcessingSettings",
    "DocPipeline",
    "PipelineResult",
    "process_documents",
    "DocweaverError",
    "ReferenceNotFoundError",
    "SelfReferenceError",
    "CircularReferenceError",
    "ProcessLimitError",
    "NoProgressError",
    "DocProcessorError",
    "TagProcessorError",
]
