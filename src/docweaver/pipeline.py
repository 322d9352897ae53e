"""Pipeline that runs the configured processors over a set of documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .config import ProcessingSettings
from .documents import Document
from .index import DocumentIndex
from .processor import DocProcessor, RunContext
from .registry import DEFAULT_PROCESSOR_REGISTRY, ProcessorRegistry

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    documents: list[Document]
    warnings: list[str] = field(default_factory=list)

    @property
    def modified(self) -> list[Document]:
        return [document for document in self.documents if document.modified]


class DocPipeline:
    """Runs processors in order over one index of documents.

    Processors are looked up by name in the registry and instantiated fresh for
    every run, so no state leaks between runs. The first fatal error aborts the
    run; warnings are collected in the result.
    """

    def __init__(
        self,
        processors: Sequence[str] | None = None,
        registry: ProcessorRegistry | None = None,
        settings: ProcessingSettings | None = None,
    ) -> None:
        self._settings = settings or ProcessingSettings()
        self._registry = registry or DEFAULT_PROCESSOR_REGISTRY
        self._processors = list(processors if processors is not None else self._settings.processors)
        for name in self._processors:
            self._registry.get(name)

    @property
    def processors(self) -> list[str]:
        return list(self._processors)

    def run(self, documents: Iterable[Document], known_paths: Iterable[str] = ()) -> PipelineResult:
        documents = list(documents)
        index = DocumentIndex.from_documents(documents, known_paths)
        context = RunContext.from_settings(self._settings)

        for name in self._processors:
            processor: DocProcessor = self._registry.create(name)
            logger.info("Running %s over %d documents", name, len(documents))
            processor.run(index, context)

        modified = sum(document.modified for document in documents)
        logger.info("Processed %d documents, %d modified, %d warnings", len(documents), modified, len(context.warnings))
        return PipelineResult(documents=documents, warnings=list(context.warnings))


def process_documents(
    documents: Iterable[Document],
    processors: Sequence[str] | None = None,
    **settings: object,
) -> PipelineResult:
    """Convenience wrapper: run the default registry with the given settings."""

    pipeline = DocPipeline(processors, settings=ProcessingSettings(**settings))
    return pipeline.run(documents)
