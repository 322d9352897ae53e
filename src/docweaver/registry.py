"""Processor registry and metadata primitives."""

from __future__ import annotations

import importlib
import json
from dataclasses import dataclass
from importlib import resources
from typing import Iterable, Sequence

from .processor import DocProcessor


class ProcessorNotFoundError(LookupError):
    """Raised when a processor name has no registered capability."""


@dataclass(frozen=True)
class ProcessorCapability:
    """Describe a processor and where its implementation lives (`module:Class`)."""

    name: str
    target: str
    description: str = ""

    def load(self) -> type[DocProcessor]:
        module_name, _, attribute = self.target.partition(":")
        if not attribute:
            raise ValueError(f"Processor target '{self.target}' must look like 'package.module:ClassName'")
        processor_class = getattr(importlib.import_module(module_name), attribute)
        if not (isinstance(processor_class, type) and issubclass(processor_class, DocProcessor)):
            raise TypeError(f"Processor target '{self.target}' is not a DocProcessor subclass")
        return processor_class


class ProcessorRegistry:
    """Registry that maps processor names to implementations and allows user extensions."""

    def __init__(self, capabilities: Iterable[ProcessorCapability] | None = None) -> None:
        self._capabilities: dict[str, ProcessorCapability] = {}
        for capability in capabilities or []:
            self._capabilities[capability.name] = capability

    def register(self, *, name: str, target: str, description: str = "") -> ProcessorCapability:
        capability = ProcessorCapability(name=name, target=target, description=description)
        self._capabilities[name] = capability
        return capability

    def register_class(self, processor_class: type[DocProcessor], *, description: str = "") -> ProcessorCapability:
        """Register an already imported processor class under its `name`."""

        target = f"{processor_class.__module__}:{processor_class.__qualname__}"
        return self.register(name=processor_class.name, target=target, description=description)

    def capabilities(self) -> Sequence[ProcessorCapability]:
        return tuple(self._capabilities.values())

    def names(self) -> list[str]:
        return list(self._capabilities)

    def __contains__(self, name: str) -> bool:
        return name in self._capabilities

    def get(self, name: str) -> ProcessorCapability:
        try:
            return self._capabilities[name]
        except KeyError as exc:
            known = ", ".join(self._capabilities) or "none"
            raise ProcessorNotFoundError(f"Unknown doc processor '{name}' (registered: {known})") from exc

    def create(self, name: str) -> DocProcessor:
        """Build a fresh processor instance for one run."""

        return self.get(name).load()()

    def merged(self, other: "ProcessorRegistry") -> "ProcessorRegistry":
        return ProcessorRegistry([*self.capabilities(), *other.capabilities()])

    @classmethod
    def with_default_processors(cls) -> "ProcessorRegistry":
        """Load registry defaults from the packaged JSON resource."""

        return cls._from_resource("default_processors.json")

    @classmethod
    def from_json(cls, path: str) -> "ProcessorRegistry":
        """Create a registry from a JSON file on disk."""

        with open(path, "r", encoding="utf-8") as handle:
            specs = json.load(handle)
        return cls._from_specs(specs)

    @classmethod
    def _from_resource(cls, resource_name: str) -> "ProcessorRegistry":
        try:
            data = resources.files(__package__).joinpath(resource_name).read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Cannot locate registry resource '{resource_name}'") from exc
        specs = json.loads(data)
        return cls._from_specs(specs)

    @classmethod
    def _from_specs(cls, specs: Iterable[dict[str, str]]) -> "ProcessorRegistry":
        registry = cls()
        for spec in specs:
            registry.register(
                name=spec["name"],
                target=spec["target"],
                description=spec.get("description", ""),
            )
        return registry


DEFAULT_PROCESSOR_REGISTRY = ProcessorRegistry.with_default_processors()
