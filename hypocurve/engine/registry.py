"""Transform registry — every pipeline stage is a standalone function registered via decorator.

Usage:
    @transform(id="T1.01", stage=Stage.NORMALIZATION, dependencies=["T0.01"])
    def midpoint_normalization(curve: Curve) -> None:
        curve.normal_segments = ...

Transforms live one per file under engine/stageN/ and are picked up by
register_transforms(); IDs encode the stage as "T<stage>.<nn>".
"""

from __future__ import annotations

import enum
import importlib
import logging
import pkgutil
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from hypocurve.engine.context import Curve

logger = logging.getLogger(__name__)

STAGE_PACKAGES = ["stage0", "stage1", "stage2", "stage3", "stage4"]


class Stage(enum.IntEnum):
    SEGMENTATION = 0
    NORMALIZATION = 1
    SMOOTHING = 2
    ENVELOPE = 3
    PATCH = 4


@dataclass
class TransformSpec:
    id: str
    stage: Stage
    fn: Callable[["Curve"], None]
    dependencies: list[str] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)
    description: str = ""


class TransformRegistry:
    """Transforms keyed by ID, ordered by declared dependencies."""

    def __init__(self) -> None:
        self._transforms: dict[str, TransformSpec] = {}

    def register(self, spec: TransformSpec) -> None:
        if spec.id in self._transforms:
            raise ValueError(f"Duplicate transform ID: {spec.id}")
        self._transforms[spec.id] = spec
        logger.debug("Registered transform %s (%s)", spec.id, spec.stage.name)

    def get(self, transform_id: str) -> TransformSpec:
        return self._transforms[transform_id]

    def get_stage(self, stage: Stage) -> list[TransformSpec]:
        specs = [s for s in self._transforms.values() if s.stage == stage]
        return sorted(specs, key=lambda s: s.id)

    def all(self) -> list[TransformSpec]:
        return sorted(self._transforms.values(), key=lambda s: (s.stage, s.id))

    def resolve_order(self, skip: set[str] | None = None) -> list[TransformSpec]:
        """Dependency order over every registered transform not in `skip`.

        A dependency on a skipped transform counts as satisfied; a dependency
        on an unregistered one is an error. Ties break by (stage, id).
        """
        skip = skip or set()
        pool = {tid: spec for tid, spec in self._transforms.items() if tid not in skip}

        sorter: TopologicalSorter[str] = TopologicalSorter()
        for tid, spec in pool.items():
            unknown = [d for d in spec.dependencies if d not in self._transforms]
            if unknown:
                raise ValueError(f"{tid} depends on unregistered transforms: {unknown}")
            sorter.add(tid, *(d for d in spec.dependencies if d in pool))

        try:
            sorter.prepare()
        except CycleError as e:
            raise ValueError(f"Circular dependency detected among: {e.args[1]}") from e

        ordered: list[TransformSpec] = []
        while sorter.is_active():
            ready = sorted((pool[tid] for tid in sorter.get_ready()), key=lambda s: (s.stage, s.id))
            for spec in ready:
                ordered.append(spec)
                sorter.done(spec.id)
        return ordered

    @property
    def count(self) -> int:
        return len(self._transforms)


# Module-level singleton
_registry = TransformRegistry()


def get_registry() -> TransformRegistry:
    return _registry


def transform(
    *,
    id: str,
    stage: Stage,
    dependencies: list[str] | None = None,
    tags: set[str] | None = None,
    description: str = "",
):
    """Decorator to register a transform function."""

    def decorator(fn: Callable[["Curve"], None]):
        spec = TransformSpec(
            id=id,
            stage=stage,
            fn=fn,
            dependencies=dependencies or [],
            tags=tags or set(),
            description=description,
        )
        _registry.register(spec)
        return fn

    return decorator


def register_transforms() -> TransformRegistry:
    """Import all stage modules so @transform decorators fire. Safe to call repeatedly."""
    for stage_name in STAGE_PACKAGES:
        package = importlib.import_module(f"hypocurve.engine.{stage_name}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package.__name__}.{module_name}")
    return _registry
