"""Tests for the transform registry and dependency ordering."""

from __future__ import annotations

import pytest

from hypocurve.engine.registry import Stage, TransformRegistry, TransformSpec, register_transforms


def _noop(curve) -> None:
    return None


def _spec(tid: str, stage: Stage, deps: list[str] | None = None, tags: set[str] | None = None) -> TransformSpec:
    return TransformSpec(id=tid, stage=stage, fn=_noop, dependencies=deps or [], tags=tags or set())


def _registry(*specs: TransformSpec) -> TransformRegistry:
    registry = TransformRegistry()
    for spec in specs:
        registry.register(spec)
    return registry


class TestRegisteredTransforms:
    def test_all_stage_transforms_registered(self):
        registry = register_transforms()
        assert registry.count == 7
        assert [s.id for s in registry.all()] == [
            "T0.01",
            "T1.01",
            "T2.01",
            "T3.01",
            "T3.02",
            "T3.03",
            "T4.01",
        ]

    def test_register_transforms_is_repeatable(self):
        first = register_transforms()
        second = register_transforms()
        assert first is second
        assert second.count == 7

    def test_default_order(self):
        order = [s.id for s in register_transforms().resolve_order()]
        assert order == ["T0.01", "T1.01", "T2.01", "T3.01", "T3.02", "T3.03", "T4.01"]

    def test_smoothing_is_tagged(self):
        registry = register_transforms()
        assert "smooth" in registry.get("T2.01").tags
        assert [s.id for s in registry.get_stage(Stage.ENVELOPE)] == ["T3.01", "T3.02", "T3.03"]

    def test_every_dependency_is_upstream(self):
        registry = register_transforms()
        for spec in registry.all():
            for dep in spec.dependencies:
                assert registry.get(dep).stage <= spec.stage


class TestResolveOrder:
    def test_dependencies_come_first(self):
        registry = _registry(
            _spec("T1.01", Stage.NORMALIZATION, ["T0.01"]),
            _spec("T3.01", Stage.ENVELOPE, ["T1.01"]),
            _spec("T0.01", Stage.SEGMENTATION),
        )
        assert [s.id for s in registry.resolve_order()] == ["T0.01", "T1.01", "T3.01"]

    def test_ties_break_by_stage_then_id(self):
        registry = _registry(
            _spec("T3.02", Stage.ENVELOPE),
            _spec("T3.01", Stage.ENVELOPE),
            _spec("T1.01", Stage.NORMALIZATION),
        )
        assert [s.id for s in registry.resolve_order()] == ["T1.01", "T3.01", "T3.02"]

    def test_skipped_dependency_counts_as_satisfied(self):
        registry = _registry(
            _spec("T1.01", Stage.NORMALIZATION),
            _spec("T2.01", Stage.SMOOTHING, ["T1.01"]),
            _spec("T3.01", Stage.ENVELOPE, ["T1.01", "T2.01"]),
        )
        order = [s.id for s in registry.resolve_order({"T2.01"})]
        assert order == ["T1.01", "T3.01"]

    def test_unregistered_dependency_rejected(self):
        registry = _registry(_spec("T1.01", Stage.NORMALIZATION, ["T0.99"]))
        with pytest.raises(ValueError, match="unregistered"):
            registry.resolve_order()

    def test_cycle_rejected(self):
        registry = _registry(
            _spec("T3.01", Stage.ENVELOPE, ["T3.02"]),
            _spec("T3.02", Stage.ENVELOPE, ["T3.01"]),
        )
        with pytest.raises(ValueError, match="Circular dependency"):
            registry.resolve_order()

    def test_duplicate_id_rejected(self):
        registry = _registry(_spec("T0.01", Stage.SEGMENTATION))
        with pytest.raises(ValueError, match="Duplicate"):
            registry.register(_spec("T0.01", Stage.SEGMENTATION))
