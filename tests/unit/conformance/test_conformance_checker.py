"""
archconform — unit tests for the conformance checker and report

File: tests/unit/conformance/test_conformance_checker.py
Last updated: 2026-10-17

Purpose
- Run the whole check suite against the sample component and synthetic drift.

What this test file should cover
- The sample component conforms in strict mode with its container wired.
- Blueprint-only elements fail strict runs and warn permissive runs.
- ``assert_conforms`` raising and warning behavior.
- Config-driven checker construction and report rendering.
"""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest

from archconform.conformance import (
    Category,
    ConformanceChecker,
    ConformanceFinding,
    ConformanceReport,
    Severity,
    assert_conforms,
)
from archconform.errors import ConformanceFailure, ConformanceWarning
from sample_orders.container import build_container

SAMPLE_ROOT = Path(__file__).resolve().parents[2] / "fixtures" / "sample_orders"


def _add_aggregate(payload: dict[str, object]) -> None:
    payload["layers"]["domain"]["aggregates"].append(  # type: ignore[index]
        {"name": "Shipment", "description": "Tracks fulfilment of an order."}
    )


def test_sample_component_passes_strict_mode_with_container(sample_blueprint) -> None:  # type: ignore[no-untyped-def]
    report = ConformanceChecker().check_root(
        sample_blueprint, SAMPLE_ROOT, container=build_container(), component_id="sample_orders"
    )

    assert report.failures == ()
    assert report.passed
    assert report.component == "sample_orders"
    assert_conforms(report)


def test_without_container_wiring_checks_are_skipped(sample_blueprint) -> None:  # type: ignore[no-untyped-def]
    report = ConformanceChecker().check_root(sample_blueprint, SAMPLE_ROOT)

    assert report.passed
    assert not any(item.category is Category.WIRING for item in report.findings)


def test_blueprint_only_aggregate_fails_strict(blueprint_factory) -> None:  # type: ignore[no-untyped-def]
    blueprint = blueprint_factory(_add_aggregate)

    report = ConformanceChecker().check_root(blueprint, SAMPLE_ROOT)

    assert [(item.severity, item.category, item.subject_name) for item in report.failures] == [
        (Severity.FAIL, Category.MISSING, "Shipment")
    ]


def test_blueprint_only_aggregate_warns_permissive(blueprint_factory) -> None:  # type: ignore[no-untyped-def]
    blueprint = blueprint_factory(_add_aggregate)

    report = ConformanceChecker(permit_unimplemented=True).check_root(blueprint, SAMPLE_ROOT)

    assert report.passed
    assert [item.subject_name for item in report.warnings] == ["Shipment"]
    assert report.to_dict()["permit_unimplemented"] is True


def test_code_only_adapter_fails_even_when_permissive(blueprint_factory) -> None:  # type: ignore[no-untyped-def]
    def drop_stripe(payload: dict[str, object]) -> None:
        infrastructure = payload["layers"]["infrastructure"]  # type: ignore[index]
        infrastructure["adapters"]["external"] = []

    report = ConformanceChecker(permit_unimplemented=True).check_root(
        blueprint_factory(drop_stripe), SAMPLE_ROOT
    )

    drift = [item for item in report.failures if item.category is Category.DRIFT]
    assert [item.subject_name for item in drift] == ["StripePaymentGateway"]


def _report(*findings: ConformanceFinding) -> ConformanceReport:
    return ConformanceReport(component="billing", findings=findings)


def test_assert_conforms_raises_with_every_failure() -> None:
    report = _report(
        ConformanceFinding(Severity.FAIL, Category.DRIFT, "OrderDraft", "aggregate 'OrderDraft' drifted"),
        ConformanceFinding(Severity.FAIL, Category.WIRING, "OrderController", "bad key"),
        ConformanceFinding(Severity.WARN, Category.MISSING, "Refund", "refund unresolved"),
    )

    with pytest.warns(ConformanceWarning, match="refund unresolved"):
        with pytest.raises(ConformanceFailure) as excinfo:
            assert_conforms(report)

    message = str(excinfo.value)
    assert message.splitlines() == [
        "billing: 2 conformance failure(s)",
        "- [drift] aggregate 'OrderDraft' drifted",
        "- [wiring] bad key",
    ]


def test_assert_conforms_is_silent_for_a_clean_report() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert_conforms(_report())


def test_report_serialization_and_rendering() -> None:
    report = _report(
        ConformanceFinding(
            Severity.FAIL,
            Category.IMMUTABILITY,
            "Invoice",
            "Invoice.discount assigns self._total outside the constructor",
            location="invoice.py:7",
        ),
        ConformanceFinding(Severity.WARN, Category.MISSING, "Refund", "refund unresolved"),
    )

    payload = report.to_dict()
    assert payload["passed"] is False
    assert payload["failure_count"] == 1
    assert payload["warning_count"] == 1
    assert payload["by_category"] == {"immutability": 1, "missing": 1}
    assert [ConformanceFinding.from_dict(item) for item in payload["findings"]] == list(report.findings)

    rendered = report.render().splitlines()
    assert rendered[0] == "billing: FAIL (1 failure(s), 1 warning(s))"
    assert rendered[1].endswith("[invoice.py:7]")


def test_checker_from_config_section() -> None:
    checker = ConformanceChecker.from_config(
        {
            "conformance": {
                "permit_unimplemented": True,
                "lookup_call_names": ["lookup"],
                "allowed_key_suffixes": "_handler",
            }
        }
    )

    assert checker.permit_unimplemented is True
    assert checker.lookup_call_names == ("lookup",)
    assert checker.allowed_key_suffixes == ("_handler",)
    assert ConformanceChecker.from_config({}) == ConformanceChecker()
