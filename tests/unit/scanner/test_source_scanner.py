"""
archconform — unit tests for the static source scanner

File: tests/unit/scanner/test_source_scanner.py
Last updated: 2026-10-17

Purpose
- Validate attribute-mutation and dependency-lookup detection over Python source.

What this test file should cover
- Constructors, static methods and class methods are exempt from mutation reporting.
- Tuple, augmented and loop-target assignments are detected.
- Literal vs non-literal lookup keys.
- Unreadable or unparsable files degrade to a diagnostic instead of raising.
"""

from __future__ import annotations

import logging
from pathlib import Path
from textwrap import dedent

import pytest

from archconform.scanner import mutation_locations, scan_file, scan_lookup_calls

_AGGREGATE_SOURCE = dedent(
    """
    class Invoice:
        def __init__(self, total):
            self.total = total
            self.lines = []

        def add_line(self, amount):
            self.total += amount

        def reset(self):
            self.total, self.lines = 0, []

        def rename(this, name):
            this.name = name

        def copy_lines(self, other):
            for self.cursor in other:
                pass

        def read_only(self):
            total = self.total
            return total

        @staticmethod
        def build(self):
            self.total = 1

        @classmethod
        def empty(cls):
            cls.total = 0

    class Other:
        def touch(self):
            self.value = 1
    """
)


def test_mutations_outside_constructor_are_reported() -> None:
    sites = mutation_locations(_AGGREGATE_SOURCE, class_name="Invoice")

    assert [(site.method, site.attribute) for site in sites] == [
        ("add_line", "total"),
        ("reset", "lines"),
        ("reset", "total"),
        ("rename", "name"),
        ("copy_lines", "cursor"),
    ]


def test_class_filter_and_custom_constructors() -> None:
    all_sites = mutation_locations(_AGGREGATE_SOURCE)
    assert {site.method for site in all_sites} >= {"touch", "add_line"}

    sites = mutation_locations(
        _AGGREGATE_SOURCE, class_name="Invoice", constructors=("__init__", "reset")
    )
    assert "reset" not in {site.method for site in sites}


def test_nested_class_assignments_are_not_attributed_to_outer_method() -> None:
    source = dedent(
        """
        class Outer:
            def make(self):
                class Inner:
                    def set(self):
                        self.value = 1
                return Inner
        """
    )

    assert mutation_locations(source, class_name="Outer") == ()


def test_attribute_hooks_and_deletes_count_as_mutations() -> None:
    source = dedent(
        """
        from dataclasses import dataclass

        @dataclass(frozen=True)
        class Money:
            cents: int

            def __post_init__(self):
                object.__setattr__(self, "cents", int(self.cents))

            def bump(self):
                object.__setattr__(self, "cents", self.cents + 1)

            def forget(self):
                del self.cents

            def patch(self, name, value):
                setattr(self, name, value)

            def drop(self):
                object.__delattr__(self, "cents")

            def build_other(self, other):
                object.__setattr__(other, "cents", 0)
        """
    )

    sites = mutation_locations(source, class_name="Money")

    assert [(site.method, site.attribute, site.deletes) for site in sites] == [
        ("bump", "cents", False),
        ("forget", "cents", True),
        ("patch", "<dynamic>", False),
        ("drop", "cents", True),
    ]


def test_lookup_calls_with_literal_and_dynamic_keys() -> None:
    source = dedent(
        """
        def handler(container, name):
            a = container.resolve("place_order_service")
            b = container.resolve(name)
            c = container.resolve(key="get_order_query")
            d = container.resolve()
            return a, b, c, d
        """
    )

    lookups = scan_lookup_calls(source)

    assert [(item.key, item.literal) for item in lookups] == [
        ("place_order_service", True),
        ("name", False),
        ("get_order_query", True),
        ("", False),
    ]


def test_custom_lookup_call_names() -> None:
    source = 'def f(c):\n    return c.get("x"), c.resolve("y")\n'

    lookups = scan_lookup_calls(source, call_names=("get",))

    assert [item.key for item in lookups] == ["x"]


def test_scan_file_degrades_on_syntax_error(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "broken.py"
    path.write_text("class Broken(:\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="archconform.scanner"):
        scan = scan_file(path)

    assert scan.degraded
    assert scan.parse_error is not None
    assert "SyntaxError" in scan.parse_error.reason
    assert scan.mutations == () and scan.lookups == ()
    assert any("degraded" in record.getMessage() for record in caplog.records)


def test_scan_file_degrades_on_missing_file(tmp_path: Path) -> None:
    scan = scan_file(tmp_path / "missing.py")

    assert scan.degraded
    assert scan.parse_error is not None and "FileNotFoundError" in scan.parse_error.reason


def test_mutation_locations_raises_for_unparsable_source() -> None:
    with pytest.raises(SyntaxError):
        mutation_locations("def (:")
