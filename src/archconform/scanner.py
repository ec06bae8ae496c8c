"""
archconform — static source scanner

File: src/archconform/scanner.py
Last updated: 2026-10-17

Purpose
- Extract two facts from Python source with ``ast``: attribute assignments on
  ``self`` outside constructors, and the keys passed to dependency-lookup calls.

What should be included in this file
- Pure functions over source text plus a file-level wrapper.
- Parse degradation: unreadable or unparsable files yield an empty scan with
  ``parse_error`` set and a logged warning.

Functional requirements
- Plain, augmented, annotated and tuple/list-unpacking targets all count as assignments.
- Lookup keys are the first positional string literal or the ``key=`` keyword;
  anything else is reported with ``literal=False``.

Non-functional requirements
- Deterministic ordering (by line, then name).
- Never imports or executes the scanned code.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

DEFAULT_CONSTRUCTORS: Final[tuple[str, ...]] = ("__init__", "__post_init__")
DEFAULT_LOOKUP_CALLS: Final[tuple[str, ...]] = ("resolve",)
_SKIPPED_DECORATORS: Final[frozenset[str]] = frozenset({"staticmethod", "classmethod"})
_SETATTR_BUILTINS: Final[frozenset[str]] = frozenset({"setattr", "delattr"})
_SETATTR_HOOKS: Final[frozenset[str]] = frozenset({"__setattr__", "__delattr__"})
DYNAMIC_ATTRIBUTE: Final[str] = "<dynamic>"


@dataclass(frozen=True, slots=True)
class MutationSite:
    line: int
    attribute: str
    method: str
    deletes: bool = False


@dataclass(frozen=True, slots=True)
class LookupCall:
    key: str
    line: int
    literal: bool = True


@dataclass(frozen=True, slots=True)
class ParseDegradation:
    """Diagnostic recorded when a source file could not be read or parsed."""

    path: str
    reason: str


@dataclass(frozen=True, slots=True)
class SourceScan:
    path: str
    mutations: tuple[MutationSite, ...] = ()
    lookups: tuple[LookupCall, ...] = ()
    parse_error: ParseDegradation | None = None

    @property
    def degraded(self) -> bool:
        return self.parse_error is not None


def mutation_locations(
    source: str,
    *,
    class_name: str | None = None,
    constructors: Sequence[str] = DEFAULT_CONSTRUCTORS,
) -> tuple[MutationSite, ...]:
    """Assignments to ``self.<attr>`` inside non-constructor methods.

    Raises ``SyntaxError`` for unparsable source; ``scan_file`` degrades instead.
    """

    return _mutations_in_module(ast.parse(source), class_name, frozenset(constructors))


def scan_lookup_calls(
    source: str,
    *,
    call_names: Sequence[str] = DEFAULT_LOOKUP_CALLS,
) -> tuple[LookupCall, ...]:
    """Every call to one of ``call_names`` with the key it passes."""

    return _lookups_in_module(ast.parse(source), frozenset(call_names))


def scan_file(
    path: str | Path,
    *,
    class_name: str | None = None,
    constructors: Sequence[str] = DEFAULT_CONSTRUCTORS,
    call_names: Sequence[str] = DEFAULT_LOOKUP_CALLS,
) -> SourceScan:
    """Read ``path`` and return both mutation sites and lookup calls."""

    source_path = Path(path)
    display = source_path.as_posix()
    try:
        text = source_path.read_text(encoding="utf-8")
        module = ast.parse(text, filename=display)
    except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
        degradation = ParseDegradation(path=display, reason=f"{type(exc).__name__}: {exc}")
        logger.warning(
            "source scan degraded for %s",
            display,
            extra={"path": display, "reason": degradation.reason},
        )
        return SourceScan(path=display, parse_error=degradation)

    return SourceScan(
        path=display,
        mutations=_mutations_in_module(module, class_name, frozenset(constructors)),
        lookups=_lookups_in_module(module, frozenset(call_names)),
    )


def _mutations_in_module(
    module: ast.Module, class_name: str | None, constructors: frozenset[str]
) -> tuple[MutationSite, ...]:
    sites: set[MutationSite] = set()
    for class_node in _iter_classes(module.body):
        if class_name is not None and class_node.name != class_name:
            continue
        for statement in class_node.body:
            if not isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            if statement.name in constructors or _is_skipped(statement):
                continue
            receiver = _receiver_name(statement)
            if receiver is None:
                continue
            for line, attribute, deletes in _self_assignments(statement, receiver):
                sites.add(
                    MutationSite(line=line, attribute=attribute, method=statement.name, deletes=deletes)
                )
    return tuple(sorted(sites, key=lambda site: (site.line, site.attribute, site.method)))


def _iter_classes(statements: Sequence[ast.stmt]) -> Iterator[ast.ClassDef]:
    for statement in statements:
        if isinstance(statement, ast.ClassDef):
            yield statement
            yield from _iter_classes(statement.body)


def _is_skipped(function: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    for decorator in function.decorator_list:
        if isinstance(decorator, ast.Name) and decorator.id in _SKIPPED_DECORATORS:
            return True
    return False


def _receiver_name(function: ast.FunctionDef | ast.AsyncFunctionDef) -> str | None:
    positional = [*function.args.posonlyargs, *function.args.args]
    if not positional:
        return None
    return positional[0].arg


def _self_assignments(
    function: ast.FunctionDef | ast.AsyncFunctionDef, receiver: str
) -> Iterator[tuple[int, str, bool]]:
    for node in _walk_without_classes(function):
        targets: list[ast.expr] = []
        if isinstance(node, ast.Assign):
            targets.extend(node.targets)
        elif isinstance(node, ast.AugAssign):
            targets.append(node.target)
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            targets.append(node.target)
        elif isinstance(node, (ast.For, ast.AsyncFor)):
            targets.append(node.target)
        elif isinstance(node, (ast.With, ast.AsyncWith)):
            targets.extend(item.optional_vars for item in node.items if item.optional_vars)
        elif isinstance(node, ast.Delete):
            for target in node.targets:
                for line, attribute in _attribute_targets(target, receiver):
                    yield line, attribute, True
        elif isinstance(node, ast.Call):
            site = _setattr_call(node, receiver)
            if site is not None:
                yield site
        for target in targets:
            for line, attribute in _attribute_targets(target, receiver):
                yield line, attribute, False


def _setattr_call(node: ast.Call, receiver: str) -> tuple[int, str, bool] | None:
    """``setattr(self, ...)``, ``object.__setattr__(self, ...)`` and their delete forms."""

    func = node.func
    if isinstance(func, ast.Name) and func.id in _SETATTR_BUILTINS:
        deletes = func.id == "delattr"
    elif isinstance(func, ast.Attribute) and func.attr in _SETATTR_HOOKS:
        deletes = func.attr == "__delattr__"
    else:
        return None
    if len(node.args) < 2:
        return None
    owner, name = node.args[0], node.args[1]
    if not (isinstance(owner, ast.Name) and owner.id == receiver):
        return None
    if isinstance(name, ast.Constant) and isinstance(name.value, str):
        return node.lineno, name.value, deletes
    return node.lineno, DYNAMIC_ATTRIBUTE, deletes


def _walk_without_classes(root: ast.AST) -> Iterator[ast.AST]:
    pending: list[ast.AST] = list(ast.iter_child_nodes(root))
    while pending:
        node = pending.pop()
        if isinstance(node, ast.ClassDef):
            continue
        yield node
        pending.extend(ast.iter_child_nodes(node))


def _attribute_targets(target: ast.expr, receiver: str) -> Iterator[tuple[int, str]]:
    if isinstance(target, ast.Attribute):
        if isinstance(target.value, ast.Name) and target.value.id == receiver:
            yield target.lineno, target.attr
        return
    if isinstance(target, (ast.Tuple, ast.List)):
        for element in target.elts:
            yield from _attribute_targets(element, receiver)
        return
    if isinstance(target, ast.Starred):
        yield from _attribute_targets(target.value, receiver)


def _lookups_in_module(module: ast.Module, call_names: frozenset[str]) -> tuple[LookupCall, ...]:
    found: list[tuple[int, int, LookupCall]] = []
    for node in ast.walk(module):
        if not isinstance(node, ast.Call):
            continue
        if _callee_name(node.func) not in call_names:
            continue
        found.append((node.lineno, node.col_offset, _lookup_from_call(node)))
    found.sort(key=lambda item: (item[0], item[1]))
    return tuple(item[2] for item in found)


def _callee_name(func: ast.expr) -> str | None:
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def _lookup_from_call(node: ast.Call) -> LookupCall:
    argument: ast.expr | None = None
    if node.args:
        argument = node.args[0]
    else:
        argument = next((kw.value for kw in node.keywords if kw.arg == "key"), None)

    if argument is None:
        return LookupCall(key="", line=node.lineno, literal=False)
    if isinstance(argument, ast.Constant) and isinstance(argument.value, str):
        return LookupCall(key=argument.value, line=node.lineno, literal=True)
    return LookupCall(key=ast.unparse(argument), line=node.lineno, literal=False)


__all__ = [
    "DEFAULT_CONSTRUCTORS",
    "DEFAULT_LOOKUP_CALLS",
    "LookupCall",
    "MutationSite",
    "ParseDegradation",
    "SourceScan",
    "mutation_locations",
    "scan_file",
    "scan_lookup_calls",
]
