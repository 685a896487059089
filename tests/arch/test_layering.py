# tests/arch/test_layering.py
"""Layering guardrail built on the grimp import graph.

    domain         -> domain
    application    -> domain, application
    adapters       -> domain, application, adapters, infrastructure
    infrastructure -> domain, application, adapters, infrastructure

``workledger.config``, ``workledger.dependencies`` and ``workledger.tasks``
sit outside the matrix: they wire the layers together.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

import grimp
import pytest
from grimp.exceptions import NamespacePackageEncountered

ROOT_PACKAGE: Final[str] = "workledger"
LAYERS: Final[frozenset[str]] = frozenset({"domain", "application", "adapters", "infrastructure"})

ALLOWED_DEPENDENCIES: Mapping[str, frozenset[str]] = {
    "domain": frozenset({"domain"}),
    "application": frozenset({"domain", "application"}),
    "adapters": LAYERS,
    "infrastructure": LAYERS,
}


@pytest.fixture(scope="module")
def graph() -> grimp.ImportGraph:
    try:
        built = grimp.build_graph(ROOT_PACKAGE)
    except NamespacePackageEncountered as exc:
        pytest.skip(f"grimp cannot scan the namespace package layout: {exc}")
    if "workledger.application.services.batch_executor" not in built.modules:
        pytest.skip("grimp did not descend into the namespace subpackages")
    return built


def _layer_for_module(module_name: str) -> str | None:
    if not module_name.startswith(f"{ROOT_PACKAGE}."):
        return None
    top = module_name[len(ROOT_PACKAGE) + 1 :].split(".", 1)[0]
    return top if top in LAYERS else None


def _find_layering_violations(graph: grimp.ImportGraph) -> list[str]:
    violations: set[str] = set()
    for importer in sorted(graph.modules):
        importer_layer = _layer_for_module(importer)
        if importer_layer is None:
            continue
        allowed = ALLOWED_DEPENDENCIES[importer_layer]
        for imported in graph.find_modules_directly_imported_by(importer):
            imported_layer = _layer_for_module(imported)
            if imported_layer is not None and imported_layer not in allowed:
                violations.add(f"{importer} ({importer_layer}) -> {imported} ({imported_layer})")
    return sorted(violations)


def test_layers_only_import_inward(graph: grimp.ImportGraph) -> None:
    violations = _find_layering_violations(graph)

    assert not violations, "Layering violations detected:\n" + "\n".join(violations)


def test_application_has_no_config_imports(graph: grimp.ImportGraph) -> None:
    offenders = sorted(
        f"{importer} -> {imported}"
        for importer in graph.modules
        if _layer_for_module(importer) == "application"
        for imported in graph.find_modules_directly_imported_by(importer)
        if imported.startswith(f"{ROOT_PACKAGE}.config")
    )

    assert offenders == []
