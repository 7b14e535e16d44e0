"""Run the whole-program analysis over a project's facts."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from deadwood.analysis.aggregator import GlobalGraphs, aggregate
from deadwood.analysis.classifier import Classifier, ClassifierSettings
from deadwood.analysis.imports import DEFAULT_ALWAYS_NEEDED, ImportDependencyResolver
from deadwood.analysis.interfaces import InterfaceResolver
from deadwood.exclusion import FileExcluder
from deadwood.models.declaration import Declaration
from deadwood.models.facts import FactSet
from deadwood.models.report import Report, ReportOptions
from deadwood.oracle import CachingOracle, InterfaceOracle, NullOracle

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one analysis run produced."""

    graphs: GlobalGraphs
    declarations: list[Declaration]
    report: Report
    unresolved_interfaces: set[str] = field(default_factory=set)
    dependent_modules: set[str] = field(default_factory=set)
    test_files: list[str] = field(default_factory=list)


class AnalysisEngine:
    """Aggregate, resolve and classify. The two passes never interleave."""

    def __init__(
        self,
        oracle: InterfaceOracle | None = None,
        options: ReportOptions | None = None,
        settings: ClassifierSettings | None = None,
        always_needed: Iterable[str] = DEFAULT_ALWAYS_NEEDED,
        excluder: FileExcluder | None = None,
    ) -> None:
        self.oracle = CachingOracle(oracle or NullOracle())
        self.options = options or ReportOptions()
        self.settings = settings or ClassifierSettings()
        self.always_needed = set(always_needed)
        self.excluder = excluder

    def run(self, fact_sets: Iterable[FactSet]) -> AnalysisResult:
        analyzed, test_files = self._drop_tests(list(fact_sets))

        graphs = aggregate(analyzed)
        resolver = InterfaceResolver(graphs.interfaces, self.oracle)
        resolver.resolve()

        declarations = Classifier(analyzed, graphs, self.settings).classify()

        imports = ImportDependencyResolver(
            analyzed, self.oracle, self.always_needed, graphs.inheritance
        )
        dependent = imports.cross_file_dependent_modules()
        declarations.extend(imports.unused_imports())

        report = Report.from_declarations(declarations, self.options, len(test_files))
        logger.info(
            "Analyzed %d files: %d unused, %d excluded",
            len(analyzed),
            len(report.unused),
            report.excluded.total,
        )
        logger.debug("Queried interface data for %d names", len(self.oracle.cached_names))
        return AnalysisResult(
            graphs=graphs,
            declarations=declarations,
            report=report,
            unresolved_interfaces=set(resolver.unresolved),
            dependent_modules=dependent,
            test_files=test_files,
        )

    def _drop_tests(self, fact_sets: list[FactSet]) -> tuple[list[FactSet], list[str]]:
        if self.excluder is None:
            return fact_sets, []
        kept, tests = self.excluder.partition([Path(f.file) for f in fact_sets])
        keep = {str(p) for p in kept}
        return [f for f in fact_sets if f.file in keep], [str(p) for p in tests]
