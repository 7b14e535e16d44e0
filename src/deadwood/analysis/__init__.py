"""Analysis modules for whole-program unused declaration detection."""

from deadwood.analysis.aggregator import GlobalGraphs, InterfaceGraph, aggregate
from deadwood.analysis.classifier import Classifier, ClassifierSettings
from deadwood.analysis.engine import AnalysisEngine, AnalysisResult
from deadwood.analysis.imports import (
    ImportDependencyResolver,
    ImportGraph,
    find_cross_file_dependent_modules,
    has_transitive_ancestor_in_module,
)
from deadwood.analysis.interfaces import InterfaceResolver
from deadwood.analysis.related import (
    RelatedCodeFinder,
    enum_case_deletions,
    parameter_deletions,
)
from deadwood.analysis.source import SourceText, declaration_span, mask_source

__all__ = [
    "AnalysisEngine",
    "AnalysisResult",
    "Classifier",
    "ClassifierSettings",
    "GlobalGraphs",
    "ImportDependencyResolver",
    "ImportGraph",
    "InterfaceGraph",
    "InterfaceResolver",
    "RelatedCodeFinder",
    "SourceText",
    "aggregate",
    "declaration_span",
    "enum_case_deletions",
    "find_cross_file_dependent_modules",
    "has_transitive_ancestor_in_module",
    "mask_source",
    "parameter_deletions",
]
