"""Package layering policy core: registry, path classifier, policies and evaluator."""

from .evaluator import FileScope, LayeringEvaluator
from .model import ImportEdge, ImportKind, ImportStatement, Project, Violation
from .paths import classify_import, is_relative_import, resolve_relative_target, short_name
from .policy import WILDCARD, LayeringPolicy, PolicySet, parse_policies
from .registry import PackageRegistry

__all__ = [
    "WILDCARD",
    "FileScope",
    "ImportEdge",
    "ImportKind",
    "ImportStatement",
    "LayeringEvaluator",
    "LayeringPolicy",
    "PackageRegistry",
    "PolicySet",
    "Project",
    "Violation",
    "classify_import",
    "is_relative_import",
    "parse_policies",
    "resolve_relative_target",
    "short_name",
]
