from importlib.metadata import version

from restcheck.core._types import Archetype, Outcome, Severity
from restcheck.core.capture import CaptureError, ingest, load_capture
from restcheck.core.checker import check
from restcheck.core.config import BUILTIN_PROFILES, ConfigError, RestcheckConfig, load_config
from restcheck.core.evaluator import Evaluator, evaluate
from restcheck.core.finding import Finding
from restcheck.core.headers import Headers
from restcheck.core.registry import (
    ConfigurationError,
    DuplicateRuleError,
    RegistryFrozenError,
    RuleDefinitionError,
    RuleRegistry,
    create_default_registry,
)
from restcheck.core.report import Report, RuleCounts, aggregate
from restcheck.core.rule import Rule
from restcheck.core.sample import IngestionError, Sample

__version__ = version("restcheck")


__all__ = [
    "BUILTIN_PROFILES",
    "Archetype",
    "CaptureError",
    "ConfigError",
    "ConfigurationError",
    "DuplicateRuleError",
    "Evaluator",
    "Finding",
    "Headers",
    "IngestionError",
    "Outcome",
    "RegistryFrozenError",
    "Report",
    "RestcheckConfig",
    "Rule",
    "RuleCounts",
    "RuleDefinitionError",
    "RuleRegistry",
    "Sample",
    "Severity",
    "__version__",
    "aggregate",
    "check",
    "create_default_registry",
    "evaluate",
    "ingest",
    "load_capture",
    "load_config",
]
