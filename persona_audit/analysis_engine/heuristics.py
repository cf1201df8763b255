"""
Built-in persona heuristics.

Deterministic text heuristics standing in for real analysis: file size,
function/class density, error-handling coverage, hardcoded secrets, dynamic
evaluation, plain-HTTP URLs, nested loops, synchronous reads, logging and
configuration signals, validation and TODO markers. Patterns cover Python and
JavaScript-style sources. Each persona's rules live in one tuple so they can
be tuned without touching the runner.
"""

from __future__ import annotations

import re
from typing import Callable

from persona_audit.analysis_engine.analyzers import (
    HeuristicRule,
    RecommendationTemplate,
    RuleBasedAnalyzer,
)
from persona_audit.analysis_engine.models import Priority, Severity
from persona_audit.core.exceptions import ConfigurationError

LARGE_FILE_CHARS = 30_000
MEDIUM_FILE_CHARS = 10_000
MANY_FUNCTIONS = 10
MANY_IMPORTS = 15
TODO_MARKERS_LIMIT = 5

_FUNCTION_RE = re.compile(r"^\s*(?:async\s+)?(?:def|function)\s+\w+", re.MULTILINE)
_ARROW_RE = re.compile(r"=>")
_CLASS_RE = re.compile(r"^\s*class\s+\w+", re.MULTILINE)
_ASYNC_RE = re.compile(r"\basync\s+(?:def|function)?\s*\w+")
_TRY_RE = re.compile(r"\btry\s*[:{]")
_IMPORT_RE = re.compile(r"^\s*(?:import\s|from\s+\S+\s+import\s)|\brequire\s*\(", re.MULTILINE)
_SECRET_RE = re.compile(
    r"""
    (?:api[_-]?key|secret|password|passwd|token)\s*[:=]\s*['"][^'"\s]{8,}['"]
    |\b\d{8,10}:[A-Za-z0-9_-]{30,}\b
    """,
    re.IGNORECASE | re.VERBOSE,
)
_EVAL_RE = re.compile(r"\b(?:eval|exec)\s*\(|new\s+Function\s*\(")
_SHELL_RE = re.compile(r"shell\s*=\s*True|child_process|os\.system\s*\(")
_HTTP_RE = re.compile(r"http://(?!localhost|127\.0\.0\.1)")
_SQL_CONCAT_RE = re.compile(r"""(?i)(?:select|insert|update|delete)\b[^;\n]*['"]\s*\+|f['"](?:select|insert|update|delete)\b""")
_VALIDATION_RE = re.compile(r"(?i)validat|sanitiz|escape|schema")
_AUTH_RE = re.compile(r"(?i)\bauth|permission|\brole\b")
_NESTED_LOOP_RE = re.compile(r"\bfor\b[^\n]*\n(?:[ \t]+[^\n]*\n){0,6}?[ \t]+for\b")
_SYNC_READ_RE = re.compile(r"readFileSync|\.read_text\(|open\([^)]*\)\.read\(")
_LOOP_JSON_RE = re.compile(r"\bfor\b[^\n]*\n[^\n]*(?:JSON\.parse|JSON\.stringify|json\.loads|json\.dumps)")
_CACHE_RE = re.compile(r"(?i)cache|memoiz|lru_cache")
_SLEEP_RE = re.compile(r"\btime\.sleep\(|setTimeout\(")
_LOGGING_RE = re.compile(r"\blogg(?:er|ing)\b|console\.(?:log|info|warn|error)|structlog")
_ENV_RE = re.compile(r"os\.getenv|os\.environ|process\.env")
_HEALTH_RE = re.compile(r"(?i)health|readiness|liveness|/status")
_METRIC_RE = re.compile(r"(?i)metric|trace|prometheus|statsd")
_TEST_RE = re.compile(r"\bassert\b|\bexpect\(|\bdescribe\(|def test_")
_BARE_EXCEPT_RE = re.compile(r"except\s*:|catch\s*\(\s*\w*\s*\)\s*\{\s*\}")
_TODO_RE = re.compile(r"\b(?:TODO|FIXME|XXX)\b")
_DATAFRAME_RE = re.compile(r"(?i)pandas|numpy|dataframe|\.csv\b|dataset")
_NULL_CHECK_RE = re.compile(r"(?i)is None|isnan|dropna|fillna|=== null|== null")
_RANDOM_RE = re.compile(r"\brandom\.|Math\.random\(")
_SEED_RE = re.compile(r"(?i)\bseed\b")


def _count(pattern: re.Pattern[str], content: str) -> int:
    return len(pattern.findall(content))


def _has(pattern: re.Pattern[str]) -> Callable[[str], bool]:
    return lambda content: pattern.search(content) is not None


def _lacks(pattern: re.Pattern[str]) -> Callable[[str], bool]:
    return lambda content: pattern.search(content) is None


def _function_count(content: str) -> int:
    return _count(_FUNCTION_RE, content) + _count(_ARROW_RE, content)


def _procedural_sprawl(content: str) -> bool:
    return _count(_CLASS_RE, content) == 0 and _function_count(content) > MANY_FUNCTIONS


def _weak_async_error_handling(content: str) -> bool:
    async_count = _count(_ASYNC_RE, content)
    return async_count > 0 and _count(_TRY_RE, content) < async_count * 0.8


def _large_without_patterns(content: str) -> bool:
    return len(content) > MEDIUM_FILE_CHARS and _count(_CLASS_RE, content) == 0


def _untested_logic(content: str) -> bool:
    return _function_count(content) > MANY_FUNCTIONS and _TEST_RE.search(content) is None


def _data_without_null_checks(content: str) -> bool:
    return _DATAFRAME_RE.search(content) is not None and _NULL_CHECK_RE.search(content) is None


def _unseeded_randomness(content: str) -> bool:
    return _RANDOM_RE.search(content) is not None and _SEED_RE.search(content) is None


def _uncached_sync_reads(content: str) -> bool:
    return _SYNC_READ_RE.search(content) is not None and _CACHE_RE.search(content) is None


def _no_logging_in_large_file(content: str) -> bool:
    return len(content) > MEDIUM_FILE_CHARS // 2 and _LOGGING_RE.search(content) is None


ARCHITECTURE_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="oversized_module",
        predicate=lambda c: len(c) > LARGE_FILE_CHARS,
        severity=Severity.HIGH,
        description="Module exceeds the single-responsibility size budget",
        suggested_action="Split the module along its responsibilities",
        penalty=15.0,
    ),
    HeuristicRule(
        name="procedural_sprawl",
        predicate=_procedural_sprawl,
        severity=Severity.MEDIUM,
        description="Many free functions with no class or module boundary grouping them",
        suggested_action="Group related functions behind a cohesive interface",
        penalty=10.0,
    ),
    HeuristicRule(
        name="hardcoded_dependencies",
        predicate=lambda c: _count(_IMPORT_RE, c) > MANY_IMPORTS,
        description="Large number of hardcoded imports",
        recommendation=RecommendationTemplate(
            priority=Priority.MEDIUM,
            description="Inject collaborators instead of importing them directly",
            expected_impact="Better testability and looser coupling",
            implementation_hint="Pass dependencies through constructors or factories",
        ),
    ),
    HeuristicRule(
        name="weak_async_error_handling",
        predicate=_weak_async_error_handling,
        severity=Severity.HIGH,
        description="Asynchronous code paths lack consistent error handling",
        suggested_action="Adopt one error-handling strategy for async entry points",
        penalty=12.0,
        recommendation=RecommendationTemplate(
            priority=Priority.HIGH,
            description="Unify asynchronous error handling",
            expected_impact="Failures surface instead of being lost",
        ),
        strength="Async entry points are guarded by error handling",
    ),
    HeuristicRule(
        name="no_structural_patterns",
        predicate=_large_without_patterns,
        description="Large module without structural patterns",
        recommendation=RecommendationTemplate(
            priority=Priority.LOW,
            description="Introduce factory, strategy or observer structure where behaviour varies",
        ),
    ),
)

SECURITY_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="hardcoded_secret",
        predicate=_has(_SECRET_RE),
        severity=Severity.CRITICAL,
        description="Credential or token literal embedded in source",
        suggested_action="Move credentials to environment or a secret store and rotate them",
        recommendation=RecommendationTemplate(
            priority=Priority.CRITICAL,
            description="Remove embedded credentials and rotate the exposed secrets",
            expected_impact="Closes credential leakage through source control",
            implementation_hint="Read secrets from the environment at startup",
        ),
        strength="No embedded credentials detected",
    ),
    HeuristicRule(
        name="dynamic_evaluation",
        predicate=_has(_EVAL_RE),
        severity=Severity.HIGH,
        description="Dynamic code evaluation (eval/exec/new Function)",
        suggested_action="Replace dynamic evaluation with explicit dispatch",
    ),
    HeuristicRule(
        name="shell_execution",
        predicate=_has(_SHELL_RE),
        severity=Severity.HIGH,
        description="Shell command execution reachable from code",
        suggested_action="Use argument lists without a shell and validate inputs",
    ),
    HeuristicRule(
        name="plain_http",
        predicate=_has(_HTTP_RE),
        severity=Severity.MEDIUM,
        description="Plain-HTTP endpoint referenced",
        suggested_action="Use HTTPS for every remote endpoint",
    ),
    HeuristicRule(
        name="sql_string_building",
        predicate=_has(_SQL_CONCAT_RE),
        severity=Severity.CRITICAL,
        description="SQL assembled by string concatenation or interpolation",
        suggested_action="Use parameterized queries",
    ),
    HeuristicRule(
        name="missing_input_validation",
        predicate=_lacks(_VALIDATION_RE),
        description="No input validation or sanitization detected",
        recommendation=RecommendationTemplate(
            priority=Priority.HIGH,
            description="Validate and sanitize all external input",
            expected_impact="Reduces injection and malformed-input risk",
        ),
        strength="Input validation present",
    ),
    HeuristicRule(
        name="missing_access_control",
        predicate=_lacks(_AUTH_RE),
        description="No authentication or authorization signals",
        recommendation=RecommendationTemplate(
            priority=Priority.MEDIUM,
            description="Apply least-privilege access control at entry points",
        ),
    ),
)

DATA_SCIENCE_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="unchecked_missing_values",
        predicate=_data_without_null_checks,
        severity=Severity.MEDIUM,
        description="Data handling without missing-value checks",
        suggested_action="Check for and handle missing values before use",
        recommendation=RecommendationTemplate(
            priority=Priority.MEDIUM,
            description="Add data-integrity checks at load boundaries",
            expected_impact="Prevents silent corruption of derived metrics",
        ),
    ),
    HeuristicRule(
        name="unseeded_randomness",
        predicate=_unseeded_randomness,
        severity=Severity.LOW,
        description="Randomness without an explicit seed",
        suggested_action="Seed random generators for reproducible results",
    ),
    HeuristicRule(
        name="json_in_loop",
        predicate=_has(_LOOP_JSON_RE),
        severity=Severity.LOW,
        description="Serialization inside a loop body",
        suggested_action="Serialize once outside the loop",
    ),
)

QUALITY_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="swallowed_errors",
        predicate=_has(_BARE_EXCEPT_RE),
        severity=Severity.HIGH,
        description="Errors swallowed by bare except or empty catch",
        suggested_action="Catch specific exceptions and log or propagate them",
    ),
    HeuristicRule(
        name="todo_backlog",
        predicate=lambda c: _count(_TODO_RE, c) > TODO_MARKERS_LIMIT,
        severity=Severity.LOW,
        description="Many TODO/FIXME markers left in source",
        suggested_action="Track open TODOs as issues and resolve them",
    ),
    HeuristicRule(
        name="untested_logic",
        predicate=_untested_logic,
        description="Substantial logic with no test signals",
        recommendation=RecommendationTemplate(
            priority=Priority.HIGH,
            description="Add unit tests for the module's public functions",
            expected_impact="Regressions are caught before release",
        ),
    ),
    HeuristicRule(
        name="missing_error_handling",
        predicate=_lacks(_TRY_RE),
        description="No explicit error handling",
        recommendation=RecommendationTemplate(
            priority=Priority.MEDIUM,
            description="Handle boundary errors explicitly",
        ),
        strength="Explicit error handling present",
    ),
)

DEVOPS_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="no_logging",
        predicate=_no_logging_in_large_file,
        severity=Severity.MEDIUM,
        description="Sizeable module without logging",
        suggested_action="Add structured logging around external calls and failures",
    ),
    HeuristicRule(
        name="no_environment_config",
        predicate=_lacks(_ENV_RE),
        description="Configuration not read from the environment",
        recommendation=RecommendationTemplate(
            priority=Priority.MEDIUM,
            description="Read deploy-time configuration from the environment",
            expected_impact="One artifact runs in every environment",
        ),
        strength="Configuration comes from the environment",
    ),
    HeuristicRule(
        name="no_health_signal",
        predicate=_lacks(_HEALTH_RE),
        description="No health or status signal",
        recommendation=RecommendationTemplate(
            priority=Priority.LOW,
            description="Expose a health or status check",
        ),
    ),
    HeuristicRule(
        name="no_telemetry",
        predicate=_lacks(_METRIC_RE),
        description="No metrics or tracing",
        recommendation=RecommendationTemplate(
            priority=Priority.LOW,
            description="Emit metrics for key operations",
        ),
    ),
)

PERFORMANCE_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="nested_loops",
        predicate=_has(_NESTED_LOOP_RE),
        severity=Severity.MEDIUM,
        description="Nested loops suggest quadratic work",
        suggested_action="Index data with a dict or set to avoid the inner scan",
        recommendation=RecommendationTemplate(
            priority=Priority.MEDIUM,
            description="Replace nested scans with indexed lookups",
            expected_impact="Lower latency on large inputs",
        ),
    ),
    HeuristicRule(
        name="uncached_sync_reads",
        predicate=_uncached_sync_reads,
        severity=Severity.MEDIUM,
        description="Synchronous file reads without caching",
        suggested_action="Read once and cache, or stream asynchronously",
    ),
    HeuristicRule(
        name="blocking_sleep",
        predicate=_has(_SLEEP_RE),
        severity=Severity.LOW,
        description="Blocking sleeps or timers in code path",
        suggested_action="Replace fixed sleeps with event-driven waits",
    ),
    HeuristicRule(
        name="serialization_in_loop",
        predicate=_has(_LOOP_JSON_RE),
        description="Serialization inside loops",
        recommendation=RecommendationTemplate(
            priority=Priority.LOW,
            description="Batch serialization outside hot loops",
        ),
    ),
)

BUILTIN_RULESETS: dict[str, tuple[HeuristicRule, ...]] = {
    "architecture": ARCHITECTURE_RULES,
    "security": SECURITY_RULES,
    "data_science": DATA_SCIENCE_RULES,
    "quality": QUALITY_RULES,
    "devops": DEVOPS_RULES,
    "performance": PERFORMANCE_RULES,
}

BUILTIN_PREFIX = "builtin:"


def builtin_analyzer(name: str) -> RuleBasedAnalyzer:
    """Return the built-in analyzer for name ('security' or 'builtin:security')."""
    key = name[len(BUILTIN_PREFIX):] if name.startswith(BUILTIN_PREFIX) else name
    rules = BUILTIN_RULESETS.get(key)
    if rules is None:
        raise ConfigurationError(
            f"Unknown analyzer '{name}'; expected one of "
            + ", ".join(BUILTIN_PREFIX + k for k in sorted(BUILTIN_RULESETS))
        )
    return RuleBasedAnalyzer(key, rules)
