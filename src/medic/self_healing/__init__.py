"""Self-healing module - diagnosis, retry policy and corrective regeneration.

Public API:
    SelfHealOrchestrator  - main entry point
    HealingSession        - per-session state returned by create_session
    ErrorClassifier       - PreviewError -> DiagnosticReport
    RetryStrategist       - retry decisions over attempt history
    ContextPreserver      - intent and known-good files across retries
    PromptSynthesizer     - corrective prompt text
    HttpRegenerator       - regeneration service client
"""

from medic.self_healing.classifier import ErrorClassifier
from medic.self_healing.config import SelfHealConfig, load_self_heal_config, save_self_heal_config
from medic.self_healing.context import ContextPreserver, PreservationContext
from medic.self_healing.models import (
    DiagnosticReport,
    ErrorCategory,
    FixAction,
    FixSuggestion,
    HealState,
    RegenerationResult,
    RetryDecision,
    Severity,
)
from medic.self_healing.orchestrator import HealingSession, SelfHealOrchestrator
from medic.self_healing.prompts import PromptSynthesizer
from medic.self_healing.regenerator import HttpRegenerator, IRegenerator, RegenerationRequest
from medic.self_healing.retry import RetryStrategist
from medic.self_healing.suggestions import create_fix_description, generate_suggestions

__all__ = [
    "ContextPreserver",
    "DiagnosticReport",
    "ErrorCategory",
    "ErrorClassifier",
    "FixAction",
    "FixSuggestion",
    "HealState",
    "HealingSession",
    "HttpRegenerator",
    "IRegenerator",
    "PreservationContext",
    "PromptSynthesizer",
    "RegenerationRequest",
    "RegenerationResult",
    "RetryDecision",
    "RetryStrategist",
    "SelfHealConfig",
    "SelfHealOrchestrator",
    "Severity",
    "create_fix_description",
    "generate_suggestions",
    "load_self_heal_config",
    "save_self_heal_config",
]
