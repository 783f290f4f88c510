"""Core response-orchestration logic."""

from .context import ConversationContext, ConversationContextStore, HistoryEntry, Role
from .fallback import FallbackOrchestrator, FallbackResult
from .gate import GateFactors, GateResult, ResponseGate
from .local import LocalResponder, ResponseCategory, classify
from .providers import ProviderError, ResponseProvider, build_providers

__all__ = [
    "ConversationContext",
    "ConversationContextStore",
    "FallbackOrchestrator",
    "FallbackResult",
    "GateFactors",
    "GateResult",
    "HistoryEntry",
    "LocalResponder",
    "ProviderError",
    "ResponseCategory",
    "ResponseGate",
    "ResponseProvider",
    "Role",
    "build_providers",
    "classify",
]
