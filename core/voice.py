"""
Voice Navigation Module

Turns final speech transcripts into navigation results and dispatches
them to route or action handlers.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Callable, Union
from enum import Enum
from datetime import datetime
import logging

from core.intents import IntentResolver, get_resolver
from core.models import Intent, MatchResult

log = logging.getLogger(__name__)


class VoiceState(Enum):
    """State of the voice session."""
    IDLE = "idle"
    PROCESSING = "processing"


@dataclass(frozen=True)
class NavigationSuccess:
    """A transcript that resolved to an intent."""
    intent: Intent
    confidence: int
    transcript: str
    normalized_transcript: str
    route: Optional[str] = None
    action: Optional[str] = None
    via_fallback: bool = False
    success: bool = field(default=True, init=False)

    @classmethod
    def from_match(cls, match: MatchResult, transcript: str, via_fallback: bool = False) -> "NavigationSuccess":
        return cls(
            intent=match.intent,
            confidence=match.confidence,
            transcript=transcript,
            normalized_transcript=match.normalized_transcript,
            route=match.intent.route,
            action=match.intent.action,
            via_fallback=via_fallback,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'intent': self.intent.id,
            'route': self.route,
            'action': self.action,
            'confidence': self.confidence,
            'transcript': self.transcript,
        }


@dataclass(frozen=True)
class NavigationFailure:
    """A transcript that could not be turned into navigation."""
    error: str
    transcript: Optional[str] = None
    success: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': False,
            'error': self.error,
            'transcript': self.transcript,
        }


NavigationResult = Union[NavigationSuccess, NavigationFailure]

Handler = Callable[[NavigationSuccess], Dict[str, Any]]


class VoiceCommandRouter:
    """Routes resolved voice commands to appropriate handlers."""

    def __init__(self):
        self.action_handlers: Dict[str, Handler] = {}
        self.navigation_handler: Optional[Handler] = None
        self.default_handler: Optional[Handler] = None

    def register_action(self, action: str, handler: Handler):
        """Register a handler for an action such as ``theme_toggle``."""
        self.action_handlers[action] = handler

    def set_navigation_handler(self, handler: Handler):
        """Set the handler that performs route navigation."""
        self.navigation_handler = handler

    def set_default_handler(self, handler: Handler):
        """Set the handler for informational or unregistered intents."""
        self.default_handler = handler

    def route(self, result: NavigationSuccess) -> Dict[str, Any]:
        """Route a resolved command to its handler."""
        if result.action and result.action in self.action_handlers:
            return self.action_handlers[result.action](result)
        elif result.route and self.navigation_handler:
            return self.navigation_handler(result)
        elif self.default_handler:
            return self.default_handler(result)
        else:
            return {
                'status': 'unhandled',
                'message': f"No handler for intent: {result.intent.id}",
            }


class VoiceNavigator:
    """
    Voice navigation session.

    Resolves each final transcript with the fuzzy intent resolver and,
    when enabled, the keyword fallback.
    """

    def __init__(
        self,
        resolver: Optional[IntentResolver] = None,
        router: Optional[VoiceCommandRouter] = None,
        use_keyword_fallback: bool = False,
    ):
        self.resolver = resolver or get_resolver()
        self.router = router or VoiceCommandRouter()
        self.use_keyword_fallback = use_keyword_fallback
        self.state = VoiceState.IDLE
        self.history: List[NavigationResult] = []
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    def process_transcript(self, text: str) -> NavigationResult:
        """Resolve a final transcript into a navigation result."""
        if not text or not text.strip():
            result: NavigationResult = NavigationFailure(error="No speech detected")
            self.history.append(result)
            return result

        self.state = VoiceState.PROCESSING
        try:
            match = self.resolver.resolve_intent(text)
            via_fallback = False
            if match is None and self.use_keyword_fallback:
                match = self.resolver.match_keywords(text)
                via_fallback = match is not None
                if via_fallback:
                    log.info(f"Keyword fallback matched {match.intent.id} ({match.confidence}%)")

            if match is not None:
                result = NavigationSuccess.from_match(match, text, via_fallback=via_fallback)
            else:
                result = NavigationFailure(error="Could not match any intent", transcript=text)
        finally:
            self.state = VoiceState.IDLE

        self.history.append(result)
        return result

    def suggestions(self, text: str, limit: int = 3) -> List[MatchResult]:
        """Candidate intents to offer when a transcript does not resolve."""
        return self.resolver.rank_candidates(text, limit)

    def execute(self, result: NavigationResult) -> Dict[str, Any]:
        """Dispatch a navigation result."""
        if isinstance(result, NavigationFailure):
            return {'status': 'failed', 'message': result.error}
        return self.router.route(result)

    def handle(self, text: str) -> Dict[str, Any]:
        """Resolve and dispatch in one step."""
        return self.execute(self.process_transcript(text))

    def get_state(self) -> Dict[str, Any]:
        """Get current session state."""
        return {
            'session_id': self.session_id,
            'state': self.state.value,
            'command_count': len(self.history),
            'resolved_count': sum(1 for r in self.history if r.success),
        }


def get_voice_navigator(resolver: Optional[IntentResolver] = None, use_keyword_fallback: bool = False) -> VoiceNavigator:
    """Factory function for voice navigator."""
    return VoiceNavigator(resolver, use_keyword_fallback=use_keyword_fallback)
