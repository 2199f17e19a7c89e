from services.content_analyzer import ContentAnalyzer
from services.prompt_formatter import PromptFormatter
from services.prompt_composer import PromptComposer
from services.response_parser import ResponseParser
from services.chunked_orchestrator import ChunkedOrchestrator
from services.scoring import ScoringEngine
from services.leaderboard import LeaderboardRanker

__all__ = [
    'ContentAnalyzer',
    'PromptFormatter',
    'PromptComposer',
    'ResponseParser',
    'ChunkedOrchestrator',
    'ScoringEngine',
    'LeaderboardRanker'
]
