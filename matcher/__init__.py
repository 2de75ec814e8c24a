"""Stream matchers for stdio-relay.

- token: TokenMatcher, MatchKind, MatchState (outbound suspend token)
- delimiter: DelimiterExtractor, ExtractState (inbound start/end markers)
- resume: ResumeMatcher variants LiteralToken and DelimiterPair
"""

from matcher.delimiter import DelimiterExtractor, ExtractState
from matcher.resume import DelimiterPair, LiteralToken, ResumeMatcher, build_resume_matcher
from matcher.token import MatchKind, MatchState, TokenMatcher

__all__ = [
    "DelimiterExtractor",
    "DelimiterPair",
    "ExtractState",
    "LiteralToken",
    "MatchKind",
    "MatchState",
    "ResumeMatcher",
    "TokenMatcher",
    "build_resume_matcher",
]
