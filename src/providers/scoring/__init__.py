"""Scoring oracle providers.

Two concrete implementations of IScoringProvider
(src/interfaces/scoring_provider.py):
    - OpenAIScoringProvider : chat model asked for the eleven-field JSON
    - HTTPScoringProvider   : separately deployed scoring endpoint

main.py picks the HTTP provider when SCORING_ENDPOINT_URL is set and the
LLM provider otherwise.
"""

from src.providers.scoring.http_provider import HTTPScoringProvider
from src.providers.scoring.openai_provider import OpenAIScoringProvider

__all__ = ["HTTPScoringProvider", "OpenAIScoringProvider"]
