"""Reference graph and similarity-based reference suggestions."""

from semlink.graph.references import ReferenceGraph, ReferenceStats
from semlink.graph.suggester import ReferenceSuggester, SuggestedReference

__all__ = ["ReferenceGraph", "ReferenceStats", "ReferenceSuggester", "SuggestedReference"]
