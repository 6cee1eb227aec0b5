"""Summary version chains and the LiteLLM summarizer."""

from semlink.summaries.chain import RegenerationResult, SummaryVersionChain
from semlink.summaries.locks import KeyedLock
from semlink.summaries.summarizer import (
    ResourceSummarizer,
    SummaryOptions,
    summarize_resource,
)

__all__ = [
    "KeyedLock",
    "RegenerationResult",
    "ResourceSummarizer",
    "SummaryOptions",
    "SummaryVersionChain",
    "summarize_resource",
]
