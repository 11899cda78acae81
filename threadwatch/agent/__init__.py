"""LLM-facing agents."""

from threadwatch.agent.summarizer import ThreadSummarizer, normalize_content

__all__ = ["ThreadSummarizer", "normalize_content"]
