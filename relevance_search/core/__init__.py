"""Core relevance search components."""
