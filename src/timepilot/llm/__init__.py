"""LLM clients and the classification oracle built on them."""
