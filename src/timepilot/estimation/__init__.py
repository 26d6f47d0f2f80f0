"""
Duration estimation.

Components:
- similarity.py: token similarity between task titles
- stats.py: median, IQR filter, recency weights, weighted median
- estimator.py: oracle path, local fallback, surfacing policy
- messages.py: user-facing phrasing of minute counts
"""
