"""Chat-completion client used for answer generation."""
