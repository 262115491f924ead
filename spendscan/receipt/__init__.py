"""Text-level receipt extraction: normalization, amounts, dates, merchants, categories."""
