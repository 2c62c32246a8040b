"""Column mapping engine: field dictionary, header matcher, layout detection."""
