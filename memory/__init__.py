"""Memory package: enrichment plus vector-backed knowledge and example stores."""
