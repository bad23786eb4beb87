"""CSV intake pipeline: parse, resolve headers, classify, deduplicate."""
