# ABOUTME: Core data model and the cache directory reader.
# ABOUTME: BookRecord, HighlightRecord, and ProgressRecord flow from here into the sync engine.
