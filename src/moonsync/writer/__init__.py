# ABOUTME: Renderers for the generated vault files.
# ABOUTME: Book notes and the index note (markdown) plus the Bases view (base).
