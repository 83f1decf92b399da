# ABOUTME: Decoders for Moon+ Reader file formats.
# ABOUTME: Annotation (.an) and position (.po) sidecars plus the manual share-export text.
