"""Source connectors, format decoders and content extraction."""
