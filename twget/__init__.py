"""twget: archive media posted by X/Twitter accounts."""

__version__ = "0.3.0"
