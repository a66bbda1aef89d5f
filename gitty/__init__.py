"""gitty: AI-assisted GitHub repository creation over pluggable LLM providers."""

__version__ = "0.1.0"
