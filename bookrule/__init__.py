"""bookrule — rule-driven extraction of book search results, details,
chapter lists and chapter text from JSON or HTML sources."""

__version__ = "0.1.0"
