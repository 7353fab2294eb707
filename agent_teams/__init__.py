"""Phase orchestration for teams of reasoning agents."""

__version__ = "0.1.0"
