from .base import ExecutionTool, QueryRequest

__all__ = ["ExecutionTool", "QueryRequest"]
