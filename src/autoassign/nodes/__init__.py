"""LangGraph nodes for the assignment workflow."""
