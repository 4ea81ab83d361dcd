"""
Agent pipeline module.
Guardrails, retrieval, tools and the LangGraph conversation workflow.
"""
