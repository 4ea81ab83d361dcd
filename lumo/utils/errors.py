"""
Custom error classes for the application
"""


class AgentError(Exception):
    """Base exception for agent errors"""
    pass


class ToolContextError(AgentError):
    """A tool or graph node ran without its per-turn runtime context"""
    pass


class RetrievalError(AgentError):
    """Error while embedding a query or reading evidence from the store"""
    pass


class InputGuardrailTripwire(AgentError):
    """The input guardrail vetoed the request inside the agent loop"""

    def __init__(self, decision):
        super().__init__(getattr(decision, "message", None) or "Request blocked.")
        self.decision = decision


class OutputGuardrailTripwire(AgentError):
    """The output guardrail vetoed the draft reply"""

    def __init__(self, decision):
        super().__init__(getattr(decision, "message", None) or "Reply blocked by guardrail.")
        self.decision = decision


class ToolInputError(AgentError):
    """A tool call named an unknown tool or carried invalid arguments"""
    pass
