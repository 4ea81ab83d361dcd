"""
Toolbox - the fixed set of tools the agent loop may call

fetch_context reads evidence; the other tools only record proposals on the
turn's RuntimeContext. Nothing here writes to the store.
"""

import json
from typing import Any, Dict, List

from loguru import logger
from pydantic import ValidationError

from lumo.agents.runtime import RuntimeContext
from lumo.agents.tools.schemas import TOOL_ARGUMENTS, TOOL_DESCRIPTIONS
from lumo.agents.types import Scope
from lumo.utils.errors import ToolContextError, ToolInputError


def _format_validation_error(e: ValidationError) -> str:
    problems = []
    for err in e.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        problems.append(f"{location}: {err.get('msg')}")
    return "; ".join(problems)


def tool_names(scope: Scope) -> List[str]:
    names = ["fetch_context", "create_task", "add_note"]
    if scope.allows_reminders:
        names.append("set_reminder")
    return names


def tool_spec(name: str, scope: Scope) -> Dict[str, Any]:
    """OpenAI function-tool spec for one tool"""
    description_key = "fetch_context_global" if name == "fetch_context" and scope.is_global else name
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": TOOL_DESCRIPTIONS[description_key],
            "parameters": TOOL_ARGUMENTS[name].model_json_schema(by_alias=True),
        },
    }


class Toolbox:
    """
    Dispatches tool calls for one scope's agent loop.

    Args:
        gateway: RetrievalGateway used by fetch_context
    """

    def __init__(self, gateway):
        self.gateway = gateway
        self.handlers = {
            "fetch_context": self._fetch_context,
            "create_task": self._create_task,
            "add_note": self._add_note,
            "set_reminder": self._set_reminder,
        }

    def specs(self, scope: Scope) -> List[Dict[str, Any]]:
        return [tool_spec(name, scope) for name in tool_names(scope)]

    async def execute(self, name: str, args: Dict[str, Any], runtime: RuntimeContext) -> str:
        """
        Run one tool call and return its JSON result for the model.

        Raises:
            ToolInputError: unknown tool or arguments failing validation
            ToolContextError: called without a runtime context
        """
        if not isinstance(runtime, RuntimeContext):
            raise ToolContextError(f"Tool '{name}' called without a runtime context")
        if name not in tool_names(runtime.scope):
            raise ToolInputError(f"Unknown tool '{name}'. Available tools: {', '.join(tool_names(runtime.scope))}")

        args = dict(args or {})
        if not runtime.scope.is_global and name in ("create_task", "add_note"):
            if not args.get("projectId") and not args.get("project_id"):
                args["projectId"] = runtime.scope.project_id

        try:
            parsed = TOOL_ARGUMENTS[name].model_validate(args)
        except ValidationError as e:
            logger.warning(f"Tool '{name}' rejected arguments: {_format_validation_error(e)}")
            raise ToolInputError(f"Invalid arguments for {name}: {_format_validation_error(e)}") from e

        logger.info(f"🔧 Tool call [{runtime.scope.label}]: {name}")
        return await self.handlers[name](parsed, runtime)

    async def _fetch_context(self, args, runtime: RuntimeContext) -> str:
        query = args.query
        if not query:
            decision = runtime.input_decision
            query = (decision.rewritten if decision else None) or runtime.latest_prompt
        bundle = await self.gateway.retrieve(
            runtime.scope,
            query,
            k=args.k,
            date=args.date or runtime.time_hint,
            intent=runtime.intent,
        )
        runtime.record_retrieval(bundle)
        return json.dumps(bundle.to_wire())

    async def _create_task(self, task, runtime: RuntimeContext) -> str:
        runtime.proposed_tasks.append(task)
        return json.dumps({"proposed": task.to_wire()})

    async def _add_note(self, note, runtime: RuntimeContext) -> str:
        runtime.proposed_notes.append(note)
        return json.dumps({"proposed": note.to_wire()})

    async def _set_reminder(self, reminder, runtime: RuntimeContext) -> str:
        runtime.proposed_reminders.append(reminder)
        return json.dumps({"proposed": reminder.to_wire()})
