# orchestrator.py
"""
two-round tool calling against an openai-compatible chat api.

round 1: the user message + the tool registry, tool_choice="auto". the model
either answers directly or picks a tool. only the FIRST tool call is honored,
anything after it is dropped (one lookup per request, no chaining).

dispatch: tool name -> catalog handler. arguments are parsed and validated
against the tool's pydantic model before the handler runs.

round 2: grounding system prompt + user message + the round-1 assistant turn
+ a tool turn with the serialized result, tagged with the same tool_call_id.
no tools are offered, so the model can only phrase the final answer.

the grounding rules live in the prompt. the output is not checked in code;
model text is not something we can validate structurally.
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from catalog import Catalog
from errors import (
    ArgumentParseError,
    AssistantError,
    ProviderError,
    UnknownTool,
)
from prompts import (
    GROUNDING_SYSTEM_PROMPT,
    NO_TOOL_FALLBACK_ANSWER,
    SERVER_ERROR_ANSWER,
    UNKNOWN_TOOL_ANSWER,
)
from tools import TOOLS_BY_NAME, ToolSpec, openai_tools


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolInvocation:
    tool_name: str
    raw_arguments: str | None
    call_id: str


@dataclass(frozen=True)
class AnswerResult:
    answer: str
    error: str | None = None
    tool_name: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_arguments(spec: ToolSpec, raw_arguments: str | None) -> BaseModel:
    """json text -> the tool's args model. blank/missing means `{}`."""
    if raw_arguments is None or not raw_arguments.strip():
        data: Any = {}
    else:
        try:
            data = json.loads(raw_arguments)
        except json.JSONDecodeError as e:
            raise ArgumentParseError(f"arguments for {spec.name} are not valid json: {e}") from e

    if not isinstance(data, dict):
        raise ArgumentParseError(f"arguments for {spec.name} must be a json object")

    try:
        return spec.args_model.model_validate(data)
    except ValidationError as e:
        raise ArgumentParseError(f"invalid arguments for {spec.name}: {e}") from e


def _json_default(value):
    if isinstance(value, Decimal):
        # 3999.00 -> 3999, so the model quotes the price the way a human would
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, BaseModel):
        return value.model_dump()
    raise TypeError(f"object of type {type(value).__name__} is not json serializable")


def serialize_tool_result(result) -> str:
    return json.dumps({"result": result}, ensure_ascii=False, default=_json_default)


class Orchestrator:
    def __init__(self, client: OpenAI, catalog: Catalog, model: str, timeout: float = 30.0):
        self._client = client
        self._catalog = catalog
        self._model = model
        self._timeout = timeout

        self._handlers = {
            "search_products": self._search_products,
            "get_most_expensive_product": self._get_most_expensive_product,
            "get_cheapest_product": self._get_cheapest_product,
        }
        if set(self._handlers) != set(TOOLS_BY_NAME):
            raise RuntimeError(
                f"tool handlers {sorted(self._handlers)} do not match registry {sorted(TOOLS_BY_NAME)}"
            )

    # ------------------------------------------------------------------
    # handlers
    # ------------------------------------------------------------------

    def _search_products(self, args):
        return self._catalog.search_products(args.query)

    def _get_most_expensive_product(self, args):
        return self._catalog.get_most_expensive_product()

    def _get_cheapest_product(self, args):
        return self._catalog.get_cheapest_product()

    # ------------------------------------------------------------------
    # llm plumbing
    # ------------------------------------------------------------------

    def _complete(self, messages: list[dict], **kwargs):
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                timeout=self._timeout,
                **kwargs,
            )
        except OpenAIError as e:
            raise ProviderError(f"llm request failed: {e}") from e

        choices = getattr(resp, "choices", None)
        if not choices or getattr(choices[0], "message", None) is None:
            raise ProviderError("llm response has no message")
        return choices[0].message

    @staticmethod
    def _first_invocation(message) -> ToolInvocation | None:
        tool_calls = getattr(message, "tool_calls", None) or []
        if not tool_calls:
            return None

        if len(tool_calls) > 1:
            logger.debug("model returned %d tool calls, only the first is used", len(tool_calls))

        tc = tool_calls[0]
        fn = getattr(tc, "function", None)
        if fn is None or not getattr(fn, "name", None) or not getattr(tc, "id", None):
            raise ProviderError("llm returned a malformed tool call")

        return ToolInvocation(tool_name=fn.name, raw_arguments=fn.arguments, call_id=tc.id)

    # ------------------------------------------------------------------
    # public api
    # ------------------------------------------------------------------

    def dispatch(self, invocation: ToolInvocation):
        """run one tool call against the catalog and return its raw result."""
        handler = self._handlers.get(invocation.tool_name)
        if handler is None:
            raise UnknownTool(invocation.tool_name)

        args = parse_arguments(TOOLS_BY_NAME[invocation.tool_name], invocation.raw_arguments)
        logger.info("tool %s args=%s", invocation.tool_name, args.model_dump())
        return handler(args)

    def answer(self, user_message: str) -> AnswerResult:
        message = "" if user_message is None else str(user_message)
        logger.info("answer message=%r", message)

        try:
            return self._answer(message)
        except UnknownTool as e:
            logger.warning("model picked unknown tool %r", e.tool_name)
            return AnswerResult(
                answer=UNKNOWN_TOOL_ANSWER.format(tool_name=e.tool_name),
                error=e.kind,
                tool_name=e.tool_name,
            )
        except AssistantError as e:
            logger.error("answer failed (%s): %s", e.kind, e)
            return AnswerResult(answer=SERVER_ERROR_ANSWER.format(detail=e), error=e.kind)

    def _answer(self, message: str) -> AnswerResult:
        user_turn = {"role": "user", "content": message}

        # 1) first round: let the model pick a tool (or not)
        first = self._complete([user_turn], tools=openai_tools(), tool_choice="auto")

        invocation = self._first_invocation(first)
        if invocation is None:
            # only a missing reply falls back; an empty string is passed through
            answer = first.content if first.content is not None else NO_TOOL_FALLBACK_ANSWER
            return AnswerResult(answer=answer)

        # 2) run the tool
        result = self.dispatch(invocation)

        # 3) second round: hand the result back, no tools this time
        assistant_turn = {
            "role": "assistant",
            "content": first.content or "",
            "tool_calls": [
                {
                    "id": invocation.call_id,
                    "type": "function",
                    "function": {
                        "name": invocation.tool_name,
                        "arguments": invocation.raw_arguments or "{}",
                    },
                }
            ],
        }
        tool_turn = {
            "role": "tool",
            "tool_call_id": invocation.call_id,
            "content": serialize_tool_result(result),
        }

        second = self._complete(
            [
                {"role": "system", "content": GROUNDING_SYSTEM_PROMPT},
                user_turn,
                assistant_turn,
                tool_turn,
            ]
        )
        return AnswerResult(answer=second.content or "", tool_name=invocation.tool_name)
