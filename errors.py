# errors.py
# every failure the assistant can surface to a caller. none of them are
# retried; the transport maps them to an error payload.


class AssistantError(Exception):
    kind = "assistant_error"


class ProviderError(AssistantError):
    """llm call failed, timed out, or came back in a shape we can't read."""

    kind = "provider_error"


class UnknownTool(AssistantError):
    kind = "unknown_tool"

    def __init__(self, tool_name: str):
        super().__init__(f"unknown tool: {tool_name}")
        self.tool_name = tool_name


class ArgumentParseError(AssistantError):
    kind = "argument_parse_error"


class CatalogError(AssistantError):
    kind = "catalog_error"
