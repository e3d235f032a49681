# tools.py
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel

from schemas import NoArgs, SearchProductsArgs


@dataclass(frozen=True)
class ToolSpec:
    name: str
    # the description is the only thing the model reads to pick a tool,
    # so it has to separate "search" from "cheapest" from "most expensive"
    description: str
    parameters: dict[str, Any]
    args_model: type[BaseModel]

    def as_openai_tool(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


SEARCH_PRODUCTS_SPEC = ToolSpec(
    name="search_products",
    description="根据关键词在商品库中搜索商品，返回匹配列表",
    parameters={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "搜索关键词，比如 iphone",
            },
        },
        "required": ["query"],
    },
    args_model=SearchProductsArgs,
)

MOST_EXPENSIVE_PRODUCT_SPEC = ToolSpec(
    name="get_most_expensive_product",
    description="返回数据库中价格最高的商品，用于回答“哪个商品最贵/价格最高的是哪个”",
    parameters={"type": "object", "properties": {}},
    args_model=NoArgs,
)

CHEAPEST_PRODUCT_SPEC = ToolSpec(
    name="get_cheapest_product",
    description="返回数据库中价格最低的商品，用于回答“哪个商品最便宜/价格最低的是哪个”",
    parameters={"type": "object", "properties": {}},
    args_model=NoArgs,
)


# fixed for the lifetime of the process; order is the order sent to the model
TOOL_REGISTRY: tuple[ToolSpec, ...] = (
    SEARCH_PRODUCTS_SPEC,
    MOST_EXPENSIVE_PRODUCT_SPEC,
    CHEAPEST_PRODUCT_SPEC,
)

TOOLS_BY_NAME = MappingProxyType({spec.name: spec for spec in TOOL_REGISTRY})


def openai_tools() -> list[dict[str, Any]]:
    """registry in the chat-completions `tools=` format."""
    return [spec.as_openai_tool() for spec in TOOL_REGISTRY]
