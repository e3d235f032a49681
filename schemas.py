# schemas.py
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# http payloads
# ---------------------------------------------------------------------------

class ChatRequest(BaseModel):
    # the original form posts whatever is in the textarea, including nothing
    message: Optional[str] = ""

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, v):
        # same as String(message ?? ""): null is empty, anything else becomes text
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class ChatResponse(BaseModel):
    answer: str


# ---------------------------------------------------------------------------
# catalog rows (what the tools hand back to the model)
# ---------------------------------------------------------------------------

class ProductRead(BaseModel):
    id: int
    name: str
    price: Decimal = Field(ge=0)

    model_config = ConfigDict(from_attributes=True)


class ProductWithIntroRead(ProductRead):
    intro: Optional[str] = None


# ---------------------------------------------------------------------------
# tool arguments, one model per tool (even the empty ones)
# ---------------------------------------------------------------------------

class ToolArgs(BaseModel):
    # models sometimes add stray keys; they are not worth failing a request over
    model_config = ConfigDict(extra="ignore")


class SearchProductsArgs(ToolArgs):
    query: str = Field(description="搜索关键词，比如 iphone")


class NoArgs(ToolArgs):
    pass
