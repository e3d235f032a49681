import json
import time

import pytest
from openai.types.chat import ChatCompletion
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from catalog import Catalog
from database import Base, build_session_factory
from models import Product, ProductDescription


@pytest.fixture
def engine():
    # one shared in-memory connection, usable from the TestClient threadpool
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def catalog(session_factory):
    return Catalog(session_factory)


@pytest.fixture
def add_products(session_factory):
    """insert (name, price, intro) tuples; intro=None skips the description row."""

    def _add(rows):
        db = session_factory()
        try:
            for name, price, intro in rows:
                p = Product(name=name, price=price)
                db.add(p)
                db.flush()
                if intro is not None:
                    db.add(ProductDescription(product_id=p.id, intro=intro))
            db.commit()
        finally:
            db.close()

    return _add


# ---------------------------------------------------------------------------
# scripted openai client
# ---------------------------------------------------------------------------

def make_completion(content=None, tool_calls=None):
    message = {"role": "assistant", "content": content}
    finish_reason = "stop"
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": call_id,
                "type": "function",
                "function": {"name": name, "arguments": arguments},
            }
            for call_id, name, arguments in tool_calls
        ]
        finish_reason = "tool_calls"

    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": int(time.time()),
            "model": "qwen-plus",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": finish_reason,
                    "message": message,
                }
            ],
        }
    )


class _Completions:
    def __init__(self, owner):
        self._owner = owner

    def create(self, **kwargs):
        self._owner.calls.append(kwargs)
        if not self._owner.responses:
            raise AssertionError("fake llm called more times than scripted")
        resp = self._owner.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class _Chat:
    def __init__(self, owner):
        self.completions = _Completions(owner)


class FakeLLM:
    """stands in for openai.OpenAI; replays scripted responses in order."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []
        self.chat = _Chat(self)
        self.closed = False

    def close(self):
        self.closed = True

    def tool_result_payload(self, call_index=1):
        """parsed content of the tool turn sent in the given call."""
        tool_turn = self.calls[call_index]["messages"][-1]
        return json.loads(tool_turn["content"])


@pytest.fixture
def fake_llm():
    return FakeLLM()
