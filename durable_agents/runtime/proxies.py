"""Wrappers that route tool methods and chat models through the CallRouter.

Tools are plain objects whose methods are marked with ``@tool``. Wrapping
such an object in a DurableToolProxy, or a ChatModel in a DurableChatModel,
gives an object with the same interface whose calls are recorded and
executed by the run workflow. The wrapped object itself is unchanged.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import create_model

from durable_agents.contracts.chat import ChatRequest, ChatResponse, ToolSpecification
from durable_agents.contracts.events import AgentEventType
from durable_agents.llm.base import ChatModel
from durable_agents.runtime.router import CallRouter, RoutedCall

logger = logging.getLogger(__name__)

_TOOL_MARKER = "__durable_tool__"

MODEL_OPERATION = "chat"


def tool(
    func: Optional[Callable[..., Any]] = None,
    *,
    description: Optional[str] = None,
) -> Any:
    """Mark a method as a tool. The tool name is the method name.

    Usable bare (``@tool``) or with options (``@tool(description=...)``).

    Args:
        func: The method being decorated.
        description: Tool description. Defaults to the docstring's first line.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        doc = inspect.getdoc(fn) or ""
        setattr(fn, _TOOL_MARKER, description or (doc.splitlines()[0] if doc else ""))
        return fn

    if func is not None:
        return decorator(func)
    return decorator


def is_tool(obj: Any) -> bool:
    return callable(obj) and hasattr(obj, _TOOL_MARKER)


def tool_specification(method: Callable[..., Any]) -> ToolSpecification:
    """Build the model-facing specification of a ``@tool`` method.

    The argument schema is derived from the method signature with pydantic.
    """
    fields: Dict[str, Any] = {}
    for param in inspect.signature(method).parameters.values():
        if param.name == "self" or param.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        annotation = Any if param.annotation is inspect.Parameter.empty else param.annotation
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (annotation, default)
    args_model = create_model(f"{method.__name__}_args", **fields)
    return ToolSpecification(
        name=method.__name__,
        description=getattr(method, _TOOL_MARKER),
        parameters=args_model.model_json_schema(),
    )


def describe_arguments(args: tuple, kwargs: Dict[str, Any]) -> str:
    """Render call arguments as text for workflow history."""
    parts = [repr(a) for a in args]
    parts.extend(f"{k}={v!r}" for k, v in kwargs.items())
    return f"[{', '.join(parts)}]"


class DurableToolProxy:
    """Tool object wrapper routing every ``@tool`` method through the router.

    Attribute access falls through to the wrapped object, so non-tool
    methods and attributes behave exactly as on the original.
    """

    def __init__(self, target: Any, router: CallRouter):
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_router", router)
        object.__setattr__(self, "_tool_names", _tool_method_names(target))

    @property
    def wrapped(self) -> Any:
        return self._target

    def tool_names(self) -> List[str]:
        return list(self._tool_names)

    def tool_specifications(self) -> List[ToolSpecification]:
        return [tool_specification(getattr(self._target, n)) for n in self._tool_names]

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._target, name)
        if name not in self._tool_names:
            return attr

        def routed(*args: Any, **kwargs: Any) -> Any:
            return self._router.route(
                RoutedCall(
                    event_type=AgentEventType.TOOL_CALL,
                    target=self,
                    operation=name,
                    args=args,
                    kwargs=kwargs,
                    payload=describe_arguments(args, kwargs),
                ),
                direct=lambda: attr(*args, **kwargs),
            )

        routed.__name__ = name
        routed.__doc__ = attr.__doc__
        return routed

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._target, name, value)

    def __repr__(self) -> str:
        return f"DurableToolProxy({self._target!r})"


def _tool_method_names(target: Any) -> List[str]:
    return [n for n, member in inspect.getmembers(type(target)) if is_tool(member)]


class DurableChatModel(ChatModel):
    """ChatModel wrapper routing every ``chat`` call through the router."""

    def __init__(self, delegate: ChatModel, router: CallRouter):
        self._delegate = delegate
        self._router = router

    @property
    def delegate(self) -> ChatModel:
        return self._delegate

    def chat(self, request: ChatRequest) -> ChatResponse:
        return self._router.route(
            RoutedCall(
                event_type=AgentEventType.MODEL_CALL,
                target=self,
                operation=MODEL_OPERATION,
                args=(request,),
                payload=request.prompt_text(),
                user_message=request.user_message,
                system_message=request.system_message,
            ),
            direct=lambda: self._delegate.chat(request),
        )
