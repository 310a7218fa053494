"""
incrementer.abi — message registry, selectors and the contract manifest.

Contract methods are tagged with decorators:

    @constructor             -> instantiates the contract
    @message(mutates=False)  -> read-only message
    @message(mutates=True)   -> message whose writes the host must persist

The decorators attach a `MessageSpec` to the function. Inputs and outputs are
derived from the function annotations; a parameter annotated `CallContext`
marks the message as needing the call environment and is not part of the ABI.

Selectors (ABI v1):

    canonical_signature := name "(" typeId [ "," typeId ]* ")"
    selector            := sha3_256("incrementer:abi:v1|" + canonical_signature)[:4]
"""

from __future__ import annotations

import hashlib
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, get_type_hints

from .runtime.context import CallContext
from .runtime.events_api import EVENT_NAME, INDEXED_FIELDS

ABI_DOMAIN = b"incrementer:abi:v1|"
MANIFEST_VERSION = 1

KIND_CONSTRUCTOR = "constructor"
KIND_MESSAGE = "message"

_ATTR = "__incrementer_abi__"

_TYPE_IDS: Dict[Any, str] = {
    int: "int",
    str: "str",
    bytes: "bytes",
    bool: "bool",
    Optional[int]: "optional<int>",
}


@dataclass(frozen=True)
class Param:
    name: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type}


@dataclass
class MessageSpec:
    name: str
    kind: str
    mutates: bool
    uses_env: bool = False
    inputs: Tuple[Param, ...] = ()
    outputs: Tuple[str, ...] = ()
    doc: str = field(default="", compare=False)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(p.type for p in self.inputs)})"

    @property
    def selector(self) -> str:
        return "0x" + selector(self.name, [p.type for p in self.inputs]).hex()

    @property
    def arity(self) -> int:
        return len(self.inputs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "selector": self.selector,
            "inputs": [p.to_dict() for p in self.inputs],
            "outputs": [{"type": t} for t in self.outputs],
        }
        if self.kind == KIND_MESSAGE:
            out["mutates"] = self.mutates
            out["usesCaller"] = self.uses_env
        return out


def selector(name: str, input_types: Sequence[str]) -> bytes:
    sig = f"{name}({','.join(input_types)})"
    return hashlib.sha3_256(ABI_DOMAIN + sig.encode("utf-8")).digest()[:4]


def _type_id(tp: Any, *, where: str) -> str:
    try:
        return _TYPE_IDS[tp]
    except (KeyError, TypeError):
        raise TypeError(f"{where}: unsupported ABI type {tp!r}") from None


def _build_spec(fn: Callable[..., Any], *, kind: str, mutates: bool) -> MessageSpec:
    hints = get_type_hints(fn)
    params = list(inspect.signature(fn).parameters.values())
    if params and params[0].name in ("self", "cls"):
        params = params[1:]

    uses_env = False
    inputs: List[Param] = []
    for p in params:
        if p.kind is inspect.Parameter.KEYWORD_ONLY:
            # host-side knobs, not part of the ABI
            continue
        tp = hints.get(p.name)
        if tp is CallContext:
            uses_env = True
            continue
        inputs.append(Param(p.name, _type_id(tp, where=f"{fn.__name__}.{p.name}")))

    outputs: Tuple[str, ...] = ()
    ret = hints.get("return", type(None))
    if kind == KIND_MESSAGE and ret is not type(None):
        outputs = (_type_id(ret, where=f"{fn.__name__}.return"),)

    return MessageSpec(
        name=fn.__name__,
        kind=kind,
        mutates=mutates,
        uses_env=uses_env,
        inputs=tuple(inputs),
        outputs=outputs,
        doc=inspect.getdoc(fn) or "",
    )


def _underlying(obj: Any) -> Any:
    return getattr(obj, "__func__", obj)


def constructor(obj: Any) -> Any:
    """Tag a classmethod as a contract constructor."""
    setattr(_underlying(obj), _ATTR, (KIND_CONSTRUCTOR, True))
    return obj


def message(*, mutates: bool) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Tag a method as an externally callable message."""

    def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
        setattr(fn, _ATTR, (KIND_MESSAGE, mutates))
        return fn

    return deco


def collect_messages(cls: Type[Any]) -> Dict[str, MessageSpec]:
    """
    Return every tagged constructor and message of `cls`, in definition order.

    Specs are built lazily (annotations may reference names defined after the
    decorators ran) and cached on the class.
    """
    cached = cls.__dict__.get("_abi_registry")
    if cached is not None:
        return cached

    registry: Dict[str, MessageSpec] = {}
    for klass in reversed(cls.__mro__):
        for name, value in vars(klass).items():
            fn = _underlying(value)
            tag = getattr(fn, _ATTR, None)
            if tag is None:
                continue
            kind, mutates = tag
            registry[name] = _build_spec(fn, kind=kind, mutates=mutates)

    setattr(cls, "_abi_registry", registry)
    return registry


def constructors(cls: Type[Any]) -> Dict[str, MessageSpec]:
    return {k: v for k, v in collect_messages(cls).items() if v.kind == KIND_CONSTRUCTOR}


def messages(cls: Type[Any]) -> Dict[str, MessageSpec]:
    return {k: v for k, v in collect_messages(cls).items() if v.kind == KIND_MESSAGE}


def build_manifest(cls: Type[Any], *, name: Optional[str] = None, version: Optional[str] = None) -> Dict[str, Any]:
    """Manifest dict for `cls`; the packaged manifest.json must equal this."""
    from .version import BASE_VERSION

    return {
        "name": name or cls.__name__,
        "version": version or BASE_VERSION,
        "manifestVersion": MANIFEST_VERSION,
        "abi": {
            "constructors": [s.to_dict() for s in constructors(cls).values()],
            "functions": [s.to_dict() for s in messages(cls).values()],
            "events": [
                {
                    "name": EVENT_NAME,
                    "inputs": [
                        {"name": INDEXED_FIELDS[0], "type": "bytes", "indexed": True},
                        {"name": INDEXED_FIELDS[1], "type": "result<int,str>", "indexed": True},
                    ],
                }
            ],
        },
    }


__all__ = [
    "ABI_DOMAIN",
    "MANIFEST_VERSION",
    "Param",
    "MessageSpec",
    "selector",
    "constructor",
    "message",
    "collect_messages",
    "constructors",
    "messages",
    "build_manifest",
]
