"""
SUIDRA — Transaction Descriptions.

A ``Transaction`` is an ordered list of Move calls with typed arguments.
It is only a description: building the BCS bytes and signing them is the
job of the application's ``Signer``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Pure:
    """A pure (non-object) value with its Move type, e.g. ``u64``."""

    value: Any
    type: str

    def to_dict(self) -> dict:
        return {"kind": "pure", "type": self.type, "value": self.value}


@dataclass(frozen=True)
class ObjectArg:
    """Reference to a ledger object by id."""

    object_id: str
    mutable: bool = True

    def to_dict(self) -> dict:
        return {"kind": "object", "objectId": self.object_id, "mutable": self.mutable}


@dataclass(frozen=True)
class ResultArg:
    """Output of an earlier call in the same transaction."""

    index: int

    def to_dict(self) -> dict:
        return {"kind": "result", "index": self.index}


Argument = Union[Pure, ObjectArg, ResultArg]


@dataclass(frozen=True)
class MoveCall:
    target: str
    arguments: tuple[Argument, ...] = ()

    @property
    def function(self) -> str:
        return self.target.rsplit("::", 1)[-1]

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "arguments": [arg.to_dict() for arg in self.arguments],
        }


@dataclass
class Transaction:
    calls: list[MoveCall] = field(default_factory=list)
    gas_budget: int | None = None

    def move_call(self, target: str, *arguments: Argument) -> ResultArg:
        """Append a call and return a handle to its result."""
        self.calls.append(MoveCall(target=target, arguments=tuple(arguments)))
        return ResultArg(len(self.calls) - 1)

    @property
    def functions(self) -> list[str]:
        return [call.function for call in self.calls]

    def to_dict(self) -> dict:
        return {
            "calls": [call.to_dict() for call in self.calls],
            "gasBudget": self.gas_budget,
        }


def string(value: str) -> Pure:
    return Pure(value, "string")


def string_vector(values: list[str]) -> Pure:
    return Pure(list(values), "vector<string>")


def object_id(value: str) -> Pure:
    return Pure(value, "ID")


def u64(value: int) -> Pure:
    return Pure(int(value), "u64")
