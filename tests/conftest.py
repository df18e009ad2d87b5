"""Shared fixtures: an in-memory ledger that mimics the forms Move module."""

from __future__ import annotations

import copy
import itertools
from typing import Any, Optional

import pytest

from suidra import config
from suidra.contract import FormsContract
from suidra.events import FormEventStream
from suidra.exceptions import NetworkError
from suidra.forms import FormRegistryService
from suidra.gateway.base import EventPage, LedgerGateway
from suidra.models import LedgerObject
from suidra.transactions import ObjectArg, Pure, ResultArg, Transaction

PACKAGE_ID = "0x" + "a" * 64
REGISTRY_ID = "0x" + "b" * 64
AUTHOR = "0x" + "c" * 64
VOTER = "0x" + "d" * 64

# Abort codes of the Move module
E_EMPTY_TITLE = 1
E_NOT_AUTHOR = 2
E_FORM_NOT_ACTIVE = 3
E_FORM_ALREADY_ACTIVE = 4
E_INVALID_OPTION = 5
E_ALREADY_VOTED = 6


class _Abort(Exception):
    def __init__(self, function: str, code: int):
        self.function = function
        self.code = code


class FakeLedger(LedgerGateway):
    """Ledger double holding objects and events in dicts and lists."""

    def __init__(self, sender: Optional[str] = AUTHOR):
        self.package_id = PACKAGE_ID
        self.registry_id = REGISTRY_ID
        self.sender = sender
        self.objects: dict[str, LedgerObject] = {}
        self.events: list[dict[str, Any]] = []
        self.submitted: list[Transaction] = []
        self.gas_budgets: list[int] = []
        self.failing_reads: set[str] = set()
        self.submit_error: Optional[Exception] = None
        self.query_count = 0
        self.clock = 1_700_000_000_000
        self._ids = itertools.count(1)

        self.objects[REGISTRY_ID] = LedgerObject(
            object_id=REGISTRY_ID,
            exists=True,
            type_tag=f"{PACKAGE_ID}::form::FormRegistry",
            fields={"id": {"id": REGISTRY_ID}, "forms": [], "counter": "0"},
        )

    # ─── Test Helpers ────────────────────────────────────────────────

    def new_id(self) -> str:
        return "0x%064x" % next(self._ids)

    def add_form(
        self,
        title: str = "Lunch",
        description: str = "Where do we eat?",
        *,
        author: str = AUTHOR,
        is_active: bool = False,
        form_id: Optional[str] = None,
    ) -> str:
        form_id = form_id or self.new_id()
        self.objects[form_id] = LedgerObject(
            object_id=form_id,
            exists=True,
            type_tag=f"{PACKAGE_ID}::form::Form",
            fields={
                "id": {"id": form_id},
                "title": title,
                "description": description,
                "author": author,
                "questions": [],
                "is_active": is_active,
            },
        )
        registry = self.objects[REGISTRY_ID].fields
        registry["forms"].append(form_id)
        registry["counter"] = str(len(registry["forms"]))
        return form_id

    def add_question(
        self,
        form_id: str,
        title: str = "Pizza or sushi?",
        description: str = "Pick one",
        options: Optional[list[str]] = None,
        votes: Optional[list[int]] = None,
        voters: tuple[str, ...] = (),
    ) -> str:
        options = options or ["Pizza", "Sushi"]
        question_id = self.new_id()
        self.objects[form_id].fields["questions"].append(
            {
                "type": f"{PACKAGE_ID}::form::Question",
                "fields": {
                    "id": question_id,
                    "title": title,
                    "description": description,
                    "options": list(options),
                    "votes": [str(v) for v in (votes or [0] * len(options))],
                    "addresses": list(voters),
                },
            }
        )
        return question_id

    def form_fields(self, form_id: str) -> dict[str, Any]:
        return self.objects[form_id].fields

    def emit(self, name: str, payload: dict[str, Any], digest: str = "seed") -> dict[str, Any]:
        self.clock += 1000
        raw = {
            "id": {"txDigest": digest, "eventSeq": str(len(self.events))},
            "packageId": PACKAGE_ID,
            "transactionModule": "form",
            "sender": self.sender,
            "type": f"{PACKAGE_ID}::form::{name}",
            "parsedJson": payload,
            "timestampMs": str(self.clock),
        }
        self.events.append(raw)
        return raw

    # ─── LedgerGateway ───────────────────────────────────────────────

    @property
    def sender_address(self) -> Optional[str]:
        return self.sender

    async def get_object(self, object_id: str) -> LedgerObject:
        if object_id in self.failing_reads:
            raise NetworkError(f"Network error: read of {object_id} failed")
        obj = self.objects.get(object_id)
        if obj is None:
            return LedgerObject(object_id=object_id, exists=False)
        return copy.deepcopy(obj)

    async def submit_transaction(self, transaction: Transaction, *, gas_budget: int) -> dict:
        self.submitted.append(transaction)
        self.gas_budgets.append(gas_budget)
        if self.submit_error is not None:
            raise self.submit_error

        digest = f"digest{len(self.submitted)}"
        snapshot = copy.deepcopy((self.objects, self.events))
        try:
            changes = self._run(transaction, digest)
        except _Abort as e:
            self.objects, self.events = snapshot
            error = (
                f"MoveAbort(MoveLocation {{ module: ModuleId {{ address: {PACKAGE_ID[2:]}, "
                f'name: Identifier("form") }}, function: 4, instruction: 12, '
                f'function_name: Some("{e.function}") }}, {e.code}) in command 0'
            )
            return {"digest": digest, "effects": {"status": {"status": "failure", "error": error}}}

        return {
            "digest": digest,
            "effects": {"status": {"status": "success"}},
            "objectChanges": changes,
        }

    async def query_events(
        self,
        event_types: list[str],
        *,
        limit: int = 100,
        descending: bool = True,
        cursor: Optional[dict[str, Any]] = None,
    ) -> EventPage:
        self.query_count += 1
        matching = [e for e in self.events if e["type"] in event_types]
        if descending:
            matching.reverse()
        if cursor is not None:
            ids = [e["id"] for e in matching]
            matching = matching[ids.index(cursor) + 1 :] if cursor in ids else matching
        page = matching[:limit]
        return EventPage(
            data=copy.deepcopy(page),
            next_cursor=page[-1]["id"] if page else cursor,
            has_next_page=len(matching) > limit,
        )

    # ─── Move Semantics ──────────────────────────────────────────────

    def _run(self, transaction: Transaction, digest: str) -> list[dict[str, Any]]:
        results: list[Any] = []
        changes: list[dict[str, Any]] = []
        for call in transaction.calls:
            function = call.function
            args = [self._resolve(arg, results) for arg in call.arguments]
            handler = getattr(self, f"_move_{function}")
            results.append(handler(function, digest, changes, *args))
        return changes

    @staticmethod
    def _resolve(arg: Any, results: list[Any]) -> Any:
        if isinstance(arg, Pure):
            return arg.value
        if isinstance(arg, ObjectArg):
            return arg.object_id
        if isinstance(arg, ResultArg):
            return results[arg.index]
        raise TypeError(arg)

    def _form(self, function: str, form_id: str) -> dict[str, Any]:
        obj = self.objects.get(form_id)
        if obj is None:
            raise _Abort(function, 0)
        return obj.fields

    def _move_create_form(self, fn, digest, changes, title, description, registry_id):
        if not title:
            raise _Abort(fn, E_EMPTY_TITLE)
        form_id = self.add_form(title, description, author=self.sender)
        changes.append(
            {
                "type": "created",
                "objectType": f"{PACKAGE_ID}::form::Form",
                "objectId": form_id,
                "sender": self.sender,
            }
        )
        changes.append(
            {
                "type": "mutated",
                "objectType": f"{PACKAGE_ID}::form::FormRegistry",
                "objectId": registry_id,
            }
        )
        return form_id

    def _move_transfer_form_to_creator(self, fn, digest, changes, form_id):
        return None

    def _move_add_question(self, fn, digest, changes, form_id, title, description, options):
        form = self._form(fn, form_id)
        if form["author"] != self.sender:
            raise _Abort(fn, E_NOT_AUTHOR)
        if not title:
            raise _Abort(fn, E_EMPTY_TITLE)
        self.add_question(form_id, title, description, options)

    def _move_list_form(self, fn, digest, changes, form_id):
        form = self._form(fn, form_id)
        if form["author"] != self.sender:
            raise _Abort(fn, E_NOT_AUTHOR)
        if form["is_active"]:
            raise _Abort(fn, E_FORM_ALREADY_ACTIVE)
        form["is_active"] = True
        self.emit("FormListed", {"id": form_id, "author": form["author"], "timestamp": str(self.clock)}, digest)

    _move_relist_form = _move_list_form

    def _move_delist_form(self, fn, digest, changes, form_id):
        form = self._form(fn, form_id)
        if form["author"] != self.sender:
            raise _Abort(fn, E_NOT_AUTHOR)
        if not form["is_active"]:
            raise _Abort(fn, E_FORM_NOT_ACTIVE)
        form["is_active"] = False
        self.emit("FormDelisted", {"form_id": form_id, "author": form["author"], "timestamp": str(self.clock)}, digest)

    def _move_vote_question(self, fn, digest, changes, form_id, question_id, option_index):
        form = self._form(fn, form_id)
        if not form["is_active"]:
            raise _Abort(fn, E_FORM_NOT_ACTIVE)
        question = next(q["fields"] for q in form["questions"] if q["fields"]["id"] == question_id)
        if option_index >= len(question["options"]):
            raise _Abort(fn, E_INVALID_OPTION)
        if self.sender in question["addresses"]:
            raise _Abort(fn, E_ALREADY_VOTED)
        question["votes"][option_index] = str(int(question["votes"][option_index]) + 1)
        question["addresses"].append(self.sender)
        self.emit(
            "UserVoted",
            {"id": form_id, "author": form["author"], "user": self.sender, "timestamp": str(self.clock)},
            digest,
        )


@pytest.fixture(autouse=True)
def reset_suidra_config():
    """Re-read settings from the environment around every test."""
    config.reload()
    yield
    config.reload()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def contract(ledger):
    return FormsContract(ledger, PACKAGE_ID, REGISTRY_ID)


@pytest.fixture
def service(contract):
    return FormRegistryService(contract)


@pytest.fixture
def stream(ledger):
    return FormEventStream(ledger, PACKAGE_ID)
