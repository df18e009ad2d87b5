"""
SUIDRA — Form/Registry Service.

Materializes the registry's form ids into Form records and performs the
form lifecycle writes (create, list/delist/relist, add question, vote)
through the contract binding.

Reads are point reads composed into snapshots: two forms returned by the
same call may reflect slightly different ledger states. After a successful
write the affected form is re-fetched, never patched locally.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from suidra.analytics import validate_add_question, validate_create_form
from suidra.contract import FormsContract
from suidra.decoder import decode_form, decode_registry
from suidra.events import FormDeleted, FormEvent, FormEventStream
from suidra.exceptions import DecodeError, InvalidArgument, NetworkError, NotFound
from suidra.gateway.base import Subscription
from suidra.models import Form, FormRegistry, Question, ReadResult, RegistryStats, TransactionResult

logger = logging.getLogger("suidra.forms")


class FormRegistryService:
    """Read-through view of the forms registry plus lifecycle writes.

    Every public method returns a value or a result envelope; no ledger or
    decode exception crosses this class.

    Usage:
        service = FormRegistryService(FormsContract(gateway, package_id, registry_id))
        result = await service.create_form("Lunch", "Where do we eat?")
        form = await service.get_form(result.created_form_id)
    """

    def __init__(self, contract: FormsContract) -> None:
        self.contract = contract
        self.gateway = contract.gateway
        self._cache: dict[str, Form] = {}

    # ─── Writes ──────────────────────────────────────────────────────

    async def create_form(self, title: str, description: str) -> TransactionResult:
        """Create a form owned by the sender.

        On success ``created_form_id`` is taken from the transaction's
        object changes.
        """
        validation = validate_create_form(title, description)
        if not validation.is_valid:
            return _rejected(validation.errors)

        result = await self.contract.execute(self.contract.build_create_form(title, description))
        if not result.success:
            return result

        created = result.created_object_ids(f"::{self.contract.module}::Form")
        if created:
            result.created_form_id = created[0]
            await self.refresh_form(created[0])
        else:
            logger.warning("Form created in %s but no Form object in changes", result.transaction_id)
        return result

    async def transfer_form_to_creator(self, form_id: str) -> TransactionResult:
        return await self._write(form_id, self.contract.build_transfer_form_to_creator)

    async def add_question(
        self, form_id: str, title: str, description: str, options: list[str]
    ) -> TransactionResult:
        validation = validate_add_question(title, description, options)
        if not validation.is_valid:
            return _rejected(validation.errors)
        return await self._write(
            form_id, lambda fid: self.contract.build_add_question(fid, title, description, options)
        )

    async def list_form(self, form_id: str) -> TransactionResult:
        return await self._write(form_id, self.contract.build_list_form)

    async def delist_form(self, form_id: str) -> TransactionResult:
        return await self._write(form_id, self.contract.build_delist_form)

    async def relist_form(self, form_id: str) -> TransactionResult:
        return await self._write(form_id, self.contract.build_relist_form)

    async def vote_on_question(
        self, form_id: str, question_index: int, option_index: int
    ) -> TransactionResult:
        """Vote by question position; the contract wants the question id.

        Double votes are rejected by the ledger, not here.
        """
        read = await self.read_form(form_id)
        if not read.ok:
            return TransactionResult.failed(f"Could not load form {form_id}: {read.error}")
        form = read.value
        if form is None:
            return TransactionResult.failed(str(NotFound(form_id)))
        if not 0 <= question_index < len(form.questions):
            return TransactionResult.failed(
                str(NotFound(form_id, f"no question at index {question_index}"))
            )

        question_id = form.questions[question_index].id
        return await self._write(
            form_id, lambda fid: self.contract.build_vote_question(fid, question_id, option_index)
        )

    # ─── Single Form Reads ───────────────────────────────────────────

    async def read_form(self, form_id: str) -> ReadResult[Form]:
        """Fetch and decode one form, telling "missing" apart from "failed"."""
        try:
            obj = await self.gateway.get_object(form_id)
            form = decode_form(obj, self.contract.form_type)
        except NotFound:
            self._cache.pop(form_id, None)
            return ReadResult()
        except DecodeError as e:
            logger.warning("Form %s has an unexpected shape: %s", form_id, e)
            return ReadResult(error=e)
        except NetworkError as e:
            logger.warning("Failed to fetch form %s: %s", form_id, e)
            return ReadResult(error=e)
        except Exception as e:
            logger.exception("Unexpected error reading form %s", form_id)
            return ReadResult(error=e)

        self._cache[form_id] = form
        return ReadResult(value=form)

    async def get_form(self, form_id: str) -> Optional[Form]:
        return (await self.read_form(form_id)).value

    def cached_form(self, form_id: str) -> Optional[Form]:
        """Last fetched snapshot, without touching the ledger."""
        return self._cache.get(form_id)

    def invalidate(self, form_id: str) -> None:
        self._cache.pop(form_id, None)

    async def refresh_form(self, form_id: str) -> Optional[Form]:
        self.invalidate(form_id)
        return await self.get_form(form_id)

    async def apply_event(self, event: FormEvent) -> None:
        """Bring the cached view in line with a ledger event."""
        form_id = event.target_form_id
        if isinstance(event, FormDeleted):
            self.invalidate(form_id)
            logger.info("Form %s deleted on ledger", form_id)
            return
        await self.refresh_form(form_id)

    # ─── Registry Reads ──────────────────────────────────────────────

    async def read_registry(self) -> ReadResult[FormRegistry]:
        registry_id = self.contract.registry_id
        try:
            obj = await self.gateway.get_object(registry_id)
            return ReadResult(value=decode_registry(obj, self.contract.registry_type))
        except NotFound:
            logger.warning("Registry %s not found", registry_id)
            return ReadResult()
        except (DecodeError, NetworkError) as e:
            logger.warning("Failed to read registry %s: %s", registry_id, e)
            return ReadResult(error=e)
        except Exception as e:
            logger.exception("Unexpected error reading registry %s", registry_id)
            return ReadResult(error=e)

    async def get_registry(self) -> Optional[FormRegistry]:
        return (await self.read_registry()).value

    async def get_all_form_ids(self) -> list[str]:
        registry = await self.get_registry()
        return list(registry.form_ids) if registry else []

    async def read_all_forms(self) -> ReadResult[list[Form]]:
        """Fetch every registered form concurrently, in registry order.

        A failed or missing form is dropped without affecting the others;
        only a failed registry read fails the whole call.
        """
        registry = await self.read_registry()
        if not registry.ok:
            return ReadResult(error=registry.error)
        if registry.value is None or not registry.value.form_ids:
            return ReadResult(value=[])

        results = await asyncio.gather(
            *(self.read_form(form_id) for form_id in registry.value.form_ids),
            return_exceptions=True,
        )
        forms = []
        for form_id, result in zip(registry.value.form_ids, results):
            if isinstance(result, BaseException):
                logger.warning("Fetch of form %s crashed: %s", form_id, result)
                continue
            if result.value is not None:
                forms.append(result.value)
        return ReadResult(value=forms)

    async def get_all_forms(self) -> list[Form]:
        return (await self.read_all_forms()).value or []

    async def get_active_forms(self) -> list[Form]:
        return [form for form in await self.get_all_forms() if form.is_active]

    async def get_inactive_forms(self) -> list[Form]:
        return [form for form in await self.get_all_forms() if not form.is_active]

    async def get_forms_by_author(self, author: str) -> list[Form]:
        return [form for form in await self.get_all_forms() if form.author == author]

    async def get_current_user_forms(self) -> list[Form]:
        address = self.contract.sender_address
        if not address:
            logger.warning("No signer address available for current user forms")
            return []
        return await self.get_forms_by_author(address)

    async def get_registry_stats(self) -> RegistryStats:
        forms = await self.get_all_forms()
        active = sum(1 for form in forms if form.is_active)
        return RegistryStats(
            total_forms=len(forms),
            active_forms=active,
            inactive_forms=len(forms) - active,
            total_questions=sum(form.question_count for form in forms),
        )

    async def search_forms(self, term: str) -> list[Form]:
        """Case-insensitive substring match on title and description."""
        needle = term.lower()
        return [
            form
            for form in await self.get_all_forms()
            if needle in form.title.lower() or needle in form.description.lower()
        ]

    # ─── Results ─────────────────────────────────────────────────────

    async def has_user_voted(
        self, form_id: str, question_index: int, address: Optional[str] = None
    ) -> bool:
        """Advisory check against the latest fetch; the ledger has the final say."""
        question = await self._question(form_id, question_index)
        voter = address or self.contract.sender_address
        if question is None or not voter:
            return False
        return question.has_voted(voter)

    async def get_question_results(
        self, form_id: str, question_index: int
    ) -> Optional[dict[str, Any]]:
        question = await self._question(form_id, question_index)
        if question is None:
            return None
        return {
            "options": list(question.options),
            "votes": list(question.votes),
            "total_votes": question.total_votes,
        }

    async def get_form_results(self, form_id: str) -> Optional[dict[str, Any]]:
        form = await self.get_form(form_id)
        if form is None:
            return None
        return {
            "form_id": form.id,
            "questions": [
                {
                    "question_index": index,
                    "title": q.title,
                    "description": q.description,
                    "options": list(q.options),
                    "votes": list(q.votes),
                    "total_votes": q.total_votes,
                }
                for index, q in enumerate(form.questions)
            ],
        }

    # ─── Internal ────────────────────────────────────────────────────

    async def _question(self, form_id: str, question_index: int) -> Optional[Question]:
        form = await self.get_form(form_id)
        if form is None or not 0 <= question_index < len(form.questions):
            return None
        return form.questions[question_index]

    async def _write(self, form_id: str, build) -> TransactionResult:
        try:
            transaction = build(form_id)
        except InvalidArgument as e:
            return _rejected(e.errors)

        result = await self.contract.execute(transaction)
        if result.success:
            await self.refresh_form(form_id)
        return result


class FormSynchronizer:
    """Keeps a FormRegistryService in step with the live event feed."""

    def __init__(self, service: FormRegistryService, stream: FormEventStream) -> None:
        self.service = service
        self.stream = stream
        self._subscription: Optional[Subscription] = None

    @property
    def running(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self, **kwargs: Any) -> Subscription:
        """Subscribe to the feed, replacing a subscription that has died."""
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.stream.subscribe(self.service.apply_event, **kwargs)
        return self._subscription

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None


def _rejected(errors: list[str]) -> TransactionResult:
    return TransactionResult.failed("; ".join(errors), errors=errors)
