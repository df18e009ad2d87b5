"""
SUIDRA — Forms Contract Binding.

Declares the remote capabilities of the ``form`` Move module, encodes their
arguments, and normalizes ledger responses into ``TransactionResult``.
Nothing raised by the gateway escapes ``execute``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from suidra import config
from suidra.analytics import validate_add_question, validate_create_form
from suidra.error_handler import extract_abort_code
from suidra.exceptions import InvalidArgument, NetworkError, TransactionFailed
from suidra.gateway.base import LedgerGateway
from suidra.models import TransactionResult
from suidra.transactions import ObjectArg, Transaction, object_id, string, string_vector, u64

logger = logging.getLogger("suidra.contract")

# Function names matching the Move module
CREATE_FORM = "create_form"
TRANSFER_FORM_TO_CREATOR = "transfer_form_to_creator"
ADD_QUESTION = "add_question"
LIST_FORM = "list_form"
DELIST_FORM = "delist_form"
RELIST_FORM = "relist_form"
VOTE_QUESTION = "vote_question"

CAPABILITIES = (
    CREATE_FORM,
    TRANSFER_FORM_TO_CREATOR,
    ADD_QUESTION,
    LIST_FORM,
    DELIST_FORM,
    RELIST_FORM,
    VOTE_QUESTION,
)

# Struct and event names
FORM_STRUCT = "Form"
REGISTRY_STRUCT = "FormRegistry"


class FormsContract:
    """Transaction builder and executor for the forms Move module.

    Usage:
        contract = FormsContract(gateway, package_id, registry_id)
        tx = contract.build_list_form(form_id)
        result = await contract.execute(tx)
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        package_id: str,
        registry_id: str,
        *,
        module: str = "form",
        gas_budget: int = config.DEFAULT_GAS_BUDGET,
        max_gas_budget: int = config.MAX_GAS_BUDGET,
    ) -> None:
        if not package_id:
            raise ValueError("package_id is required")
        if not registry_id:
            raise ValueError("registry_id is required")

        self.gateway = gateway
        self.package_id = package_id
        self.registry_id = registry_id
        self.module = module
        self.max_gas_budget = max_gas_budget
        self.gas_budget = min(gas_budget, max_gas_budget)

    @classmethod
    def from_config(cls, gateway: LedgerGateway) -> FormsContract:
        return cls(
            gateway,
            config.PACKAGE_ID,
            config.REGISTRY_ID,
            module=config.MODULE_NAME,
            gas_budget=config.GAS_BUDGET,
            max_gas_budget=config.MAX_GAS_BUDGET,
        )

    # ─── Names ───────────────────────────────────────────────────────

    def target(self, function: str) -> str:
        return f"{self.package_id}::{self.module}::{function}"

    def struct_type(self, name: str) -> str:
        return f"{self.package_id}::{self.module}::{name}"

    @property
    def form_type(self) -> str:
        return self.struct_type(FORM_STRUCT)

    @property
    def registry_type(self) -> str:
        return self.struct_type(REGISTRY_STRUCT)

    # ─── Builders ────────────────────────────────────────────────────

    def build_create_form(self, title: str, description: str) -> Transaction:
        """Create a form and hand it to the sender in one transaction."""
        validation = validate_create_form(title, description)
        if not validation.is_valid:
            raise InvalidArgument(validation.errors)

        tx = Transaction()
        form = tx.move_call(
            self.target(CREATE_FORM),
            string(title),
            string(description),
            ObjectArg(self.registry_id, mutable=True),
        )
        tx.move_call(self.target(TRANSFER_FORM_TO_CREATOR), form)
        return tx

    def build_transfer_form_to_creator(self, form_id: str) -> Transaction:
        return self._single(TRANSFER_FORM_TO_CREATOR, form_id)

    def build_add_question(
        self, form_id: str, title: str, description: str, options: list[str]
    ) -> Transaction:
        _require_id(form_id, "form_id")
        validation = validate_add_question(title, description, options)
        if not validation.is_valid:
            raise InvalidArgument(validation.errors)

        tx = Transaction()
        tx.move_call(
            self.target(ADD_QUESTION),
            ObjectArg(form_id),
            string(title),
            string(description),
            string_vector(options),
        )
        return tx

    def build_list_form(self, form_id: str) -> Transaction:
        return self._single(LIST_FORM, form_id)

    def build_delist_form(self, form_id: str) -> Transaction:
        return self._single(DELIST_FORM, form_id)

    def build_relist_form(self, form_id: str) -> Transaction:
        return self._single(RELIST_FORM, form_id)

    def build_vote_question(self, form_id: str, question_id: str, option_index: int) -> Transaction:
        _require_id(form_id, "form_id")
        _require_id(question_id, "question_id")
        if isinstance(option_index, bool) or not isinstance(option_index, int) or option_index < 0:
            raise InvalidArgument([f"Option index must be an unsigned integer, got {option_index!r}"])

        tx = Transaction()
        tx.move_call(
            self.target(VOTE_QUESTION),
            ObjectArg(form_id),
            object_id(question_id),
            u64(option_index),
        )
        return tx

    # ─── Execution ───────────────────────────────────────────────────

    async def execute(
        self, transaction: Transaction, *, gas_budget: Optional[int] = None
    ) -> TransactionResult:
        """Submit a transaction and normalize the outcome."""
        budget = min(gas_budget or transaction.gas_budget or self.gas_budget, self.max_gas_budget)
        transaction.gas_budget = budget
        label = "+".join(transaction.functions)

        try:
            response = await self.gateway.submit_transaction(transaction, gas_budget=budget)
        except TransactionFailed as e:
            logger.warning("Transaction %s rejected: %s", label, e.reason)
            return TransactionResult.failed(
                e.reason, error_code=e.code if e.code is not None else extract_abort_code(e.reason)
            )
        except NetworkError as e:
            logger.warning("Transaction %s not submitted: %s", label, e)
            return TransactionResult.failed(str(e))
        except Exception as e:
            logger.exception("Transaction %s failed before reaching the ledger", label)
            return TransactionResult.failed(str(e) or type(e).__name__)

        return normalize_response(response, label)

    @property
    def sender_address(self) -> Optional[str]:
        return self.gateway.sender_address

    # ─── Internal ────────────────────────────────────────────────────

    def _single(self, function: str, form_id: str) -> Transaction:
        _require_id(form_id, "form_id")
        tx = Transaction()
        tx.move_call(self.target(function), ObjectArg(form_id))
        return tx


def normalize_response(response: dict[str, Any], label: str = "") -> TransactionResult:
    """Map a raw execution response to a ``TransactionResult``."""
    status = ((response.get("effects") or {}).get("status")) or {}
    if status.get("status") != "success":
        error = status.get("error") or "Transaction failed"
        logger.warning("Transaction %s failed on ledger: %s", label, error)
        return TransactionResult.failed(error, error_code=extract_abort_code(error), raw=response)

    digest = response.get("digest", "")
    logger.info("Transaction %s executed: %s", label, digest)
    return TransactionResult.ok(digest, response)


def _require_id(value: str, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument([f"{name} is required"])
