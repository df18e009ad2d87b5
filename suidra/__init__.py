"""
SUIDRA — On-chain forms, registry sync and vote analytics.

Client-side core for a Sui forms contract: materializes the forms registry,
issues lifecycle transactions, decodes the event feed and derives results.
"""

__version__ = "0.1.0"

from suidra.contract import FormsContract
from suidra.events import (
    FormDeleted,
    FormDelisted,
    FormEvent,
    FormEventStream,
    FormEventType,
    FormListed,
    UserVoted,
    is_event_related_to_form,
)
from suidra.exceptions import (
    DecodeError,
    InvalidArgument,
    NetworkError,
    NotFound,
    SuidraError,
    TransactionFailed,
    ValidationError,
)
from suidra.forms import FormRegistryService, FormSynchronizer
from suidra.gateway import LedgerGateway, SignedTransaction, Signer, SuiRpcGateway
from suidra.models import Form, FormRegistry, Question, ReadResult, RegistryStats, TransactionResult

__all__ = [
    "DecodeError",
    "Form",
    "FormDeleted",
    "FormDelisted",
    "FormEvent",
    "FormEventStream",
    "FormEventType",
    "FormListed",
    "FormRegistry",
    "FormRegistryService",
    "FormSynchronizer",
    "FormsContract",
    "InvalidArgument",
    "LedgerGateway",
    "NetworkError",
    "NotFound",
    "Question",
    "ReadResult",
    "RegistryStats",
    "SignedTransaction",
    "Signer",
    "SuiRpcGateway",
    "SuidraError",
    "TransactionFailed",
    "TransactionResult",
    "UserVoted",
    "ValidationError",
    "__version__",
    "is_event_related_to_form",
]
