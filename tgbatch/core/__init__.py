# tgbatch/core/__init__.py
"""
Core pipeline -- transport-agnostic request construction and batch execution.

Canonical imports:
    from tgbatch.core import BatchExecutor, BatchConfig, OperationKind
    from tgbatch.core.domain import InputItem, BinaryAttachment, OutcomeRecord
    from tgbatch.core.errors import ValidationError, TransportError
"""
from tgbatch.core.domain import (  # noqa: F401
    OperationKind,
    MessageType,
    ReplyMarkupMode,
    BinaryAttachment,
    InputItem,
    BatchConfig,
    RequestPayload,
    OutcomeRecord,
)
from tgbatch.core.errors import (  # noqa: F401
    PipelineError,
    ValidationError,
    UnsupportedOperationError,
    TransportError,
)
from tgbatch.core.params import MappingParameterResolver  # noqa: F401
from tgbatch.core.payload_builder import PayloadBuilder  # noqa: F401
from tgbatch.core.executor import BatchExecutor  # noqa: F401
