"""Error body shared by every endpoint."""

from filesmith.engine.models import ContractModel


class ErrorResponse(ContractModel):
    """``error`` is the exception class name, ``detail`` its message.

    ``field`` is set for parameter validation failures and
    ``failedIndex`` for replay failures.
    """

    error: str
    detail: str = ""
    field: str | None = None
    failed_index: int | None = None
