"""Request schemas for session endpoints."""

from filesmith.engine.models import ContractModel, Mode


class ModeRequest(ContractModel):
    mode: Mode
