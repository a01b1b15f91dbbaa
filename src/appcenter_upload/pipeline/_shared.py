"""Shared types for upload pipelines."""

from dataclasses import dataclass, field
from enum import Enum


class ReleaseState(str, Enum):
    START = "start"
    PREPARED = "prepared"
    BINARY_UPLOADED = "binary_uploaded"
    COMMITTED = "committed"
    DISTRIBUTED = "distributed"


class SymbolState(str, Enum):
    START = "start"
    SYMBOL_PREPARED = "symbol_prepared"
    SYMBOL_UPLOADED = "symbol_uploaded"
    SYMBOL_COMMITTED = "symbol_committed"


@dataclass
class UploadSession:
    """Identifiers produced while one flow is running."""

    state: Enum
    upload_id: str | None = None
    upload_url: str | None = None
    release_id: str | None = None

    def advance(self, state: Enum) -> None:
        order = list(type(self.state))
        if order.index(state) != order.index(self.state) + 1:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {state.value}")
        self.state = state


@dataclass
class UploadReport:
    """Results from a successful upload."""

    flavor: str
    release_id: str
    destinations: list[str] = field(default_factory=list)
    symbol_upload_id: str | None = None

    @property
    def mapping_uploaded(self) -> bool:
        return self.symbol_upload_id is not None
