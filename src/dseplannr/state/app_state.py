from dataclasses import dataclass, field
from typing import Optional

from dseplannr.config.logging_config import configure_logging
from dseplannr.core.cutoff_store import CutoffStore
from dseplannr.services.cutoff_service import (
    CutoffDocumentSource,
    CutoffLoadResult,
    load_cutoff_data,
    load_cutoff_data_sync,
)


@dataclass
class AppState:
    cutoff_store: CutoffStore = field(default_factory=dict)
    using_generic_fallback: bool = True
    loaded: bool = False

    def bootstrap(self, source: Optional[CutoffDocumentSource] = None) -> None:
        """Synchronous startup; inside a running event loop use bootstrap_async."""
        if self.loaded:
            return
        configure_logging()
        self._apply(load_cutoff_data_sync(source))

    async def bootstrap_async(self, source: Optional[CutoffDocumentSource] = None) -> None:
        if self.loaded:
            return
        configure_logging()
        self._apply(await load_cutoff_data(source))

    def _apply(self, result: CutoffLoadResult) -> None:
        self.cutoff_store = result.store
        self.using_generic_fallback = result.using_generic_fallback
        self.loaded = True


app_state = AppState()
