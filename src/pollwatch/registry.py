"""Media type routing and dynamic handler loading."""
from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, cast

from . import content_types
from .config import EndpointsConfig, HandlerConfig
from .events import ChangeEvent, ChangeKind
from .executor import JobExecutor
from .ledger import SuppressionLedger

logger = logging.getLogger(__name__)


HandlerCallback = Callable[["HandlerContext", Dict[str, Any]], None]
DeletionCallback = Callable[[str], Any]
Resolver = Callable[[str], str]


@dataclass(frozen=True)
class HandlerContext:
    """Context passed to handler callbacks."""

    kind: ChangeKind
    path: str
    content_type: str
    ledger: SuppressionLedger
    endpoints: EndpointsConfig = field(default_factory=EndpointsConfig)

    @property
    def is_created(self) -> bool:
        return self.kind is ChangeKind.CREATED

    @property
    def is_modified(self) -> bool:
        return self.kind is ChangeKind.MODIFIED

    def mark(self, path: Optional[str] = None) -> None:
        """Suppress the next change for ``path`` (defaults to the event's own file)."""

        self.ledger.mark(str(path) if path is not None else self.path)


@dataclass(frozen=True)
class Handler:
    """Callable wrapper associated with configuration metadata."""

    name: str
    callback: HandlerCallback
    options: Dict[str, Any]

    def invoke(self, context: HandlerContext) -> None:
        logger.debug("Running handler %s for %s", self.name, context.path)
        self.callback(context, self.options)


class HandlerRegistry:
    """Loads configured handlers and routes change events to them by media type.

    The routing table is built once and never mutated afterwards, so
    :meth:`handlers_for` is safe to call from any thread.
    """

    def __init__(
        self,
        handlers: Iterable[HandlerConfig],
        *,
        ledger: SuppressionLedger,
        executor: JobExecutor,
        on_delete: Optional[DeletionCallback] = None,
        endpoints: Optional[EndpointsConfig] = None,
        resolver: Resolver = content_types.resolve,
    ):
        table: Dict[str, List[Handler]] = {}
        for cfg in handlers:
            handler = self._load_handler(cfg)
            for mime_type in cfg.mime_types:
                table.setdefault(mime_type, []).append(handler)
        self._table: Dict[str, Tuple[Handler, ...]] = {key: tuple(value) for key, value in table.items()}
        self._ledger = ledger
        self._executor = executor
        self._on_delete = on_delete
        self._endpoints = endpoints or EndpointsConfig()
        self._resolver = resolver

    def __iter__(self):
        return iter(self._table.items())

    def handlers_for(self, mime_type: str) -> Optional[Tuple[Handler, ...]]:
        return self._table.get(mime_type)

    def dispatch(self, event: ChangeEvent) -> int:
        """Submit background work for ``event`` and return the number of jobs submitted."""

        if event.kind is ChangeKind.DELETED:
            if self._on_delete is None:
                return 0
            self._executor.submit(f"deletion:{event.path}", self._on_delete, event.path)
            return 1

        mime_type = self._resolver(event.path)
        description = f"'{event.path}' with MIME type: '{mime_type}'"

        handlers = self.handlers_for(mime_type)
        if not handlers:
            if content_types.is_supported(mime_type):
                logger.warning("No handler registered for %s", description)
            else:
                logger.warning("Unsupported file type detected: %s", description)
            return 0

        logger.info("Valid file type detected: %s", description)

        context = HandlerContext(
            kind=event.kind,
            path=event.path,
            content_type=mime_type,
            ledger=self._ledger,
            endpoints=self._endpoints,
        )
        for handler in handlers:
            logger.info("Dispatching handler '%s' for file: %s", handler.name, description)
            self._executor.submit(f"{handler.name}:{event.path}", handler.invoke, context)
        return len(handlers)

    def _load_handler(self, config: HandlerConfig) -> Handler:
        module = _import_module(config.module)
        try:
            callback = getattr(module, config.function)
        except AttributeError as exc:
            raise RuntimeError(
                f"Handler '{config.name}' could not find function '{config.function}' in {config.module}"
            ) from exc

        if not callable(callback):
            raise RuntimeError(
                f"Handler '{config.name}' attribute '{config.function}' in {config.module} is not callable"
            )

        return Handler(name=config.name, callback=cast(HandlerCallback, callback), options=dict(config.options or {}))


def _import_module(module_path: str) -> ModuleType:
    try:
        return importlib.import_module(module_path)
    except ImportError as exc:
        raise RuntimeError(f"Unable to import handler module '{module_path}'") from exc
