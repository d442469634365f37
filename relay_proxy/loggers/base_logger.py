"""Request loggers receive a RequestContext once a relay cycle is over."""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..base_types import RequestContext
from ..utils import resolve_instance_or_callable


@dataclass
class BaseLogger:
    """
    Converts the request context to a log entry and passes it to the log writer.

    Args:
        log_writer: Callable (sync or async) receiving the entry;
            instance, dotted path or {"class": ...} dict.
        entry_transformer: Optional callable turning the context into an entry,
            RequestContext.to_dict() is used when omitted.
    """

    log_writer: Any = None
    entry_transformer: Optional[Callable[[RequestContext], Any]] = field(default=None)

    def __post_init__(self):
        self.log_writer = resolve_instance_or_callable(self.log_writer, debug_name="log_writer")
        self.entry_transformer = resolve_instance_or_callable(
            self.entry_transformer, debug_name="entry_transformer"
        )
        if self.log_writer is None:
            raise ValueError("BaseLogger requires a log_writer")

    def make_entry(self, ctx: RequestContext) -> Any:
        if self.entry_transformer:
            return self.entry_transformer(ctx)
        return ctx.to_dict()

    async def __call__(self, ctx: RequestContext) -> None:
        result = self.log_writer(self.make_entry(ctx))
        if inspect.isawaitable(result):
            await result
