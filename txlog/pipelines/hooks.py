"""The three ordered hook points a host exposes around request handling."""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from txlog.models.transaction import TransactionContext, TransactionResponse

BeforeRequestHook = Callable[[TransactionContext], "TransactionResponse | None"]
AfterRequestHook = Callable[[TransactionContext], Any]
ErrorHook = Callable[[TransactionContext, BaseException], "TransactionResponse | None"]

H = TypeVar("H")


class Pipeline(Generic[H]):
    def __init__(self) -> None:
        self._items: list[H] = []

    @property
    def items(self) -> tuple[H, ...]:
        return tuple(self._items)

    def add_item_to_start_of_pipeline(self, item: H) -> None:
        self._items.insert(0, item)

    def add_item_to_end_of_pipeline(self, item: H) -> None:
        self._items.append(item)


class BeforeRequestPipeline(Pipeline[BeforeRequestHook]):
    def invoke(self, context: TransactionContext) -> TransactionResponse | None:
        """Run hooks in order; the first response returned short-circuits."""

        for hook in self._items:
            response = hook(context)
            if response is not None:
                return response
        return None


class AfterRequestPipeline(Pipeline[AfterRequestHook]):
    def invoke(self, context: TransactionContext) -> None:
        for hook in self._items:
            hook(context)


class ErrorPipeline(Pipeline[ErrorHook]):
    def invoke(self, context: TransactionContext, exception: BaseException) -> TransactionResponse | None:
        """Run hooks in order until one returns a replacement response."""

        for hook in self._items:
            response = hook(context, exception)
            if response is not None:
                return response
        return None


class Pipelines:
    def __init__(self) -> None:
        self.before_request = BeforeRequestPipeline()
        self.after_request = AfterRequestPipeline()
        self.on_error = ErrorPipeline()
