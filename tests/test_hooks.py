from txlog.models.transaction import TransactionContext, TransactionResponse
from txlog.pipelines.hooks import Pipelines


def test_items_keep_registration_order() -> None:
    pipelines = Pipelines()
    calls: list[str] = []

    pipelines.after_request.add_item_to_end_of_pipeline(lambda ctx: calls.append("end"))
    pipelines.after_request.add_item_to_start_of_pipeline(lambda ctx: calls.append("start"))
    pipelines.after_request.invoke(TransactionContext())

    assert calls == ["start", "end"]
    assert len(pipelines.after_request.items) == 2


def test_before_request_short_circuits_on_first_response() -> None:
    pipelines = Pipelines()
    blocked = TransactionResponse(status_code=403)
    calls: list[str] = []

    pipelines.before_request.add_item_to_end_of_pipeline(lambda ctx: calls.append("first"))
    pipelines.before_request.add_item_to_end_of_pipeline(lambda ctx: blocked)
    pipelines.before_request.add_item_to_end_of_pipeline(lambda ctx: calls.append("never"))

    assert pipelines.before_request.invoke(TransactionContext()) is blocked
    assert calls == ["first"]


def test_on_error_stops_at_first_replacement() -> None:
    pipelines = Pipelines()
    replacement = TransactionResponse(status_code=400)
    seen: list[BaseException] = []

    pipelines.on_error.add_item_to_end_of_pipeline(lambda ctx, exc: seen.append(exc))
    pipelines.on_error.add_item_to_end_of_pipeline(lambda ctx, exc: replacement)
    pipelines.on_error.add_item_to_end_of_pipeline(lambda ctx, exc: TransactionResponse(status_code=500))

    error = ValueError("x")
    assert pipelines.on_error.invoke(TransactionContext(), error) is replacement
    assert seen == [error]


def test_empty_pipelines_return_nothing() -> None:
    pipelines = Pipelines()
    assert pipelines.before_request.invoke(TransactionContext()) is None
    assert pipelines.on_error.invoke(TransactionContext(), RuntimeError()) is None
