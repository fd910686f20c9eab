import pytest

from conftest import InMemoryLedger, RecordingWriter, run
from src.core.datasets import DatasetKind
from src.core.errors import LedgerResetError
from src.core.options import ExporterOptions
from src.core.state import LedgerState
from src.operations.backfill_operation import BackfillOperation


def _backfill(days, datasets, ledger, fail_days=()):
    writers = {d.kind: RecordingWriter(d, ledger, fail_days=fail_days) for d in datasets}
    operation = BackfillOperation(ExporterOptions(statistics_days="5-7"), days, datasets, ledger, writers)
    return operation, writers


def test_range_deletes_then_recomputes_each_day_in_order(validator_dataset):
    ledger = InMemoryLedger()
    for day in (5, 6, 7):
        run(ledger.mark_complete(validator_dataset, day))
    operation, _ = _backfill(range(5, 8), [validator_dataset], ledger)

    result = run(operation.execute())

    kind = DatasetKind.VALIDATOR_STATISTICS
    assert ledger.events == [
        ("delete", kind, 5), ("write", kind, 5),
        ("delete", kind, 6), ("write", kind, 6),
        ("delete", kind, 7), ("write", kind, 7),
    ]
    assert result["days"] == 3
    assert result["details"]["validator_statistics"] == {"succeeded": [5, 6, 7], "failed": []}


def test_backfill_ignores_the_day_clock(validator_dataset):
    # Days far in the future are still computed
    ledger = InMemoryLedger()
    operation, writers = _backfill(range(1_000_000, 1_000_001), [validator_dataset], ledger)

    run(operation.execute())

    assert writers[DatasetKind.VALIDATOR_STATISTICS].days == [1_000_000]


def test_writer_failure_continues_with_next_day(validator_dataset):
    ledger = InMemoryLedger()
    run(ledger.mark_complete(validator_dataset, 6))
    operation, writers = _backfill(range(5, 8), [validator_dataset], ledger, fail_days={6})

    result = run(operation.execute())

    assert writers[DatasetKind.VALIDATOR_STATISTICS].days == [5, 6, 7]
    assert result["details"]["validator_statistics"] == {"succeeded": [5, 7], "failed": [6]}
    # The stale marker was removed and not recreated
    assert run(ledger.get_state(validator_dataset, 6)) == LedgerState.ABSENT


def test_delete_failure_aborts_the_backfill(validator_dataset, chart_dataset):
    ledger = InMemoryLedger()
    ledger.fail_deletes = {6}
    operation, writers = _backfill(range(5, 8), [validator_dataset, chart_dataset], ledger)

    with pytest.raises(LedgerResetError) as excinfo:
        run(operation.execute())

    assert excinfo.value.day == 6
    assert writers[DatasetKind.VALIDATOR_STATISTICS].days == [5]
    assert writers[DatasetKind.CHART_SERIES].days == []


def test_datasets_are_processed_independently(validator_dataset, chart_dataset):
    ledger = InMemoryLedger()
    writers = {
        DatasetKind.VALIDATOR_STATISTICS: RecordingWriter(validator_dataset, ledger, fail_days={5}),
        DatasetKind.CHART_SERIES: RecordingWriter(chart_dataset, ledger),
    }
    operation = BackfillOperation(ExporterOptions(), range(5, 6), [validator_dataset, chart_dataset], ledger, writers)

    result = run(operation.execute())

    assert result["details"]["validator_statistics"]["failed"] == [5]
    assert result["details"]["chart_series"]["succeeded"] == [5]
    assert ledger.complete_days(DatasetKind.CHART_SERIES) == [5]


def test_backfill_twice_gives_the_same_ledger(validator_dataset, chart_dataset):
    ledger = InMemoryLedger()
    datasets = [validator_dataset, chart_dataset]

    run(_backfill(range(3, 5), datasets, ledger)[0].execute())
    first = set(ledger.completed)
    run(_backfill(range(3, 5), datasets, ledger)[0].execute())

    assert ledger.completed == first
    assert first == {(d.kind, day) for d in datasets for day in (3, 4)}


def test_no_dataset_enabled_does_nothing():
    ledger = InMemoryLedger()
    operation = BackfillOperation(ExporterOptions(), range(5, 6), [], ledger, {})

    result = run(operation.execute())

    assert result["details"] == {}
    assert ledger.events == []


@pytest.mark.parametrize("days", [range(0), range(-1, 2), range(5, 10, 2), range(7, 4, -1)])
def test_invalid_days_are_rejected(validator_dataset, days):
    operation, _ = _backfill(days, [validator_dataset], InMemoryLedger())
    with pytest.raises(ValueError):
        operation.validate_config()


def test_missing_writer_is_rejected(validator_dataset, chart_dataset):
    ledger = InMemoryLedger()
    writers = {DatasetKind.VALIDATOR_STATISTICS: RecordingWriter(validator_dataset, ledger)}
    operation = BackfillOperation(ExporterOptions(), range(1, 2), [validator_dataset, chart_dataset], ledger, writers)

    with pytest.raises(ValueError):
        operation.validate_config()


def test_huge_range_validates_without_walking_it(validator_dataset):
    operation, _ = _backfill(range(0, 100_000_000_000), [validator_dataset], InMemoryLedger())

    operation.validate_config()

    assert operation.days == range(0, 100_000_000_000)
