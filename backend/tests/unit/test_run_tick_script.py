"""Tests for the run_tick CLI script behavior."""

import argparse
from unittest.mock import MagicMock, patch

from scripts import run_tick as script
from dueworker.domain.delivery.errors import DeliveryError, FatalListError
from dueworker.domain.delivery.models import TenantError, TickResult, TickStage
from dueworker.infra.tasks.cancellation import EventCancellationToken


def _args(**overrides) -> argparse.Namespace:
    defaults = {"init_db": False, "workers": None, "timeout": None, "deadline": None}
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def _run(args, result):
    use_case = MagicMock()
    use_case.execute.return_value = result
    parser = MagicMock()
    parser.parse_args.return_value = args

    with patch.object(script, "_build_parser", return_value=parser), \
            patch.object(script, "setup_logging"), \
            patch.object(script, "init_db") as mock_init_db, \
            patch.object(script, "build_run_tick_use_case", return_value=use_case), \
            patch.object(script.signal, "signal") as mock_signal:
        code = script.main()
    return code, use_case, mock_init_db, mock_signal


def test_main_prints_summary_and_returns_zero(capsys):
    error = TenantError("b", TickStage.DELIVER, DeliveryError("b", "boom", item_id="b1"), "b1")
    result = TickResult(processed=2, errors=(error,), tenants_seen=3, correlation_id="c1")

    code, use_case, mock_init_db, _ = _run(_args(workers=2, timeout=5.0), result)

    assert code == 0
    mock_init_db.assert_not_called()
    cmd, cancel = use_case.execute.call_args.args
    assert cmd.max_workers == 2
    assert cmd.delivery_timeout_seconds == 5.0
    assert isinstance(cancel, EventCancellationToken)

    out = capsys.readouterr().out
    assert "processed: 2" in out
    assert "b [deliver] DeliveryError: boom" in out


def test_main_returns_one_on_fatal_error(capsys):
    result = TickResult(processed=0, fatal_error=FatalListError("db down"))

    code, _, _, _ = _run(_args(), result)

    assert code == 1
    assert "Tick failed: db down" in capsys.readouterr().err


def test_main_initialises_db_and_installs_signal_handlers():
    code, _, mock_init_db, mock_signal = _run(_args(init_db=True), TickResult(processed=0))

    assert code == 0
    mock_init_db.assert_called_once()
    signals = {call.args[0] for call in mock_signal.call_args_list}
    assert signals == {script.signal.SIGINT, script.signal.SIGTERM}


def test_signal_handler_cancels_the_tick():
    code, use_case, _, mock_signal = _run(_args(), TickResult(processed=0))
    handler = mock_signal.call_args_list[0].args[1]
    _, cancel = use_case.execute.call_args.args

    handler(script.signal.SIGTERM, None)

    assert cancel.is_cancelled()


def test_main_rejects_explicit_zero_overrides(capsys):
    code, use_case, _, _ = _run(_args(workers=0), TickResult(processed=0))

    assert code == 2
    use_case.execute.assert_not_called()
    assert "max_workers must be >= 1" in capsys.readouterr().err
