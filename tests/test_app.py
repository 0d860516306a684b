"""
Tests for configuration, application wiring, CLI and replication report.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

import order_copier.cli as cli
import order_copier.config as config_module
from order_copier import ConfigurationError, OrderEvent, StreamConnectionError, StreamTerminatedError
from order_copier.app import build_clients, run_replication
from order_copier.config import REQUIRED_VARS, AccountCredentials, ReplicatorConfig, config_from_env, load_config
from order_copier.exchange import PaperExchangeClient
from order_copier.exchange.bitunix import BitunixExchangeClient
from order_copier.replication import ReplicationRecord, ReplicationStage, records_to_frame, summarize

ENV = {
    "SOURCE_API_KEY": "src-key",
    "SOURCE_SECRET_KEY": "src-secret",
    "DEST_API_KEY": "dst-key",
    "DEST_SECRET_KEY": "dst-secret",
}


def _config(**overrides) -> ReplicatorConfig:
    return config_from_env(ENV, **overrides)


def _unset_credentials(monkeypatch):
    """Remove credentials from os.environ, restoring the original state afterwards."""
    for name in REQUIRED_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)


def _event(order_id: str = "1", **overrides) -> OrderEvent:
    fields = dict(
        symbol="BTCUSDT",
        side="BUY",
        quantity="1.5",
        price="30000",
        type="LIMIT",
        status="NEW",
        order_id=order_id,
    )
    fields.update(overrides)
    return OrderEvent(**fields)


# --- Configuration ---


def test_config_from_env():
    config = _config()
    assert config.source == AccountCredentials("src-key", "src-secret")
    assert config.destination == AccountCredentials("dst-key", "dst-secret")
    assert config.dry_run is False


@pytest.mark.parametrize("missing", REQUIRED_VARS)
def test_config_missing_any_credential(missing):
    env = {k: v for k, v in ENV.items() if k != missing}
    with pytest.raises(ConfigurationError) as exc:
        config_from_env(env)
    assert exc.value.missing == (missing,)
    assert missing in str(exc.value)


def test_config_blank_value_counts_as_missing():
    with pytest.raises(ConfigurationError) as exc:
        config_from_env({**ENV, "DEST_SECRET_KEY": "   "})
    assert exc.value.missing == ("DEST_SECRET_KEY",)


def test_config_reports_all_missing():
    with pytest.raises(ConfigurationError) as exc:
        config_from_env({})
    assert exc.value.missing == REQUIRED_VARS


def test_config_dry_run_from_env_and_override():
    assert config_from_env({**ENV, "ORDER_COPIER_DRY_RUN": "true"}).dry_run is True
    assert config_from_env({**ENV, "ORDER_COPIER_DRY_RUN": "true"}, dry_run=False).dry_run is False


def test_secret_not_in_repr():
    assert "src-secret" not in repr(_config())


def test_load_config_from_env_file(tmp_path, monkeypatch):
    _unset_credentials(monkeypatch)
    env_file = tmp_path / ".env"
    env_file.write_text("\n".join(f"{k}={v}" for k, v in ENV.items()))
    config = load_config(dotenv_path=env_file)
    assert config.source.api_key == "src-key"
    assert config.destination.api_secret == "dst-secret"


def test_load_config_missing_env_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(dotenv_path=tmp_path / "nope.env")


def test_load_config_explicit_mapping_skips_dotenv(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda **kw: pytest.fail("dotenv loaded"))
    assert load_config(ENV).source.api_key == "src-key"


# --- Application wiring ---


@pytest.mark.asyncio
async def test_build_clients_live_and_dry_run():
    source, destination = build_clients(_config())
    assert isinstance(source, BitunixExchangeClient)
    assert isinstance(destination, BitunixExchangeClient)
    await source.aclose()
    await destination.aclose()

    source, destination = build_clients(_config(dry_run=True))
    assert isinstance(source, BitunixExchangeClient)
    assert isinstance(destination, PaperExchangeClient)
    await source.aclose()


@pytest.mark.asyncio
async def test_run_replication_until_cancelled():
    source = PaperExchangeClient([_event("1"), _event("2", status="FILLED")])
    destination = PaperExchangeClient()
    cancel = asyncio.Event()
    task = asyncio.create_task(run_replication(_config(), source=source, destination=destination, cancel=cancel))
    await asyncio.sleep(0.02)
    cancel.set()
    records = await task
    assert [r.stage for r in records] == [ReplicationStage.SUBMITTED, ReplicationStage.FILTERED]
    assert len(destination.get_order_log()) == 1
    assert source.closed and destination.closed


@pytest.mark.asyncio
async def test_run_replication_stream_end_is_fatal():
    source = PaperExchangeClient([_event()], close_when_exhausted=True)
    destination = PaperExchangeClient()
    with pytest.raises(StreamTerminatedError) as exc:
        await run_replication(_config(), source=source, destination=destination)
    assert exc.value.reason.value == "remote_closed"
    assert len(destination.get_order_log()) == 1
    assert source.closed and destination.closed


@pytest.mark.asyncio
async def test_run_replication_connection_failure_closes_clients():
    source = PaperExchangeClient(connect_error=OSError("refused"))
    destination = PaperExchangeClient()
    with pytest.raises(StreamConnectionError):
        await run_replication(_config(), source=source, destination=destination)
    assert source.closed and destination.closed


@pytest.mark.asyncio
async def test_run_replication_requires_both_clients():
    with pytest.raises(ValueError):
        await run_replication(_config(), source=PaperExchangeClient())


# --- CLI ---


def _clear_env(monkeypatch):
    _unset_credentials(monkeypatch)
    monkeypatch.setattr(config_module, "load_dotenv", lambda **kw: False)


def test_cli_missing_credentials_never_streams(monkeypatch):
    _clear_env(monkeypatch)

    async def must_not_run(*args, **kwargs):
        pytest.fail("streaming started without credentials")

    monkeypatch.setattr(cli, "run_replication", must_not_run)
    assert cli.main([]) == cli.EXIT_CONFIG


def test_cli_normal_shutdown(monkeypatch):
    _clear_env(monkeypatch)
    for k, v in ENV.items():
        monkeypatch.setenv(k, v)
    seen = {}

    async def fake_run(config, cancel):
        seen["config"] = config
        return []

    monkeypatch.setattr(cli, "run_replication", fake_run)
    monkeypatch.setattr(cli, "install_signal_handlers", lambda cancel: None)
    assert cli.main(["--dry-run"]) == cli.EXIT_OK
    assert seen["config"].dry_run is True


def test_cli_connection_failure_exits_nonzero(monkeypatch):
    _clear_env(monkeypatch)
    for k, v in ENV.items():
        monkeypatch.setenv(k, v)

    async def fake_run(config, cancel):
        raise StreamConnectionError("Failed to connect to source account stream: refused")

    monkeypatch.setattr(cli, "run_replication", fake_run)
    monkeypatch.setattr(cli, "install_signal_handlers", lambda cancel: None)
    assert cli.main([]) == cli.EXIT_FAILURE


# --- Report ---


def _record(stage: ReplicationStage, **kwargs) -> ReplicationRecord:
    return ReplicationRecord(stage=stage, event=_event(), timestamp=datetime(2024, 1, 2, 10, 0), **kwargs)


def test_records_to_frame():
    records = [
        _record(ReplicationStage.SUBMITTED, order_id="d-1"),
        _record(ReplicationStage.TRANSLATION_FAILED, error="bad side"),
    ]
    df = records_to_frame(records)
    assert len(df) == 2
    assert df.index.name == "timestamp"
    assert list(df["stage"]) == ["submitted", "translation_failed"]
    assert df.iloc[0]["destination_order_id"] == "d-1"
    assert df.iloc[1]["error"] == "bad side"
    assert df.iloc[0]["quantity"] == Decimal("1.5")


def test_summarize_counts_every_stage():
    summary = summarize([_record(ReplicationStage.SUBMITTED), _record(ReplicationStage.SUBMITTED)])
    assert summary == {"filtered": 0, "translation_failed": 0, "submitted": 2, "submission_failed": 0}


def test_summarize_empty():
    assert summarize([]) == {stage.value: 0 for stage in ReplicationStage}
