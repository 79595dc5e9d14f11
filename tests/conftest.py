import pytest

from intent_platform.execution.assets import FungibleToken
from intent_platform.execution.factory import IntentFactory
from intent_platform.execution.ledger import Ledger
from fake_contracts import ALICE, DEPLOYER, PAYLOAD, RecordingTarget


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def factory(ledger):
    return IntentFactory.deploy(ledger, DEPLOYER)


@pytest.fixture
def target(ledger):
    return ledger.create(DEPLOYER, lambda address: RecordingTarget(ledger, address))


@pytest.fixture
def token(ledger):
    return ledger.create(
        DEPLOYER, lambda address: FungibleToken(ledger, address, "Test Token", "TST", 18)
    )


@pytest.fixture
def token_target(ledger, token):
    return ledger.create(
        DEPLOYER, lambda address: RecordingTarget(ledger, address, token=token.address)
    )


@pytest.fixture
def native_intent(ledger, factory, target):
    """Native intent moving 100 per fill, pre-funded with 1000"""
    address = factory.create_intent(ALICE, None, 100, target.address, PAYLOAD)
    ledger.mint_native(address, 1000)
    return factory.get_intent(address)


@pytest.fixture
def token_intent(ledger, factory, token, token_target):
    """Fungible intent moving 50 TST per fill, pre-funded with 500"""
    address = factory.create_intent(ALICE, token.address, 50, token_target.address, PAYLOAD)
    token.mint(address, 500)
    return factory.get_intent(address)


@pytest.fixture
def env_file(tmp_path):
    """Minimal valid env file; tests append keys as needed"""
    path = tmp_path / "test.env"
    path.write_text(
        f"INTENT_DEPLOYER={DEPLOYER}\n"
        f"LOG_DIR={tmp_path / 'logs'}\n"
        "TRACKING_ENABLED=false\n"
    )
    return path


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # Config gives the process environment precedence over the file
    for key in (
        "INTENT_DEPLOYER",
        "MAX_PAYLOAD_BYTES",
        "EVENT_RETENTION",
        "FAUCET_ENABLED",
        "HOST",
        "PORT",
        "LOG_LEVEL",
        "LOG_DIR",
        "RELAY_WEBHOOK_URL",
        "RELAY_TIMEOUT_SEC",
        "TRACKING_ENABLED",
    ):
        monkeypatch.delenv(key, raising=False)
