from __future__ import annotations

from dataclasses import dataclass

import pytest

from streamledger.integration.auth import IdentityAuthOracle
from streamledger.integration.clock import ManualClock
from streamledger.integration.collaborators import VerifiedCaller
from streamledger.integration.engine import StreamEngine
from streamledger.integration.events import InMemoryEventSink
from streamledger.integration.token import BalanceTokenService
from streamledger.state.store import InMemoryStore

ADMIN = "admin"
TREASURY = "treasury"
SENDER = "alice"
RECIPIENT = "bob"
MALLORY = "mallory"
TOKEN = "USDC"
START = 1_000
SENDER_FUNDS = 1_000_000


@dataclass
class Harness:
    store: InMemoryStore
    token: BalanceTokenService
    clock: ManualClock
    events: InMemoryEventSink
    engine: StreamEngine

    @staticmethod
    def caller(identity: str) -> VerifiedCaller:
        return VerifiedCaller(identity=identity)

    def balance(self, holder: str) -> int:
        return self.token.balance_of(holder, TOKEN)

    def custody(self) -> int:
        return self.balance(self.engine.custody)

    def init_fee(self, fee_rate_bps: int) -> None:
        self.engine.initialize(self.caller(ADMIN), ADMIN, TREASURY, fee_rate_bps)

    def create(self, amount: int = 10_000, duration: int = 100, sender: str = SENDER) -> int:
        return self.engine.create_stream(self.caller(sender), sender, RECIPIENT, TOKEN, amount, duration)


def make_harness() -> Harness:
    store = InMemoryStore()
    token = BalanceTokenService(store)
    token.register_token(TOKEN, decimals=7)
    token.mint(SENDER, TOKEN, SENDER_FUNDS)
    clock = ManualClock(START)
    events = InMemoryEventSink()
    engine = StreamEngine(store, token, IdentityAuthOracle(), clock, events)
    return Harness(store=store, token=token, clock=clock, events=events, engine=engine)


@pytest.fixture
def h() -> Harness:
    return make_harness()
