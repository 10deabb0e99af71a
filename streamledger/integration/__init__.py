"""
Imperative shell: collaborators, transactional engine, read services
"""

from .auth import CallAuthenticator, IdentityAuthOracle, SignedCall
from .claimable import ClaimableAmount, ClaimableAmountService
from .clock import ManualClock, SystemClock
from .collaborators import AuthOracle, Clock, EventSink, TokenService, VerifiedCaller
from .engine import StreamEngine
from .events import EventRecord, InMemoryEventSink, JsonlEventSink, NullEventSink
from .settings import Deployment, EngineSettings, build_deployment, configure_logging, load_settings
from .token import BalanceTokenService

__all__ = [
    "CallAuthenticator",
    "IdentityAuthOracle",
    "SignedCall",
    "ClaimableAmount",
    "ClaimableAmountService",
    "ManualClock",
    "SystemClock",
    "AuthOracle",
    "Clock",
    "EventSink",
    "TokenService",
    "VerifiedCaller",
    "StreamEngine",
    "EventRecord",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
    "Deployment",
    "EngineSettings",
    "build_deployment",
    "configure_logging",
    "load_settings",
    "BalanceTokenService",
]
