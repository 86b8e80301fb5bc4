from sitechat.services.clock import SystemClock
from sitechat.services.counter_service import CounterStore, LiveCounter
from sitechat.services.relay import Relay
from sitechat.services.session_store import SessionStore
from sitechat.services.side_effects import SideEffects
from sitechat.services.signature import SignatureCodec

__all__ = ["SystemClock", "CounterStore", "LiveCounter", "Relay", "SessionStore", "SideEffects", "SignatureCodec"]
