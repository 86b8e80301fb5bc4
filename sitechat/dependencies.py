from fastapi import Request

from sitechat.config import Settings
from sitechat.services.counter_service import LiveCounter
from sitechat.services.relay import Relay
from sitechat.services.signature import SignatureCodec


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_relay(request: Request) -> Relay:
    return request.app.state.relay


def get_counter(request: Request) -> LiveCounter:
    return request.app.state.counter


def get_codec(request: Request) -> SignatureCodec:
    return request.app.state.codec
