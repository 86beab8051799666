import json

import pytest

from whop_oauth2 import delivery
from whop_oauth2.domain import DeliveryMode
from whop_oauth2.exceptions import InvalidDeliveryMode

PAYLOAD = {"session_token": "tok.en.value", "user": {"id": "user_1", "name": "Skunk"}}


def test_parse_mode():
    assert delivery.parse_mode(None) is None
    assert delivery.parse_mode("") is None
    assert delivery.parse_mode("loopback") is DeliveryMode.LOOPBACK
    assert delivery.parse_mode("direct") is DeliveryMode.DIRECT
    with pytest.raises(InvalidDeliveryMode):
        delivery.parse_mode("carrier-pigeon")


@pytest.mark.parametrize("port", ["0", "65536", "-1", "80a", "5005;alert(1)", "²"])
def test_parse_port_rejects(port):
    with pytest.raises(InvalidDeliveryMode):
        delivery.parse_port(port)


def test_parse_port():
    assert delivery.parse_port(None) is None
    assert delivery.parse_port("5005") == 5005


def test_resolve_query_wins():
    assert delivery.resolve("loopback", "6000", "direct", "5005") == (DeliveryMode.LOOPBACK, 6000)
    assert delivery.resolve(None, "6000", "loopback", "5005") == (DeliveryMode.LOOPBACK, 6000)
    assert delivery.resolve("direct", None, "loopback", "5005") == (DeliveryMode.DIRECT, None)


def test_resolve_cookies():
    assert delivery.resolve(None, None, "loopback", "5005") == (DeliveryMode.LOOPBACK, 5005)
    assert delivery.resolve(None, None, None, None) == (DeliveryMode.DIRECT, None)


def test_resolve_loopback_without_port():
    assert delivery.resolve("loopback", None, None, None) == (DeliveryMode.DIRECT, None)


def test_render_direct():
    response = delivery.render(PAYLOAD, DeliveryMode.DIRECT)
    assert response.media_type == "application/json"
    assert json.loads(response.body) == PAYLOAD


def test_render_loopback():
    response = delivery.render(PAYLOAD, DeliveryMode.LOOPBACK, 5005)
    assert response.media_type == "text/html"
    html = response.body.decode()
    assert html.count("http://127.0.0.1:5005/session") == 1
    assert html.count("fetch(") == 1
    assert "tok.en.value" in html
    assert "session_token" in html


def test_render_loopback_escapes_payload():
    payload = {"session_token": "t", "user": {"id": "user_1", "name": "</script><b>x"}}
    html = delivery.render(payload, DeliveryMode.LOOPBACK, 5005).body.decode()
    assert "</script><b>" not in html
