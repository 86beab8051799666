from datetime import datetime, timedelta, timezone

import pytest

from whop_oauth2 import access, tokens
from whop_oauth2.exceptions import AccessCheckFailed, InvalidCredential, InvalidResource


@pytest.fixture
def credential(secret):
    return tokens.issue("user_abc123", "Skunk Skunk", secret)


@pytest.mark.asyncio
async def test_check(whop, secret, credential):
    decision = await access.check(whop, credential, "exp_123", secret)
    assert decision.has_access
    assert decision.access_level == "customer"
    assert decision.user_id == "user_abc123"
    assert decision.resource_id == "exp_123"
    assert whop.calls == [("check_access", "user_abc123", "exp_123")]


@pytest.mark.asyncio
async def test_check_camel_case_result(whop, secret, credential):
    whop.access_result = {"hasAccess": False, "accessLevel": "no_access"}
    decision = await access.check(whop, credential, "exp_123", secret)
    assert not decision.has_access
    assert decision.access_level == "no_access"


@pytest.mark.asyncio
async def test_missing_access_level(whop, secret, credential):
    whop.access_result = {"has_access": False}
    decision = await access.check(whop, credential, "exp_123", secret)
    assert decision.access_level == "no_access"

    whop.access_result = {"has_access": True, "access_level": None}
    decision = await access.check(whop, credential, "exp_123", secret)
    assert decision.access_level == "no_access"


@pytest.mark.asyncio
@pytest.mark.parametrize("resource_id", [None, "", "abc123", "EXP_123", "exp_", 42])
@pytest.mark.parametrize("valid_credential", [True, False])
async def test_invalid_resource(whop, secret, credential, resource_id, valid_credential):
    with pytest.raises(InvalidResource):
        await access.check(whop, credential if valid_credential else "BOGUS", resource_id, secret)
    assert whop.calls == []


@pytest.mark.asyncio
async def test_missing_resource_has_hints(whop, secret, credential):
    with pytest.raises(InvalidResource) as excinfo:
        await access.check(whop, credential, None, secret)
    assert "hint" in excinfo.value.detail


@pytest.mark.asyncio
async def test_bad_prefix_echoes_value(whop, secret, credential):
    with pytest.raises(InvalidResource) as excinfo:
        await access.check(whop, credential, "abc123", secret)
    assert excinfo.value.detail == {"provided": "abc123"}
    assert 'Must start with "exp_"' in excinfo.value.error


@pytest.mark.asyncio
async def test_invalid_credential(whop, secret):
    expired = tokens.issue("user_abc123", "Skunk Skunk", secret,
                           now=datetime.now(tz=timezone.utc) - timedelta(hours=3))
    for credential in [None, "", "BOGUS", expired]:
        with pytest.raises(InvalidCredential):
            await access.check(whop, credential, "exp_123", secret)
    assert whop.calls == []


@pytest.mark.asyncio
async def test_provider_error(whop, secret, credential):
    whop.fail["check_access"] = "rate limited"
    with pytest.raises(AccessCheckFailed) as excinfo:
        await access.check(whop, credential, "exp_123", secret)
    assert excinfo.value.status_code == 502
    assert "rate limited" in excinfo.value.detail


@pytest.mark.asyncio
async def test_provider_error_object(whop, secret, credential):
    whop.access_result = {"error": {"message": "Experience not found"}}
    with pytest.raises(AccessCheckFailed) as excinfo:
        await access.check(whop, credential, "exp_123", secret)
    assert "Experience not found" in excinfo.value.detail


@pytest.mark.asyncio
async def test_custom_prefix(whop, secret, credential):
    decision = await access.check(whop, credential, "prod_9", secret, prefix="prod_")
    assert decision.resource_id == "prod_9"
