"""Access token helpers: the actor comes from the sub and role claims."""

from datetime import timedelta

import jwt
import pytest

from app.auth import actor_from_claims, create_access_token, decode_access_token
from app.core.enums import RoleName
from app.principal import Actor


def test_token_round_trip_carries_id_and_role():
    token = create_access_token("01GUIDE", RoleName.GUIDE)

    payload = decode_access_token(token)

    assert payload["sub"] == "01GUIDE"
    assert payload["role"] == "guide"
    assert actor_from_claims(payload) == Actor(id="01GUIDE", role=RoleName.GUIDE)


def test_expired_token_is_rejected():
    token = create_access_token("01TOURIST", "tourist", expires_delta=timedelta(seconds=-5))

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(token)


@pytest.mark.parametrize(
    "claims",
    [
        {"role": "tourist"},
        {"sub": "", "role": "tourist"},
        {"sub": "01X"},
        {"sub": "01X", "role": "superuser"},
    ],
)
def test_incomplete_claims_yield_no_actor(claims):
    assert actor_from_claims(claims) is None


def test_actor_role_helpers():
    admin = Actor(id="a", role=RoleName.ADMIN)
    tourist = Actor(id="t", role=RoleName.TOURIST)

    assert admin.is_admin and not admin.is_guide
    assert tourist.is_tourist and not tourist.is_admin
