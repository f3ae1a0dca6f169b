import jwt
import pytest

from coachbook.auth.jwt_handler import create_access_token, decode_access_token
from coachbook.core.config import Settings

SETTINGS = Settings(jwt_secret_key='test-secret')


def test_access_token_carries_subject() -> None:
    token = create_access_token('instructor-a', SETTINGS)

    payload = decode_access_token(token, SETTINGS)

    assert payload['sub'] == 'instructor-a'
    assert payload['exp'] > payload['iat']


def test_access_token_signed_with_other_secret_is_rejected() -> None:
    token = create_access_token('instructor-a', Settings(jwt_secret_key='other-secret'))

    with pytest.raises(jwt.InvalidSignatureError):
        decode_access_token(token, SETTINGS)
