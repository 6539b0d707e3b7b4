import pytest
from telegram import User

from registration_miniapp import messages
from registration_miniapp.errors import AuthenticationError
from registration_miniapp.services.init_data import (
    build_verifier,
    extract_user_id,
    verify_init_data,
)

from conftest import BOT_TOKEN, make_init_data

USER = {"id": 279058397, "first_name": "Vladislav", "username": "vdkfrost", "language_code": "ru"}


def test_valid_init_data_yields_telegram_user():
    result = verify_init_data(make_init_data(USER), BOT_TOKEN)

    assert isinstance(result.user, User)
    assert result.user.id == 279058397
    assert result.user.username == "vdkfrost"
    assert result.query_id == "AAHdF6IQAAAAAN0XohDhrOrc"
    assert extract_user_id(result) == 279058397


def test_signature_from_another_bot_is_rejected():
    init_data = make_init_data(USER, bot_token="999:OTHER")

    with pytest.raises(AuthenticationError) as excinfo:
        verify_init_data(init_data, BOT_TOKEN)

    assert excinfo.value.message == messages.AUTH_INVALID


def test_tampered_field_is_rejected():
    init_data = make_init_data(USER).replace("279058397", "279058398")

    with pytest.raises(AuthenticationError):
        verify_init_data(init_data, BOT_TOKEN)


def test_missing_hash_is_rejected():
    with pytest.raises(AuthenticationError) as excinfo:
        verify_init_data("auth_date=1700000000&user=%7B%22id%22%3A1%7D", BOT_TOKEN)

    assert excinfo.value.message == messages.AUTH_INVALID


def test_expired_init_data_is_rejected():
    init_data = make_init_data(USER, auth_date=1_700_000_000)

    with pytest.raises(AuthenticationError):
        verify_init_data(init_data, BOT_TOKEN, expires_in=3600, now=1_700_000_000 + 3601)


def test_expiry_check_can_be_disabled():
    init_data = make_init_data(USER, auth_date=1_000)

    result = verify_init_data(init_data, BOT_TOKEN, expires_in=0)

    assert result.auth_date == 1_000


def test_empty_init_data_requires_authorization():
    with pytest.raises(AuthenticationError) as excinfo:
        verify_init_data("", BOT_TOKEN)

    assert excinfo.value.message == messages.AUTH_REQUIRED


def test_missing_user_cannot_produce_identity():
    result = verify_init_data(make_init_data(None), BOT_TOKEN)

    assert result.user is None
    with pytest.raises(AuthenticationError) as excinfo:
        extract_user_id(result)
    assert excinfo.value.message == messages.AUTH_NO_USER


def test_user_without_id_cannot_produce_identity():
    result = verify_init_data(make_init_data({"first_name": "Anon"}), BOT_TOKEN)

    with pytest.raises(AuthenticationError):
        extract_user_id(result)


def test_build_verifier_binds_token_and_expiry():
    verify = build_verifier(BOT_TOKEN, expires_in=60)

    assert verify(make_init_data(USER)).user.id == USER["id"]
    with pytest.raises(AuthenticationError):
        verify(make_init_data(USER, auth_date=1_000))
