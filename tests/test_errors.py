import re

import pytest

from wotop.errors import AppError, ErrorType


def test_values_fixed_by_source():
    assert str(AppError(ErrorType.UNAUTHORIZED)) == "ER0001 unauthorized"
    assert (
        str(AppError(ErrorType.TOKEN_ALREADY_REFRESHED))
        == "ER0003 the token is already refreshed"
    )


def test_code_and_message():
    err = AppError(ErrorType.EXPIRED_TOKEN)
    assert err.code() == "ER0002"
    assert err.message == "the token is expired"
    assert str(err) == ErrorType.EXPIRED_TOKEN.value


@pytest.mark.parametrize("error_type", list(ErrorType))
def test_every_type_round_trips(error_type):
    err = AppError(error_type)
    assert re.fullmatch(r"ER\d{4}", err.code())
    assert f"{err.code()} {err.message}" == error_type.value
    assert err.error_type is error_type


def test_codes_are_unique():
    codes = [AppError(t).code() for t in ErrorType]
    assert len(set(codes)) == len(codes)


def test_raised_and_caught():
    err = AppError(ErrorType.UNAUTHORIZED)
    with pytest.raises(AppError) as info:
        raise err
    assert info.value is err
    assert info.value.code() == "ER0001"
    assert info.value.message == "unauthorized"
    assert info.value.error_type is ErrorType.UNAUTHORIZED