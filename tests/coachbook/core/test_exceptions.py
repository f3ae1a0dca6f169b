import pytest

from coachbook.core.exceptions import (
    AuthenticationException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)


@pytest.mark.parametrize(
    ('exception_class', 'status_code'),
    [
        (ValidationException, 400),
        (AuthenticationException, 401),
        (ForbiddenException, 403),
        (NotFoundException, 404),
        (ConflictException, 409),
    ],
)
def test_domain_exceptions_map_to_distinct_status_codes(exception_class, status_code: int) -> None:
    http_exception = exception_class('boom', details={'field': 'bad'}).to_http_exception()

    assert http_exception.status_code == status_code
    assert http_exception.detail == {'error': 'boom', 'code': exception_class.__name__, 'details': {'field': 'bad'}}


def test_domain_exception_defaults_to_empty_details() -> None:
    assert NotFoundException('Appointment not found').to_http_exception().detail['details'] == {}
