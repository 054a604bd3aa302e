"""Tests for relpack.core.result module."""

import pytest

from relpack.core.result import Err, Ok, Result


def _half(value: int) -> Result[int, str]:
    if value % 2:
        return Err(f"{value} is odd")
    return Ok(value // 2)


class TestResult:
    def test_equality(self) -> None:
        assert Ok(1) == Ok(1)
        assert Err("e") == Err("e")
        assert Ok("e") != Err("e")

    def test_repr(self) -> None:
        assert repr(Ok("x")) == "Ok('x')"
        assert repr(Err(3)) == "Err(3)"

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            Ok(1).value = 2  # type: ignore[misc]

    def test_pattern_matching(self) -> None:
        match _half(3):
            case Ok(_):
                pytest.fail("expected Err")
            case Err(error):
                assert error == "3 is odd"

        match _half(4):
            case Ok(value):
                assert value == 2
            case Err(_):
                pytest.fail("expected Ok")
