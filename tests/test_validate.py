import pytest
from datetime import date

from schedulr.errors import DateFormatError, EmptyTitleError, ErrorKind
from schedulr.shared import fmt_date, parse_date
from schedulr.validate import resolve_date, validate_title


@pytest.mark.unit
class TestDateCodec:
    @pytest.mark.parametrize(
        "s", ["20240110", "20240229", "19991231", "00010101", "99991231"]
    )
    def test_round_trip(self, s):
        assert fmt_date(parse_date(s)) == s

    def test_parse(self):
        assert parse_date("20240110") == date(2024, 1, 10)

    @pytest.mark.parametrize(
        "s",
        [
            "",
            "2024011",
            "202401100",
            "2024-01-10",
            "abcdefgh",
            "20240230",
            "20231301",
            " 20240110",
            "２０２４０１１０",
        ],
    )
    def test_rejects(self, s):
        with pytest.raises(DateFormatError) as exc_info:
            parse_date(s)
        assert exc_info.value.kind is ErrorKind.DATE_FORMAT


@pytest.mark.unit
class TestValidateTitle:
    def test_keeps_title(self):
        assert validate_title("buy milk") == "buy milk"

    def test_empty(self):
        with pytest.raises(EmptyTitleError):
            validate_title("")


@pytest.mark.unit
class TestResolveDate:
    @pytest.mark.parametrize("value", ["", "today"])
    def test_defaults_to_now(self, now, value):
        assert resolve_date(value, now) == now

    def test_past_date_becomes_now(self, now):
        assert resolve_date("20240101", now) == now

    def test_today_is_kept(self, now):
        assert resolve_date("20240110", now) == now

    def test_future_date_is_kept(self, now):
        assert resolve_date("20240120", now) == date(2024, 1, 20)

    def test_bad_date(self, now):
        with pytest.raises(DateFormatError):
            resolve_date("10.01.2024", now)
