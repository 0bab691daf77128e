import datetime
import xml.etree.ElementTree as ElementTree

import pytest
import pytz

from acutils import acdatetime
from acutils.obj import (
    Bool,
    ElementType,
    GetXmlContents,
    IntOrDefault,
    IntOrNone,
    NamedStream,
    Required,
    Version,
    parse_response,
)
from acutils.errors import ParseError


def test_version_pairs_accept_both_separators():
    assert Version.fromstring("12/4") == Version(12, 4)
    assert Version.fromstring("12\\4") == Version(12, 4)
    assert Version.fromstring(None) is None
    assert Version.fromstring("") is None
    assert str(Version(12, 4)) == "12/4"


@pytest.mark.parametrize("text", [ "12", "12/", "a/4", "1/2/3" ])
def test_malformed_version_pairs_fail(text):
    with pytest.raises(ParseError):
        Version.fromstring(text)


def test_named_stream_drops_the_version_number():
    assert NamedStream("NEPTUNE_DEV\\3") == "NEPTUNE_DEV"
    assert NamedStream("NEPTUNE/DEV/3") == "NEPTUNE/DEV"
    assert NamedStream(None) is None


def test_ints_and_bools():
    assert IntOrNone("42") == 42
    assert IntOrNone("") is None
    assert IntOrDefault(None, -1) == -1
    with pytest.raises(ParseError):
        IntOrNone("forty")

    assert Bool("true") and Bool("Yes")
    assert not Bool("false") and not Bool("no")
    assert Bool(None, default=True)
    with pytest.raises(ParseError):
        Bool("maybe")


def test_element_type_tokens():
    assert ElementType.parse("ptext") == ElementType.ptext
    assert ElementType.parse("* unknown *") == ElementType.unknown
    assert ElementType.parse("unsupported").value == 99
    with pytest.raises(ParseError):
        ElementType.parse("Text")
    with pytest.raises(ParseError):
        ElementType.parse(None)


def test_required_attribute():
    element = ElementTree.fromstring('<stream name="NEPTUNE"/>')

    assert Required(element, 'name') == "NEPTUNE"
    with pytest.raises(ParseError):
        Required(element, 'streamNumber')


def test_xml_contents_keeps_nested_markup():
    element = ElementTree.fromstring('<comment>fixed <b>build</b> again</comment>')

    assert GetXmlContents(element) == "fixed <b>build</b> again"


def test_parse_response_checks_the_command():
    xmlRoot = parse_response('<AcResponse Command="show depots"/>', "show depots")
    assert xmlRoot.tag == "AcResponse"

    with pytest.raises(ParseError):
        parse_response('<AcResponse Command="show users"/>', "show depots")
    with pytest.raises(ParseError):
        parse_response('<AcResponse Command="show depots">', "show depots")


def test_acdate_conversion():
    moment = acdatetime.acdate_to_datetime("1197383792")

    assert moment == datetime.datetime(2007, 12, 11, 14, 36, 32, tzinfo=pytz.utc)
    assert acdatetime.acdate_to_datetime("0") is None
    assert acdatetime.acdate_to_datetime(None) is None
    with pytest.raises(ParseError):
        acdatetime.acdate_to_datetime("yesterday")
    with pytest.raises(ParseError):
        acdatetime.acdate_to_datetime("99999999999999")


def test_acdate_in_display_timezone():
    acdatetime.set_timezone("Australia/Sydney")
    moment = acdatetime.acdate_to_datetime(1197383792)

    assert moment.utcoffset() == datetime.timedelta(hours=11)
    assert moment.astimezone(pytz.utc).hour == 14


def test_acdate_format_validation():
    assert acdatetime.acdate_valid("2016/01/31 23:59:59")
    assert not acdatetime.acdate_valid("2016/02/31 00:00:00")
    assert not acdatetime.acdate_valid("31/01/2016")
    assert acdatetime.datetime_to_acdate(datetime.datetime(2016, 1, 31, 8, 5, 0)) == "2016/01/31 08:05:00"


def test_session_durations():
    assert acdatetime.minutes_to_timedelta("90.5") == datetime.timedelta(minutes=90, seconds=30)
    assert acdatetime.minutes_to_timedelta("(timed out)") is None
