# ################################################################################################ #
# AccuRev timestamps                                                                               #
#                                                                                                  #
# AccuRev reports times as seconds since the epoch (UTC) and accepts time specs formatted as       #
# YYYY/MM/DD HH:MM:SS. Converted values are timezone aware, in UTC unless a display timezone was   #
# configured.                                                                                      #
# ################################################################################################ #

import re
import datetime

import pytz

from acutils.errors import ParseError

ACDATE_FORMAT = "%Y/%m/%d %H:%M:%S"
TIMED_OUT = "(timed out)"

_displayTimezone = pytz.utc
_acdateRe = re.compile(r'^\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}$')

def set_timezone(name):
    global _displayTimezone
    if name is None:
        _displayTimezone = pytz.utc
    else:
        _displayTimezone = pytz.timezone(name)

def get_timezone():
    return _displayTimezone

def acdate_to_datetime(seconds):
    if seconds is None or seconds == '':
        return None
    try:
        seconds = int(seconds)
    except ValueError:
        raise ParseError("Expected a timestamp in seconds but got {0!r}".format(seconds))
    if seconds == 0:
        return None
    try:
        utc = datetime.datetime.fromtimestamp(seconds, tz=pytz.utc)
        return utc.astimezone(_displayTimezone)
    except (ValueError, OverflowError, OSError) as e:
        raise ParseError("Timestamp {0} is out of range: {1}".format(seconds, e)) from e

def datetime_to_acdate(dt):
    if dt is None:
        return None
    if not isinstance(dt, datetime.datetime):
        raise TypeError('Invalid argument. Expected a datetime type.')
    if dt.tzinfo is not None:
        # AccuRev interprets time specs in the client's local time.
        dt = dt.astimezone().replace(tzinfo=None)
    return dt.strftime(ACDATE_FORMAT)

def acdate_valid(text):
    if text is None or _acdateRe.match(text) is None:
        return False
    try:
        datetime.datetime.strptime(text, ACDATE_FORMAT)
    except ValueError:
        return False
    return True

def minutes_to_timedelta(minutes):
    if minutes is None or minutes == '' or minutes == TIMED_OUT:
        return None
    try:
        return datetime.timedelta(minutes=float(minutes))
    except ValueError:
        raise ParseError("Expected a duration in minutes but got {0!r}".format(minutes))
