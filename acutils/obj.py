# ################################################################################################ #
# AccuRev XML projection helpers                                                                   #
#                                                                                                  #
# Small converters shared by every entity module. They are pure: on bad input they raise           #
# ParseError and leave the logging to the caller.                                                  #
# ################################################################################################ #

import re
import enum
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass

from acutils.errors import ParseError

UNKNOWN_SENTINEL = "* unknown *"

def GetXmlContents(xmlElement):
    if xmlElement is not None:
        text = xmlElement.text or ''
        return text + ''.join(ElementTree.tostring(e, encoding='unicode') for e in xmlElement)
    return None

def IntOrNone(value):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError:
        raise ParseError("Expected an integer but got {0!r}".format(value))

def IntOrDefault(value, default):
    value = IntOrNone(value)
    if value is None:
        return default
    return value

def Bool(value, default=False):
    if value is None:
        return default
    string = value.lower()
    if string == "yes" or string == "true":
        return True
    elif string == "no" or string == "false":
        return False
    raise ParseError("Bool value invalid: {0!r}".format(value))

def Required(xmlElement, attribute):
    value = xmlElement.attrib.get(attribute)
    if value is None:
        raise ParseError("<{0}> is missing the required '{1}' attribute".format(xmlElement.tag, attribute))
    return value

def parse_response(xmlText, command=None):
    """Parses the XML an `accurev ... -fx` command prints and returns the AcResponse root.

    Some commands (xml, info) answer with a different root so `command` is only checked when the
    root is an AcResponse element.
    """
    try:
        xmlRoot = ElementTree.fromstring(xmlText)
    except ElementTree.ParseError as e:
        raise ParseError("Invalid XML response: {0}".format(e)) from e

    if command is not None and xmlRoot.tag == "AcResponse":
        responseCommand = xmlRoot.get("Command")
        if responseCommand is not None and responseCommand != command:
            raise ParseError("Expected a response to '{0}' but got one to '{1}'".format(command, responseCommand))
    return xmlRoot

@dataclass(frozen=True, order=True)
class Version:
    stream: int
    version: int

    def __str__(self):
        return '{0}/{1}'.format(self.stream, self.version)

    @classmethod
    def fromstring(cls, versionString):
        if versionString is None or versionString == '':
            return None
        versionParts = versionString.replace('\\', '/').split('/')
        if len(versionParts) != 2 or re.match('^[0-9]+$', versionParts[0]) is None or re.match('^[0-9]+$', versionParts[1]) is None:
            raise ParseError("Malformed version pair {0!r}, expected <stream>/<version>".format(versionString))
        return cls(int(versionParts[0]), int(versionParts[1]))

def NamedStream(namedVersion):
    # "MARS_DEV/3" -> "MARS_DEV", stream names may themselves contain a '/'.
    if namedVersion is None or namedVersion == '':
        return None
    parts = namedVersion.replace('\\', '/').rsplit('/', 1)
    return parts[0]

class TokenEnum(enum.Enum):
    """Enumeration parsed from the exact (case sensitive) token AccuRev prints.

    Subclasses that define an `unknown` member accept the "* unknown *" sentinel AccuRev prints
    for objects it can't classify.
    """

    @classmethod
    def parse(cls, token):
        if token is None:
            raise ParseError("Missing {0} value".format(cls.__name__))
        if token == UNKNOWN_SENTINEL and 'unknown' in cls.__members__:
            return cls.__members__['unknown']
        member = cls.__members__.get(token)
        if member is None:
            raise ParseError("Unrecognized {0} token {1!r}".format(cls.__name__, token))
        return member

    def __str__(self):
        return self.name

class ElementType(TokenEnum):
    unknown     = 0
    dir         = 1
    text        = 2
    binary      = 3
    ptext       = 4
    elink       = 5
    slink       = 6
    unsupported = 99
