# ################################################################################################ #
# acutils configuration file                                                                       #
#                                                                                                  #
# The library itself only takes plain values (depot names, directory domains, ...). This module    #
# reads them from the XML configuration file used by the acutils command line tool:                #
#                                                                                                  #
#   <acutils>                                                                                      #
#     <accurev executable="accurev" max-concurrent="8" timeout="300" username="" password="" />    #
#     <logging filename="acutils.log" level="INFO" timezone="Australia/Sydney" />                  #
#     <depots dynamic-only="false" include-hidden="false"> <depot name="NEPTUNE" /> </depots>      #
#     <streams> <stream name="NEPTUNE_DEV" /> </streams>                                           #
#     <users> <user name="thomas" /> </users>                                                      #
#     <groups> <group name="DEV_LEADS" /> </groups>                                                #
#     <activedir>                                                                                  #
#       <domains> <domain host="ldap://dc1" path="dc=corp,dc=com" user="" password="" /> </domains>#
#       <properties> <property field="title" title="Title" /> </properties>                        #
#     </activedir>                                                                                 #
#   </acutils>                                                                                     #
# ################################################################################################ #

import os
import codecs
import xml.etree.ElementTree as ElementTree

from acutils.obj import IntOrNone
from acutils.errors import ParseError

class Config(object):
    class AccuRev(object):
        @classmethod
        def fromxmlelement(cls, xmlElement):
            if xmlElement is not None and xmlElement.tag == 'accurev':
                executable    = xmlElement.attrib.get('executable')
                maxConcurrent = IntOrNone(xmlElement.attrib.get('max-concurrent'))
                timeout       = xmlElement.attrib.get('timeout')
                username      = xmlElement.attrib.get('username')
                password      = xmlElement.attrib.get('password')

                if timeout is not None:
                    try:
                        timeout = float(timeout)
                    except ValueError:
                        raise ParseError("Could not parse the timeout attribute of tag accurev. Expected a number of seconds, but got '{0}'.".format(timeout))

                return cls(executable=executable, maxConcurrent=maxConcurrent, timeout=timeout, username=username, password=password)
            else:
                return None

        def __init__(self, executable=None, maxConcurrent=None, timeout=None, username=None, password=None):
            self.executable    = executable
            self.maxConcurrent = maxConcurrent
            self.timeout       = timeout
            self.username      = username
            self.password      = password

        def __repr__(self):
            str = "Config.AccuRev(executable=" + repr(self.executable)
            str += ", maxConcurrent="          + repr(self.maxConcurrent)
            str += ", timeout="                + repr(self.timeout)
            str += ", username="               + repr(self.username)
            str += ")"

            return str

    class Logging(object):
        @classmethod
        def fromxmlelement(cls, xmlElement):
            if xmlElement is not None and xmlElement.tag == 'logging':
                filename = xmlElement.attrib.get('filename')
                level    = xmlElement.attrib.get('level', 'INFO').upper()
                timezone = xmlElement.attrib.get('timezone')

                return cls(filename=filename, level=level, timezone=timezone)
            else:
                return None

        def __init__(self, filename=None, level='INFO', timezone=None):
            self.filename = filename
            self.level    = level
            self.timezone = timezone

        def __repr__(self):
            str = "Config.Logging(filename=" + repr(self.filename)
            str += ", level="                + repr(self.level)
            str += ", timezone="             + repr(self.timezone)
            str += ")"

            return str

    class Domain(object):
        @classmethod
        def fromxmlelement(cls, xmlElement):
            if xmlElement is not None and xmlElement.tag == 'domain':
                host     = xmlElement.attrib.get('host')
                path     = xmlElement.attrib.get('path')
                user     = xmlElement.attrib.get('user')
                password = xmlElement.attrib.get('password')

                if host is None or path is None:
                    raise ParseError("A domain requires both the host and path attributes.")

                return cls(host=host, path=path, user=user, password=password)
            else:
                return None

        def __init__(self, host, path, user=None, password=None):
            self.host     = host
            self.path     = path
            self.user     = user
            self.password = password

        def __repr__(self):
            str = "Config.Domain(host=" + repr(self.host)
            str += ", path="            + repr(self.path)
            str += ", user="            + repr(self.user)
            str += ")"

            return str

    class Property(object):
        # An extra directory attribute (field) shown under its title.
        @classmethod
        def fromxmlelement(cls, xmlElement):
            if xmlElement is not None and xmlElement.tag == 'property':
                field = xmlElement.attrib.get('field')
                title = xmlElement.attrib.get('title')
                if field is None:
                    raise ParseError("A property requires the field attribute.")
                if title is None:
                    title = field

                return cls(field=field, title=title)
            else:
                return None

        def __init__(self, field, title):
            self.field = field
            self.title = title

        def __repr__(self):
            return "Config.Property(field=" + repr(self.field) + ", title=" + repr(self.title) + ")"

    @staticmethod
    def FilenameFromScriptName(scriptName):
        (root, ext) = os.path.splitext(scriptName)
        return root + '.config.xml'

    @staticmethod
    def GetBooleanAttribute(xmlElement, attribute):
        if xmlElement is None or attribute is None:
            return None
        value = xmlElement.attrib.get(attribute)
        if value is not None:
            if value.lower() == "true":
                value = True
            elif value.lower() == "false":
                value = False
            else:
                raise ParseError("Could not parse {attr} attribute of tag {tag}. Expected 'true' or 'false', but got '{value}'.".format(attr=attribute, tag=xmlElement.tag, value=value))

        return value

    @staticmethod
    def GetNameList(xmlRoot, listTag, itemTag):
        names = []
        listElement = xmlRoot.find(listTag)
        if listElement is not None:
            for itemElement in listElement.findall(itemTag):
                name = itemElement.attrib.get('name')
                if name is None:
                    raise ParseError("A <{0}> entry in <{1}> is missing the name attribute.".format(itemTag, listTag))
                names.append(name)
        return names

    @classmethod
    def fromxmlstring(cls, xmlString):
        # Load the XML
        try:
            xmlRoot = ElementTree.fromstring(xmlString)
        except ElementTree.ParseError as e:
            raise ParseError("Invalid configuration XML: {0}".format(e)) from e

        if xmlRoot is not None and xmlRoot.tag == "acutils":
            accurev = Config.AccuRev.fromxmlelement(xmlRoot.find('accurev'))
            if accurev is None:
                accurev = Config.AccuRev()
            logging = Config.Logging.fromxmlelement(xmlRoot.find('logging'))
            if logging is None:
                logging = Config.Logging()

            depots  = Config.GetNameList(xmlRoot, 'depots', 'depot')
            streams = Config.GetNameList(xmlRoot, 'streams', 'stream')
            users   = Config.GetNameList(xmlRoot, 'users', 'user')
            groups  = Config.GetNameList(xmlRoot, 'groups', 'group')

            dynamicOnly, includeHidden = False, False
            depotsElem = xmlRoot.find('depots')
            if depotsElem is not None:
                dynamicOnly   = Config.GetBooleanAttribute(depotsElem, 'dynamic-only') or False
                includeHidden = Config.GetBooleanAttribute(depotsElem, 'include-hidden') or False

            domains = []
            properties = []
            activeDirElem = xmlRoot.find('activedir')
            if activeDirElem is not None:
                domainsElem = activeDirElem.find('domains')
                if domainsElem is not None:
                    domains = [ Config.Domain.fromxmlelement(e) for e in domainsElem.findall('domain') ]
                propertiesElem = activeDirElem.find('properties')
                if propertiesElem is not None:
                    properties = [ Config.Property.fromxmlelement(e) for e in propertiesElem.findall('property') ]

            return cls(accurev=accurev, logging=logging, depots=depots, streams=streams, users=users, groups=groups, domains=domains, properties=properties,
                       dynamicOnly=dynamicOnly, includeHidden=includeHidden)
        else:
            # Invalid XML for an acutils configuration file.
            return None

    @staticmethod
    def fromfile(filename):
        config = None
        if os.path.exists(filename):
            with codecs.open(filename, encoding='utf-8') as f:
                configXml = f.read()
                config = Config.fromxmlstring(configXml)
        return config

    def __init__(self, accurev=None, logging=None, depots=None, streams=None, users=None, groups=None, domains=None, properties=None, dynamicOnly=False, includeHidden=False):
        self.accurev    = accurev if accurev is not None else Config.AccuRev()
        self.logging    = logging if logging is not None else Config.Logging()
        self.depots     = depots if depots is not None else []
        self.streams    = streams if streams is not None else []
        self.users      = users if users is not None else []
        self.groups     = groups if groups is not None else []
        self.domains    = domains if domains is not None else []
        self.properties = properties if properties is not None else []
        self.dynamicOnly   = dynamicOnly
        self.includeHidden = includeHidden

    def __repr__(self):
        str = "Config(accurev=" + repr(self.accurev)
        str += ", logging="     + repr(self.logging)
        str += ", depots="      + repr(self.depots)
        str += ", streams="     + repr(self.streams)
        str += ", users="       + repr(self.users)
        str += ", groups="      + repr(self.groups)
        str += ", domains="     + repr(self.domains)
        str += ", properties="  + repr(self.properties)
        str += ", dynamicOnly=" + repr(self.dynamicOnly)
        str += ", includeHidden=" + repr(self.includeHidden)
        str += ")"

        return str
