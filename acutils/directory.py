# ################################################################################################ #
# Directory (LDAP / Active Directory) lookups used to enrich AccuRev users                         #
# ################################################################################################ #

import logging
from dataclasses import dataclass, field

from ldap3 import (
    ALL,
    SAFE_SYNC,
    Connection,
    Server,
)
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from acutils.errors import EnrichmentError

logger = logging.getLogger(__name__)

PROFILE_ATTRIBUTES = {
    'givenName':         'givenName',
    'middleName':        'middleName',
    'surname':           'sn',
    'displayName':       'displayName',
    'businessPhone':     'telephoneNumber',
    'emailAddress':      'mail',
    'description':       'description',
    'distinguishedName': 'distinguishedName',
}

@dataclass(frozen=True)
class DirectoryProfile:
    givenName: str = None
    middleName: str = None
    surname: str = None
    displayName: str = None
    businessPhone: str = None
    emailAddress: str = None
    description: str = None
    distinguishedName: str = None
    other: dict = field(default_factory=dict, compare=False)

def _First(value):
    # Depending on the schema ldap3 returns single valued attributes either as is or in a list.
    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            return None
        if len(value) == 1:
            return value[0]
        return list(value)
    if value == []:
        return None
    return value

class DirectoryClient:
    """
    Wraps an ldap3 connection to one directory domain. Use it in a `with` statement so that the
    connection is bound and released around the lookups.
    """

    def __init__(self, base_dn, connection):
        self.base_dn = base_dn
        self.connection = connection

    def __enter__(self):
        self.connection.bind()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.connection.unbind()

    def find_user(self, name, properties=None):
        """Returns the DirectoryProfile of account `name` or None if the domain doesn't know it."""
        extra = [ p.field for p in properties ] if properties else []
        attributes = list(PROFILE_ATTRIBUTES.values()) + extra
        _, _, results, _ = self.connection.search(
            self.base_dn,
            "(&(objectClass=user)(sAMAccountName={0}))".format(escape_filter_chars(name)),
            attributes=attributes,
        )
        entries = [ r for r in (results or []) if r.get('type', 'searchResEntry') == 'searchResEntry' ]
        if len(entries) == 0:
            return None

        values = entries[0].get('attributes', {})
        profile = { key: _First(values.get(attr)) for key, attr in PROFILE_ATTRIBUTES.items() }
        other = {}
        for p in (properties or []):
            value = _First(values.get(p.field))
            if value is not None:
                other[p.title.strip()] = value
        return DirectoryProfile(other=other, **profile)

    @classmethod
    def from_domain(cls, domain):
        connection = Connection(
            Server(domain.host.strip(), get_info=ALL),
            domain.user,
            domain.password,
            client_strategy=SAFE_SYNC,
        )
        return cls(domain.path.strip(), connection)

def lookup_user(domains, name, properties=None):
    """Searches the domains in order and returns the first profile found, None if no domain has it.

    Raises EnrichmentError if a domain could not be queried and no other domain had the account.
    """
    errors = []
    for domain in domains:
        try:
            with DirectoryClient.from_domain(domain) as client:
                profile = client.find_user(name, properties)
        except LDAPException as e:
            errors.append("{0}: {1}".format(domain.host, e))
            continue
        if profile is not None:
            return profile
    if len(errors) > 0:
        raise EnrichmentError("Directory lookup of {0!r} failed: {1}".format(name, "; ".join(errors)))
    return None
