"""Constants and enums for neo-rbac.

This module defines the directory attribute names, sentinel values, field
limits and object classes used throughout the neo-rbac library. Attribute
names correspond to the inetOrgPerson schema extended with the RBAC
auxiliary object classes.
"""

from enum import Enum
from typing import Final, Tuple


class Attributes:
    """Directory attribute names (logical name -> schema attribute)."""

    OBJECT_CLASS: Final[str] = "objectClass"
    INTERNAL_ID: Final[str] = "ftId"
    USER_ID: Final[str] = "uid"
    COMMON_NAME: Final[str] = "cn"
    SURNAME: Final[str] = "sn"
    DESCRIPTION: Final[str] = "description"
    ORG_UNIT: Final[str] = "ou"
    PASSWORD: Final[str] = "userPassword"
    DISPLAY_NAME: Final[str] = "displayName"
    POLICY_SUBENTRY: Final[str] = "pwdPolicySubentry"
    CONSTRAINT: Final[str] = "ftCstr"
    ROLE_DATA: Final[str] = "ftRC"
    ROLE_ASSIGN: Final[str] = "ftRA"
    ADMIN_ROLE_DATA: Final[str] = "ftARC"
    ADMIN_ROLE_ASSIGN: Final[str] = "ftARA"
    PROPERTIES: Final[str] = "ftProps"
    POSTAL_ADDRESS: Final[str] = "postalAddress"
    LOCALITY: Final[str] = "l"
    POSTAL_CODE: Final[str] = "postalCode"
    POST_OFFICE_BOX: Final[str] = "postOfficeBox"
    STATE: Final[str] = "st"
    TELEPHONE: Final[str] = "telephoneNumber"
    MOBILE: Final[str] = "mobile"
    MAIL: Final[str] = "mail"
    RESET_FLAG: Final[str] = "pwdReset"
    LOCKED_TIME: Final[str] = "pwdAccountLockedTime"


class ObjectClasses:
    """Object classes written on every user entry."""

    TOP: Final[str] = "top"
    USER_AUX: Final[str] = "ftUserAttrs"
    PROPERTIES_AUX: Final[str] = "ftProperties"
    MODIFIER_AUX: Final[str] = "ftMods"
    POLICY_NODE_TYPE: Final[str] = "cn"


class Sentinels:
    """Sentinel attribute values with special meaning."""

    NONE: Final[str] = "none"
    ALL: Final[str] = "all"
    LOCK_VALUE: Final[str] = "000001010000Z"
    RESET_VALUE: Final[str] = "TRUE"
    INIT_PROPERTY: Final[str] = "init"


class FieldLimits:
    """Maximum lengths enforced before any directory I/O."""

    DEFAULT_FIELD_LEN: Final[int] = 130
    USER_ID_LEN: Final[int] = 40
    PASSWORD_LEN: Final[int] = 50
    DESCRIPTION_LEN: Final[int] = 180
    PROPERTY_LEN: Final[int] = 100
    TIME_LEN: Final[int] = 4
    DATE_LEN: Final[int] = 8
    DAY_MASK_LEN: Final[int] = 7
    MAX_TIMEOUT: Final[int] = 2 ** 31 - 1


class Delimiters:
    """Delimiters used by the stored record formats."""

    RECORD: Final[str] = "$"
    PROPERTY: Final[str] = ":"


class SearchScope(str, Enum):
    """Directory search scopes."""

    BASE = "base"
    ONE = "one"
    SUBTREE = "sub"


class ConnectionType(str, Enum):
    """Connection pools handed out by a directory pool."""

    ADMIN = "admin"
    USER = "user"


# Attribute sets requested on reads
AUTHN_ATTRS: Final[Tuple[str, ...]] = (
    Attributes.INTERNAL_ID,
    Attributes.USER_ID,
    Attributes.DESCRIPTION,
    Attributes.ORG_UNIT,
    Attributes.COMMON_NAME,
    Attributes.SURNAME,
    Attributes.CONSTRAINT,
    Attributes.RESET_FLAG,
    Attributes.LOCKED_TIME,
    Attributes.PROPERTIES,
)

DEFAULT_ATTRS: Final[Tuple[str, ...]] = AUTHN_ATTRS + (
    Attributes.POLICY_SUBENTRY,
    Attributes.ROLE_DATA,
    Attributes.ROLE_ASSIGN,
    Attributes.ADMIN_ROLE_DATA,
    Attributes.ADMIN_ROLE_ASSIGN,
    Attributes.POSTAL_ADDRESS,
    Attributes.LOCALITY,
    Attributes.POSTAL_CODE,
    Attributes.POST_OFFICE_BOX,
    Attributes.STATE,
    Attributes.TELEPHONE,
    Attributes.MOBILE,
    Attributes.MAIL,
)
