"""User directory repositories."""

from .role_assignment import RoleAssignmentEngine, rbac_engine, arbac_engine
from .user_record_assembler import UserRecordAssembler, encode_property, decode_properties

__all__ = [
    "RoleAssignmentEngine",
    "rbac_engine",
    "arbac_engine",
    "UserRecordAssembler",
    "encode_property",
    "decode_properties",
]
