"""Remote-operation protocol for winscout."""

from winscout.remote.operations import (
    OPERATIONS,
    PROTOCOL_VERSION,
    RemoteOperation,
    build_command,
    decode_response,
    encode_request,
    get_operation,
    validate_arguments,
)

__all__ = [
    "OPERATIONS",
    "PROTOCOL_VERSION",
    "RemoteOperation",
    "build_command",
    "decode_response",
    "encode_request",
    "get_operation",
    "validate_arguments",
]
