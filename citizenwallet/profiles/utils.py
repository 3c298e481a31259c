USERNAME_BYTES_LENGTH = 32


def pad_bytes_with_space(data: bytes, length: int) -> bytes:
    """Left pads with spaces, one byte per prepend, up to length."""
    while len(data) < length:
        data = b" " + data
    return data


def format_username_to_bytes32(username: str) -> bytes:
    """
    The profile contract indexes usernames as 32 byte identifiers:
    utf-8, leading "@" removed, left padded with spaces.
    Longer usernames are cut to their first 32 bytes.
    """
    if username.startswith("@"):
        username = username[1:]
    encoded = username.encode("utf-8")[:USERNAME_BYTES_LENGTH]
    return pad_bytes_with_space(encoded, USERNAME_BYTES_LENGTH)


def address_to_id(address: str) -> int:
    clean_address = address.lower()
    if clean_address.startswith("0x"):
        clean_address = clean_address[2:]
    return int(clean_address, 16)


def id_to_address(token_id: int) -> str:
    # pad with zeros to ensure 40 characters (20 bytes)
    return "0x" + format(token_id, "x").rjust(40, "0")


def limit_string_length(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return value[:max_length]
