"""Short random codes for naming scratch files."""

import base64
import uuid

RANDOM_FILE_CODE_LENGTH = 13


def random_file_code() -> str:
    """
    Return a 13 character random code that can be used safely in a filename.

    A random UUID is folded into 8 bytes by XOR-ing its two halves, then
    base-32 encoded. The result uses only ``A-Z`` and ``2-7``, so it carries
    no path separators and stays unique on case-insensitive filesystems.
    Not suitable as a secret.
    """
    guid_bytes = uuid.uuid4().bytes
    eight_bytes = bytes(guid_bytes[i] ^ guid_bytes[i + 8] for i in range(8))
    return base64.b32encode(eight_bytes).decode("ascii").rstrip("=")
