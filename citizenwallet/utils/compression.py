import base64
import gzip


def compress(data: str) -> str:
    """
    gzip (level 6) + base64 with the url safe substitutions
    used by receive links and vouchers.
    """
    gzipped_data = gzip.compress(data.encode("utf-8"), compresslevel=6)
    return (
        base64.b64encode(gzipped_data).decode("ascii")
        .replace("+", "-")
        .replace("/", "_")
    )


def decompress(data: str) -> str:
    base64_data = data.replace("-", "+").replace("_", "/")
    # links are sometimes shared with the padding stripped
    base64_data += "=" * (-len(base64_data) % 4)
    gzipped_data = base64.b64decode(base64_data)
    return gzip.decompress(gzipped_data).decode("utf-8")
