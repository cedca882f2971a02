"""
Deadline-bounded reads of streamed `requests` responses.

`requests` timeouts only bound the connect and each socket read, so a server
trickling bytes could hold a request open forever. Bodies here are read in
chunks against a monotonic deadline and a size cap instead.
"""
import time

import requests

CHUNK_SIZE = 64 * 1024


def deadline_after(timeout):
    return time.monotonic() + timeout


def remaining(deadline):
    return max(deadline - time.monotonic(), 0.001)


def read_body(resp, deadline, max_bytes, error_cls, what):
    """
    Read a response opened with stream=True.

    Raises error_cls when the deadline passes, the body exceeds max_bytes,
    or the connection breaks mid-body.
    """
    chunks = []
    size = 0
    try:
        for chunk in resp.iter_content(CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise error_cls(f"Timed out reading {what}")
            size += len(chunk)
            if size > max_bytes:
                raise error_cls(f"{what} exceeds {max_bytes} bytes")
            chunks.append(chunk)
    except requests.RequestException as e:
        raise error_cls(f"Error reading {what}: {e}") from e
    if time.monotonic() > deadline:
        raise error_cls(f"Timed out reading {what}")
    return b"".join(chunks)
