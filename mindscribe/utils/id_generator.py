"""
ID generation utilities for MindScribe.

Chat message ids are generated locally and only need to be unique within a
session: msg-<epoch millis>-<counter>.
"""

import itertools
import time

_message_counter = itertools.count(1)


def generate_message_id() -> str:
    """
    Generate a local chat message ID.

    Returns:
        ID in format "msg-<millis>-<n>"; n increases for every call in the process
    """
    return f"msg-{int(time.time() * 1000)}-{next(_message_counter)}"
