"""Maps signing keys to the ``keyId`` presented to the server."""

from types import MappingProxyType
from typing import Callable, Mapping, Optional

from .keys import Key

KeyIdResolver = Callable[[Key], Optional[str]]


def key_id_resolver(usernames: Mapping[Key, str]) -> KeyIdResolver:
    """Build a resolver returning ``/{username}/{fingerprint}`` for a key.

    The resolver returns None for keys without a fingerprint or without a
    non-empty username, which tells the signer to skip that key. It reads
    from a private read-only copy of ``usernames`` and may be called from
    any thread.
    """
    identities = MappingProxyType(dict(usernames))

    def resolve(key: Key) -> Optional[str]:
        fingerprint = getattr(key, "fingerprint", None)
        if not fingerprint:
            return None
        username = identities.get(key)
        if not username:
            return None
        return f"/{username}/{fingerprint}"

    return resolve
