"""Verification of an untrusted header against a trusted one."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

# Period through which a header's validator set can be trusted.
TRUSTING_PERIOD = timedelta(hours=168)
# How far into the future a new header's time may drift relative to now.
CLOCK_DRIFT = timedelta(seconds=10)


class Header(Protocol):
    """The header fields verification looks at."""

    chain_id: str
    height: int
    time: datetime
    validators_hash: bytes
    next_validators_hash: bytes


class VerifyError(Exception):
    """Raised when verification of an untrusted header fails."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"header: verify: {self.reason}"


class NonAdjacentError(Exception):
    """Raised when the untrusted header does not directly follow the trusted one."""

    def __init__(self) -> None:
        super().__init__("header: non-adjacent headers")


def _now(reference: datetime, now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(tz=reference.tzinfo)


def is_expired(header: Header, now: datetime | None = None) -> bool:
    """Report whether the header is older than the trusting period."""
    expiration = header.time + TRUSTING_PERIOD
    return not expiration > _now(header.time, now)


def _verify(trusted: Header, untrusted: Header, now: datetime | None) -> None:
    if untrusted.chain_id != trusted.chain_id:
        raise VerifyError(
            f"new untrusted header has different chain {untrusted.chain_id}, not {trusted.chain_id}"
        )
    if not untrusted.time > trusted.time:
        raise VerifyError(
            f"expected new untrusted header time {untrusted.time} to be after "
            f"old header time {trusted.time}"
        )
    current = _now(untrusted.time, now)
    if not untrusted.time < current + CLOCK_DRIFT:
        raise VerifyError(
            f"new untrusted header has a time from the future {untrusted.time} "
            f"(now: {current}, clockDrift: {CLOCK_DRIFT})"
        )


def verify_adjacent(trusted: Header, untrusted: Header, now: datetime | None = None) -> None:
    """Validate an adjacent untrusted header against a trusted one."""
    if untrusted.height != trusted.height + 1:
        raise NonAdjacentError()
    _verify(trusted, untrusted, now)
    if bytes(untrusted.validators_hash) != bytes(trusted.next_validators_hash):
        raise VerifyError(
            "expected old header next validators "
            f"({bytes(trusted.next_validators_hash).hex().upper()}) to match those from new header "
            f"({bytes(untrusted.validators_hash).hex().upper()})"
        )