"""
Attribute extraction: event key/value lists to typed field sets.

Each extractor makes one linear pass over an event's attributes; for a key
seen more than once the last value wins. Fields the event does not carry
are None, never defaulted, so callers decide what absence means.

packet_data on IBC send_packet / recv_packet events is an ICS-20 JSON object
({"sender", "receiver", "amount", "denom"}); packet_sequence is a scalar.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

from persistence_indexer.core.exceptions import MalformedPayloadError
from persistence_indexer.cosmos.models import CosmosEvent, EventAttribute

KEY_AMOUNT = "amount"
KEY_SENDER = "sender"
KEY_RECIPIENT = "recipient"
KEY_PACKET_DATA = "packet_data"
KEY_PACKET_SEQUENCE = "packet_sequence"

PARTICIPANT_KEYS = (KEY_SENDER, KEY_RECIPIENT)


@dataclass(frozen=True)
class PacketTransferFields:
    """Fungible token packet payload plus sequence; any field may be absent."""

    sender: str | None = None
    receiver: str | None = None
    amount: int | None = None
    denom: str | None = None
    sequence: str | None = None

    @property
    def is_complete(self) -> bool:
        """True when the packet carried a fungible transfer that can be correlated."""
        return bool(self.sequence and self.sender and self.receiver) and self.amount is not None


@dataclass(frozen=True)
class TransferFields:
    recipient: str | None = None
    sender: str | None = None
    amount: str | None = None


@dataclass(frozen=True)
class RewardFields:
    amount: str | None = None


def scan_attributes(attributes: Iterable[EventAttribute], keys: Iterable[str]) -> dict[str, str]:
    """Single pass: {key: last value} for the wanted keys present in the event."""
    wanted = frozenset(keys)
    found: dict[str, str] = {}
    for attr in attributes:
        if attr.key in wanted:
            found[attr.key] = attr.value
    return found


def _parse_amount(raw: object, event: CosmosEvent) -> int | None:
    # blank amount counts as absent, like a missing one
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, bool):
        raise MalformedPayloadError(event.type, KEY_PACKET_DATA, f"amount is not an integer: {raw!r}")
    try:
        return int(str(raw).strip())
    except ValueError:
        raise MalformedPayloadError(
            event.type, KEY_PACKET_DATA, f"amount is not an integer: {raw!r}"
        ) from None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def extract_packet_transfer(event: CosmosEvent) -> PacketTransferFields:
    """
    Pull sender/receiver/amount/denom from packet_data and the sequence from packet_sequence.

    Raises MalformedPayloadError when packet_data is not a JSON object or its amount
    is not an integer. A packet without packet_data yields an incomplete result.
    """
    found = scan_attributes(event.attributes, (KEY_PACKET_DATA, KEY_PACKET_SEQUENCE))
    sequence = found.get(KEY_PACKET_SEQUENCE) or None
    raw_payload = found.get(KEY_PACKET_DATA)
    if raw_payload is None:
        return PacketTransferFields(sequence=sequence)
    try:
        payload = json.loads(raw_payload)
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(event.type, KEY_PACKET_DATA, f"invalid JSON: {e.msg}") from e
    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            event.type, KEY_PACKET_DATA, f"expected object, got {type(payload).__name__}"
        )
    return PacketTransferFields(
        sender=_optional_str(payload.get("sender")),
        receiver=_optional_str(payload.get("receiver")),
        amount=_parse_amount(payload.get("amount"), event),
        denom=_optional_str(payload.get("denom")),
        sequence=sequence,
    )


def extract_transfer(event: CosmosEvent) -> TransferFields:
    found = scan_attributes(event.attributes, (KEY_RECIPIENT, KEY_SENDER, KEY_AMOUNT))
    return TransferFields(
        recipient=found.get(KEY_RECIPIENT),
        sender=found.get(KEY_SENDER),
        amount=found.get(KEY_AMOUNT),
    )


def extract_reward(event: CosmosEvent) -> RewardFields:
    found = scan_attributes(event.attributes, (KEY_AMOUNT,))
    return RewardFields(amount=found.get(KEY_AMOUNT))


def collect_participants(events: Iterable[CosmosEvent]) -> list[str]:
    """Every sender/recipient attribute value across the events, in emission order."""
    out: list[str] = []
    for event in events:
        for attr in event.attributes:
            if attr.key in PARTICIPANT_KEYS and attr.value:
                out.append(attr.value)
    return out
