"""Delivery state of a message as a tagged union.

``Pending`` is the optimistic state of a locally sent message, ``Confirmed``
covers every server-acknowledged status and ``Failed`` is terminal.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import ClassVar

from messaging_client.application.exceptions import InvalidTransitionError
from messaging_client.domain.value_objects.enums import DeliveryStatus


@dataclass(frozen=True, slots=True)
class Pending:
    status: ClassVar[DeliveryStatus] = DeliveryStatus.SENDING


@dataclass(frozen=True, slots=True)
class Confirmed:
    status: DeliveryStatus = DeliveryStatus.SENT
    delivered_at: datetime | None = None
    read_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.status not in _CONFIRMED_ORDER:
            raise ValueError(f"not a confirmed status: {self.status}")


@dataclass(frozen=True, slots=True)
class Failed:
    status: ClassVar[DeliveryStatus] = DeliveryStatus.FAILED
    reason: str = ""


Delivery = Pending | Confirmed | Failed

_CONFIRMED_ORDER: tuple[DeliveryStatus, ...] = (
    DeliveryStatus.SENT,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.READ,
)


def transition(
    current: Delivery,
    target: DeliveryStatus,
    *,
    at: datetime | None = None,
    reason: str = "",
) -> Delivery:
    """Apply exactly one step of the delivery lifecycle.

    Allowed: sending→sent, sending→failed, sent→delivered, delivered→read.
    Anything else raises InvalidTransitionError.
    """
    if isinstance(current, Pending):
        if target == DeliveryStatus.SENT:
            return Confirmed(status=DeliveryStatus.SENT)
        if target == DeliveryStatus.FAILED:
            return Failed(reason=reason)
    elif isinstance(current, Confirmed):
        if current.status == DeliveryStatus.SENT and target == DeliveryStatus.DELIVERED:
            return replace(current, status=DeliveryStatus.DELIVERED, delivered_at=at)
        if current.status == DeliveryStatus.DELIVERED and target == DeliveryStatus.READ:
            return replace(current, status=DeliveryStatus.READ, read_at=at)
    raise InvalidTransitionError(f"{current.status} -> {target}")


def promote(current: Delivery, target: DeliveryStatus, *, at: datetime | None = None) -> Delivery:
    """Walk a confirmed delivery forward up to ``target``.

    Receipts that are stale, duplicated, or aimed at an unconfirmed message
    leave the delivery unchanged.
    """
    if not isinstance(current, Confirmed) or target not in _CONFIRMED_ORDER:
        return current
    result: Delivery = current
    while isinstance(result, Confirmed) and _rank(result.status) < _rank(target):
        next_status = _CONFIRMED_ORDER[_rank(result.status) + 1]
        result = transition(result, next_status, at=at)
    return result


def _rank(status: DeliveryStatus) -> int:
    return _CONFIRMED_ORDER.index(status)
