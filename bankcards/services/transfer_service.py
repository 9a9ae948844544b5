"""
Transfer service — moving money between two cards of the same user.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. A transfer must conserve
money: whatever leaves the source card arrives on the destination card, in
the same database transaction, or nothing changes at all.

Validation order (every failure is terminal and happens before any balance
is touched):
  0. amount is positive with at most two decimal places   -> 400
  1. both cards exist                                      -> 404
  2. source and destination differ                         -> 400
  3. the acting user owns BOTH cards                       -> 400
  4. both cards are ACTIVE (after expiration self-healing) -> 400
  5. amount <= source balance                              -> 400

Atomicity:
  The debit, the credit and the Transfer row are flushed into the caller's
  session and committed together by the session owner (database.get_db).
  A crash between the debit and the credit therefore cannot leak money.

Deadlock prevention:
  Both card rows are locked with SELECT ... FOR UPDATE in ascending
  card-number order (see CardRepository.find_for_update). Two transfers
  crossing the same pair of cards in opposite directions take the locks in
  the same order, and a concurrent transfer from the same source re-reads
  the balance only after the first one commits.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import (
    CardNotFoundError,
    InsufficientFundsError,
    InvalidRequestError,
)
from bankcards.models.card import CardStatus
from bankcards.models.transfer import Transfer
from bankcards.repositories import CardRepository, TransferRepository
from bankcards.services.card_service import (
    is_cent_amount,
    mask_card_number,
    refresh_expiration,
)

logger = logging.getLogger(__name__)


async def transfer(
    db: AsyncSession,
    user_email: str,
    from_card_number: str,
    to_card_number: str,
    amount: Decimal,
) -> Transfer:
    """
    Move `amount` from one of the user's cards to another.

    Args:
        db: Database session; the caller commits.
        user_email: The authenticated user performing the transfer.
        from_card_number: Source card (must belong to the user).
        to_card_number: Destination card (must belong to the user).
        amount: Positive Decimal with at most two fractional digits.

    Returns:
        The new Transfer record.

    Raises:
        InvalidRequestError: Bad amount, self-transfer, foreign card,
            or a card that is not ACTIVE.
        CardNotFoundError: If either card does not exist.
        InsufficientFundsError: If the source balance is below `amount`.
    """
    if not is_cent_amount(amount) or amount <= 0:
        raise InvalidRequestError("Transfer amount must be a positive amount in cents")

    cards = await CardRepository(db).find_for_update({from_card_number, to_card_number})

    source = cards.get(from_card_number)
    if source is None:
        raise CardNotFoundError(from_card_number)
    dest = cards.get(to_card_number)
    if dest is None:
        raise CardNotFoundError(to_card_number)

    if from_card_number == to_card_number:
        raise InvalidRequestError("You can't make a transfer between the same card")

    if source.owner_email != user_email or dest.owner_email != user_email:
        raise InvalidRequestError("One or both of the cards do not belong to the user")

    await refresh_expiration(db, source)
    await refresh_expiration(db, dest)
    if source.status != CardStatus.ACTIVE or dest.status != CardStatus.ACTIVE:
        raise InvalidRequestError("Both cards must be active")

    if source.balance < amount:
        logger.warning(
            "Declined transfer of %s from %s: insufficient funds",
            amount, mask_card_number(from_card_number),
        )
        raise InsufficientFundsError(
            card_number=from_card_number,
            requested=amount,
            available=source.balance,
        )

    source.balance -= amount
    dest.balance += amount

    record = Transfer(
        user_email=user_email,
        from_card_number=from_card_number,
        to_card_number=to_card_number,
        amount=amount,
        created_at=datetime.now(timezone.utc),
    )
    await TransferRepository(db).save(record)

    logger.info(
        "Transferred %s from %s to %s for %s",
        amount, mask_card_number(from_card_number),
        mask_card_number(to_card_number), user_email,
    )
    return record


async def get_transfers(
    db: AsyncSession,
    user_email: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Transfer]:
    """Transfer history, newest first. user_email=None lists everyone's (admin)."""
    return await TransferRepository(db).list(user_email=user_email, limit=limit, offset=offset)
