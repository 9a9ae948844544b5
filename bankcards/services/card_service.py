"""
Card service — card lifecycle, owner reads, and expiration self-healing.

Admin operations (the transport layer must gate these with require_admin):
  - create_card: issue a card with a chosen 16-digit number to a user
  - block_card / activate_card: toggle ACTIVE <-> BLOCKED while valid
  - delete_card

Owner operations (scoped by the caller's email):
  - get_card, list_cards, request_block, get_total_balance

Expiration:
  Cards are not expired by a background job. Instead every read passes the
  card through refresh_expiration(), which flips a card whose expiration
  date has passed to EXPIRED and flushes that correction. This is the only
  read path in the system that writes. EXPIRED is terminal: an expired card
  can be neither blocked nor reactivated.
"""

import calendar
import logging
import re
from collections.abc import Sequence
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import (
    CardExpiredError,
    CardNotFoundError,
    DuplicateCardError,
    InvalidCardNumberError,
    InvalidRequestError,
    UserNotFoundError,
)
from bankcards.models.card import Card, CardStatus
from bankcards.repositories import CardRepository, UserRepository

logger = logging.getLogger(__name__)

CARD_NUMBER_PATTERN = re.compile(r"[0-9]{16}")
# Largest value a Numeric(19, 2) balance column can hold
MAX_BALANCE = Decimal("99999999999999999.99")


def is_valid_card_number(number: str) -> bool:
    return CARD_NUMBER_PATTERN.fullmatch(number) is not None


def is_cent_amount(amount: Decimal) -> bool:
    """True for a finite amount with at most two fractional digits."""
    if not amount.is_finite():
        return False
    _, digits, exponent = amount.as_tuple()
    # Digits past the second fractional place must all be zero
    return exponent >= -2 or not any(digits[exponent + 2:])


def mask_card_number(number: str) -> str:
    """Mask all but the last four digits: "**** **** **** 1234"."""
    return "**** **** **** " + number[-4:]


def today() -> date:
    return datetime.now(timezone.utc).date()


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


async def refresh_expiration(db: AsyncSession, card: Card) -> Card:
    """Correct the stored status of a card whose expiration date has passed."""
    if card.expiration_date < today() and card.status != CardStatus.EXPIRED:
        card.status = CardStatus.EXPIRED
        await CardRepository(db).save(card)
        logger.info("Card %s expired on %s", mask_card_number(card.number), card.expiration_date)
    return card


async def _get_card_or_404(db: AsyncSession, number: str) -> Card:
    card = await CardRepository(db).find_by_number(number)
    if card is None:
        raise CardNotFoundError(number)
    return card


# ---------------------------------------------------------------------------
# Admin operations
# ---------------------------------------------------------------------------

async def create_card(
    db: AsyncSession,
    owner_email: str,
    number: str,
    validity_months: int,
    initial_balance: Decimal = Decimal("0.00"),
) -> Card:
    """
    Issue a new ACTIVE card.

    Args:
        owner_email: The user who will own the card.
        number: 16-digit card number, unique across all cards.
        validity_months: Months from today until the card expires (>= 1).
        initial_balance: Opening balance, non-negative, at most 2 decimals.

    Raises:
        UserNotFoundError: If the owner does not exist.
        InvalidCardNumberError: If the number is not 16 digits.
        InvalidRequestError: If validity or balance is out of range.
        DuplicateCardError: If the number is already taken.
    """
    owner = await UserRepository(db).find_by_email(owner_email)
    if owner is None:
        raise UserNotFoundError(owner_email)

    if not is_valid_card_number(number):
        raise InvalidCardNumberError()

    if validity_months < 1:
        raise InvalidRequestError("Card validity must be at least one month")

    if (
        not is_cent_amount(initial_balance)
        or initial_balance < 0
        or initial_balance > MAX_BALANCE
    ):
        raise InvalidRequestError("Initial balance must be a non-negative amount in cents")

    cards = CardRepository(db)
    if await cards.exists_by_number(number):
        raise DuplicateCardError(number)

    card = Card(
        number=number,
        owner_email=owner.email,
        owner_full_name=owner.full_name,
        expiration_date=add_months(today(), validity_months),
        status=CardStatus.ACTIVE,
        balance=initial_balance,
        block_requested=False,
    )
    await cards.save(card)

    logger.info("Issued card %s to %s", mask_card_number(number), owner_email)
    return card


async def block_card(db: AsyncSession, number: str) -> Card:
    """
    Raises:
        CardNotFoundError, CardExpiredError
    """
    card = await refresh_expiration(db, await _get_card_or_404(db, number))
    if card.status == CardStatus.EXPIRED:
        raise CardExpiredError(number)

    card.status = CardStatus.BLOCKED
    await CardRepository(db).save(card)
    logger.info("Blocked card %s", mask_card_number(number))
    return card


async def activate_card(db: AsyncSession, number: str) -> Card:
    """
    Reactivate a blocked card. Any pending block request is cleared.

    Raises:
        CardNotFoundError, CardExpiredError
    """
    card = await refresh_expiration(db, await _get_card_or_404(db, number))
    if card.status == CardStatus.EXPIRED:
        raise CardExpiredError(number)

    card.status = CardStatus.ACTIVE
    card.block_requested = False
    await CardRepository(db).save(card)
    logger.info("Activated card %s", mask_card_number(number))
    return card


async def delete_card(db: AsyncSession, number: str) -> None:
    card = await _get_card_or_404(db, number)
    await CardRepository(db).delete(card)
    logger.info("Deleted card %s", mask_card_number(number))


# ---------------------------------------------------------------------------
# Owner operations
# ---------------------------------------------------------------------------

async def get_card(db: AsyncSession, number: str, owner_email: str) -> Card:
    """
    Get one of the caller's cards.

    A card owned by someone else is reported exactly like a missing one,
    so callers cannot probe for other users' card numbers.

    Raises:
        CardNotFoundError
    """
    card = await _get_card_or_404(db, number)
    if card.owner_email != owner_email:
        raise CardNotFoundError(number)
    return await refresh_expiration(db, card)


async def request_block(db: AsyncSession, number: str, owner_email: str) -> Card:
    """
    Flag one of the caller's cards for blocking by an admin.

    Raises:
        CardNotFoundError, CardExpiredError
    """
    card = await get_card(db, number, owner_email)
    if card.status == CardStatus.EXPIRED:
        raise CardExpiredError(number)

    card.block_requested = True
    await CardRepository(db).save(card)
    logger.info("Block requested for card %s by %s", mask_card_number(number), owner_email)
    return card


async def list_cards(
    db: AsyncSession,
    owner_email: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Card]:
    """List one user's cards, or every card when owner_email is None (admin)."""
    cards = CardRepository(db)
    if owner_email is None:
        result = await cards.list(limit=limit, offset=offset)
    else:
        result = await cards.list_by_owner(owner_email, limit=limit, offset=offset)

    for card in result:
        await refresh_expiration(db, card)
    return result


async def get_total_balance(db: AsyncSession, owner_email: str) -> Decimal:
    """Sum of the balances of the caller's ACTIVE cards."""
    total = Decimal("0.00")
    for card in await CardRepository(db).list_by_owner(owner_email):
        await refresh_expiration(db, card)
        if card.status == CardStatus.ACTIVE:
            total += card.balance
    return total
